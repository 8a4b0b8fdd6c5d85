"""
Pytest fixtures for the quote pricing test suite.

Provides:
- Structured logging configured for the whole session, with a
  ``captured_logs`` fixture for asserting on emitted records
- A deterministic clock
- The default pricing regime and reference rows shaped like the tables
  the quoting system reads (tax rates, holidays, same-day eligibility)
- Small factories for documents and line-item pricing
"""

import json
import logging
from datetime import UTC, date, datetime
from decimal import Decimal
from io import StringIO

import pytest

from quote_config import get_pricing_regime
from quote_engines.calendar import Holiday, HolidaySet
from quote_engines.line_item import (
    ComplexityTable,
    ComplexityTier,
    DocumentInput,
    LineItemPricing,
)
from quote_engines.tax import TaxRateRow
from quote_engines.turnaround import (
    CutoffWindow,
    FeeType,
    SameDayEligibilityRow,
    TurnaroundDayRule,
    TurnaroundDaySchedule,
    TurnaroundTier,
    TurnaroundTierSet,
)
from quote_kernel.domain.clock import DeterministicClock
from quote_kernel.domain.values import Money
from quote_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

# Wednesday 2025-01-08 10:00 in Edmonton (MST, UTC-7).
WEDNESDAY_MORNING_UTC = datetime(2025, 1, 8, 17, 0, tzinfo=UTC)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture quote_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            resolve_tax(region_code="AB", tax_table=rows)
            logs = captured_logs()
            assert any(r["message"] == "tax_resolved" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("quote_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    return DeterministicClock(WEDNESDAY_MORNING_UTC)


# =============================================================================
# Configuration fixtures
# =============================================================================


@pytest.fixture(scope="session")
def regime():
    return get_pricing_regime()


@pytest.fixture
def pricing() -> LineItemPricing:
    return LineItemPricing(
        base_rate_per_page=Money.of("65.00", "CAD"),
        words_per_page=225,
        rounding_unit=Decimal("2.50"),
        complexity=ComplexityTable.of({
            "simple": "1.0",
            "standard": "1.0",
            "complex": "1.15",
            "highly_complex": "1.5",
        }),
    )


@pytest.fixture
def tiers() -> TurnaroundTierSet:
    return TurnaroundTierSet(tiers=(
        TurnaroundTier("standard", "Standard", FeeType.PERCENTAGE, Decimal("0"), is_default=True),
        TurnaroundTier("rush", "Rush", FeeType.PERCENTAGE, Decimal("30"), estimated_days=1, is_rush=True),
        TurnaroundTier("same_day", "Same Day", FeeType.PERCENTAGE, Decimal("100"), is_rush=True),
    ))


@pytest.fixture
def schedule() -> TurnaroundDaySchedule:
    return TurnaroundDaySchedule(
        standard=TurnaroundDayRule(base_days=2, base_pages=Decimal("2"), pages_per_extra_day=Decimal("2")),
        rush=TurnaroundDayRule(base_days=1, base_pages=Decimal("2"), pages_per_extra_day=Decimal("3")),
    )


@pytest.fixture
def rush_cutoff() -> CutoffWindow:
    return CutoffWindow(hour=16, minute=30, weekdays_only=True)


@pytest.fixture
def same_day_cutoff() -> CutoffWindow:
    return CutoffWindow(hour=14, minute=0, weekdays_only=True)


# =============================================================================
# Reference data fixtures
# =============================================================================


@pytest.fixture
def tax_rows() -> list[TaxRateRow]:
    return [
        TaxRateRow(region_code="AB", tax_name="GST", rate=Decimal("0.05"), region_name="Alberta"),
        TaxRateRow(region_code="BC", tax_name="GST", rate=Decimal("0.05"), region_name="British Columbia"),
        TaxRateRow(region_code="BC", tax_name="PST", rate=Decimal("0.07"), region_name="British Columbia"),
        TaxRateRow(region_code="ON", tax_name="HST", rate=Decimal("0.13"), region_name="Ontario"),
        TaxRateRow(region_code="QC", tax_name="GST", rate=Decimal("0.05"), region_name="Quebec"),
        TaxRateRow(region_code="QC", tax_name="QST", rate=Decimal("0.09975"), region_name="Quebec"),
        TaxRateRow(region_code="INTL", tax_name=None, rate=Decimal("0.00"), region_name="International"),
    ]


@pytest.fixture
def same_day_rows() -> list[SameDayEligibilityRow]:
    return [
        SameDayEligibilityRow("es", "en", "birth_certificate", "ircc", Money.of("0.00", "CAD")),
        SameDayEligibilityRow("es", "en", "marriage_certificate", "ircc", Money.of("10.00", "CAD")),
        SameDayEligibilityRow("fr", "en", "birth_certificate", "ircc", Money.of("5.00", "CAD")),
        SameDayEligibilityRow(
            "es", "en", "drivers_license", "ircc", Money.of("20.00", "CAD"), is_active=False
        ),
    ]


@pytest.fixture
def holidays() -> HolidaySet:
    return HolidaySet(holidays=(
        Holiday(date(2025, 1, 1), "New Year's Day"),
        Holiday(date(2025, 2, 17), "Family Day", region_code="AB"),
        Holiday(date(2025, 2, 17), "Family Day", region_code="ON"),
        Holiday(date(2025, 6, 24), "Fete nationale", region_code="QC"),
    ))


# =============================================================================
# Factories
# =============================================================================


def make_document(
    word_count: int = 500,
    complexity: ComplexityTier | str = ComplexityTier.STANDARD,
    certification: str = "0.00",
    is_notarized: bool = False,
    document_type: str = "birth_certificate",
    label: str = "",
) -> DocumentInput:
    return DocumentInput(
        word_count=word_count,
        complexity=complexity,
        certification_price=Money.of(certification, "CAD"),
        is_notarized=is_notarized,
        document_type=document_type,
        label=label,
    )


@pytest.fixture
def document_factory():
    return make_document
