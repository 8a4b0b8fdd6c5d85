"""
Tax Engine - Resolve the applicable sales tax for a billing region.

Pure functions with no I/O - tax rows provided as parameters.

A region may carry several taxes (GST + PST, GST + QST); the resolver
groups every active row for the region, sums the rates and joins the
names for display. A region with no rows is an error, never a silent
zero or default rate: fallback is the caller's policy.

Usage:
    from decimal import Decimal
    from quote_engines.tax import TaxRateRow, resolve_tax, calculate_tax
    from quote_kernel.domain.values import Money

    rows = [
        TaxRateRow(region_code="BC", tax_name="GST", rate=Decimal("0.05")),
        TaxRateRow(region_code="BC", tax_name="PST", rate=Decimal("0.07")),
    ]
    region = resolve_tax(region_code="CA-BC", tax_table=rows)
    print(region.total_rate)    # 0.12
    print(region.display_name)  # GST + PST

    calculate_tax(Money.of("146.25", "CAD"), region)   # 17.55 CAD
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable

from quote_engines.tracer import traced_engine
from quote_kernel.domain.validation import normalize_region_code, to_decimal
from quote_kernel.domain.values import Money
from quote_kernel.exceptions import InvalidArgumentError, RegionNotFoundError
from quote_kernel.logging_config import get_logger

logger = get_logger("engines.tax")

_NAME_SEPARATOR = " + "


@dataclass(frozen=True)
class TaxRateRow:
    """
    One row of the external tax table.

    Rate is a fraction (0.05 for 5%). Effective dates are inclusive;
    None means open-ended.
    """

    region_code: str
    tax_name: str | None
    rate: Decimal
    region_name: str | None = None
    is_active: bool = True
    effective_from: date | None = None
    effective_to: date | None = None

    def __post_init__(self) -> None:
        rate = to_decimal(self.rate, "rate")
        if rate < 0:
            raise InvalidArgumentError("rate", "tax rate cannot be negative", self.rate)
        object.__setattr__(self, "rate", rate)
        if (
            self.effective_from is not None
            and self.effective_to is not None
            and self.effective_to < self.effective_from
        ):
            raise InvalidArgumentError(
                "effective_to", "ends before effective_from", self.effective_to
            )

    def is_effective(self, on_date: date | None = None) -> bool:
        """Always True without a date; the engine has no notion of today."""
        if on_date is None:
            return True
        if self.effective_from and on_date < self.effective_from:
            return False
        if self.effective_to and on_date > self.effective_to:
            return False
        return True


@dataclass(frozen=True)
class TaxComponent:
    """A single named tax within a region."""

    name: str
    rate: Decimal

    @property
    def rate_percent(self) -> Decimal:
        return self.rate * Decimal("100")


@dataclass(frozen=True)
class TaxRegion:
    """Resolved tax for one region: every component that applies."""

    region_code: str
    components: tuple[TaxComponent, ...]
    region_name: str | None = None

    @property
    def total_rate(self) -> Decimal:
        return sum((c.rate for c in self.components), Decimal("0"))

    @property
    def display_name(self) -> str:
        return _NAME_SEPARATOR.join(c.name for c in self.components if c.name)

    @property
    def is_exempt(self) -> bool:
        return self.total_rate == 0


@traced_engine("tax", "1.0", fingerprint_fields=("region_code", "on_date"))
def resolve_tax(
    region_code: str,
    tax_table: Iterable[TaxRateRow],
    on_date: date | None = None,
) -> TaxRegion:
    """
    Group the rows that apply to ``region_code``.

    Inactive rows, and rows not effective on ``on_date`` when one is given,
    are ignored. Components keep table order.

    Raises:
        RegionNotFoundError: no applicable row for the region.
    """
    wanted = normalize_region_code(region_code)
    rows = [
        row for row in tax_table
        if row.is_active
        and row.is_effective(on_date)
        and normalize_region_code(row.region_code) == wanted
    ]
    if not rows:
        logger.warning("tax_region_not_found", extra={
            "region_code": wanted,
            "on_date": on_date.isoformat() if on_date else None,
        })
        raise RegionNotFoundError(wanted)

    region = TaxRegion(
        region_code=wanted,
        components=tuple(TaxComponent(name=row.tax_name or "", rate=row.rate) for row in rows),
        region_name=next((row.region_name for row in rows if row.region_name), None),
    )

    logger.info("tax_resolved", extra={
        "region_code": wanted,
        "tax_name": region.display_name,
        "total_rate": str(region.total_rate),
        "component_count": len(region.components),
    })
    return region


def calculate_tax(taxable: Money, region: TaxRegion) -> Money:
    """Tax on ``taxable`` rounded half-up to the currency's minor unit."""
    return (taxable * region.total_rate).round()
