"""
Document Line Item Engine - billable pages and translation charges.

Pure functions with deterministic behavior. No I/O.

Converts one document's word count and complexity into billable pages and
a translation charge, then adds the document's certification price. The
rates, words-per-page, rounding increment and complexity multipliers are
all configuration passed in through ``LineItemPricing``; nothing here has
an inlined default, so the same engine serves every pricing regime.

Formulas:
    billable_pages     = max(1, ceil(round(words / words_per_page * multiplier, 1) * 10) / 10)
    translation_charge = ceil(billable_pages * base_rate * language_multiplier / unit) * unit
    line_total         = translation_charge + certification_price

Usage:
    from decimal import Decimal
    from quote_engines.line_item import (
        ComplexityTable, ComplexityTier, DocumentInput, LineItemPricing,
        compute_line_item,
    )
    from quote_kernel.domain.values import Money

    pricing = LineItemPricing(
        base_rate_per_page=Money.of("65.00", "CAD"),
        words_per_page=225,
        rounding_unit=Decimal("2.50"),
        complexity=ComplexityTable.of({"simple": "1.0", "standard": "1.0",
                                       "complex": "1.15", "highly_complex": "1.5"}),
    )
    doc = DocumentInput(
        word_count=500,
        complexity=ComplexityTier.STANDARD,
        certification_price=Money.zero("CAD"),
    )
    item = compute_line_item(doc, pricing)
    print(item.billable_pages)      # 2.2
    print(item.translation_charge)  # 145.00 CAD
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Mapping

from quote_kernel.domain.validation import require_int, to_decimal
from quote_kernel.domain.values import Currency, Money
from quote_kernel.exceptions import InvalidArgumentError
from quote_kernel.logging_config import get_logger

logger = get_logger("engines.line_item")


# ============================================================================
# Constants
# ============================================================================

_TENTH = Decimal("0.1")
MIN_BILLABLE_PAGES = Decimal("1.0")


class ComplexityTier(str, Enum):
    """Detected document complexity, each bound to a configured multiplier."""

    SIMPLE = "simple"
    STANDARD = "standard"
    COMPLEX = "complex"
    HIGHLY_COMPLEX = "highly_complex"


def _coerce_tier(value: ComplexityTier | str) -> ComplexityTier:
    try:
        return ComplexityTier(value)
    except ValueError as e:
        raise InvalidArgumentError("complexity", "unknown complexity tier", value) from e


# ============================================================================
# Value Objects
# ============================================================================


@dataclass(frozen=True)
class ComplexityTable:
    """
    Complexity multipliers, one per tier.

    Configuration, not a constant: observed regimes use simple 0.8-1.0,
    standard 1.0, complex 1.15-1.3, highly_complex 1.5.
    """

    multipliers: tuple[tuple[ComplexityTier, Decimal], ...]

    def __post_init__(self) -> None:
        seen: set[ComplexityTier] = set()
        for tier, multiplier in self.multipliers:
            if tier in seen:
                raise InvalidArgumentError("complexity", "duplicate tier", tier.value)
            if multiplier <= 0:
                raise InvalidArgumentError(
                    "complexity", f"multiplier for {tier.value} must be positive", multiplier
                )
            seen.add(tier)
        missing = [t.value for t in ComplexityTier if t not in seen]
        if missing:
            raise InvalidArgumentError("complexity", f"missing tiers: {', '.join(missing)}")

    @classmethod
    def of(cls, multipliers: Mapping[ComplexityTier | str, Decimal | int | str]) -> ComplexityTable:
        pairs = tuple(
            (_coerce_tier(tier), to_decimal(value, f"complexity.{tier}"))
            for tier, value in multipliers.items()
        )
        return cls(multipliers=tuple(sorted(pairs, key=lambda p: p[0].value)))

    def multiplier_for(self, tier: ComplexityTier) -> Decimal:
        for candidate, multiplier in self.multipliers:
            if candidate == tier:
                return multiplier
        raise InvalidArgumentError("complexity", "no multiplier configured", tier)


@dataclass(frozen=True)
class LineItemPricing:
    """
    Per-regime line-item configuration.

    ``language_multiplier`` is the language-pair surcharge applied to the
    per-page rate (1 for the base pair).
    """

    base_rate_per_page: Money
    words_per_page: int
    rounding_unit: Decimal
    complexity: ComplexityTable
    language_multiplier: Decimal = Decimal("1")

    def __post_init__(self) -> None:
        if not self.base_rate_per_page.is_positive:
            raise InvalidArgumentError(
                "base_rate_per_page", "must be positive", self.base_rate_per_page
            )
        require_int(self.words_per_page, "words_per_page", minimum=1)
        unit = to_decimal(self.rounding_unit, "rounding_unit")
        if unit <= 0:
            raise InvalidArgumentError("rounding_unit", "must be positive", self.rounding_unit)
        object.__setattr__(self, "rounding_unit", unit)
        multiplier = to_decimal(self.language_multiplier, "language_multiplier")
        if multiplier <= 0:
            raise InvalidArgumentError(
                "language_multiplier", "must be positive", self.language_multiplier
            )
        object.__setattr__(self, "language_multiplier", multiplier)

    @property
    def currency(self) -> Currency:
        return self.base_rate_per_page.currency

    def with_language_multiplier(self, multiplier: Decimal | int | str) -> LineItemPricing:
        return replace(self, language_multiplier=to_decimal(multiplier, "language_multiplier"))


@dataclass(frozen=True)
class DocumentInput:
    """
    One source document as analysed upstream.

    ``certification_price`` is resolved externally from the requested
    certification type and passed through unchanged.
    """

    word_count: int
    complexity: ComplexityTier
    certification_price: Money
    is_notarized: bool = False
    document_type: str = ""
    label: str = ""

    def __post_init__(self) -> None:
        require_int(self.word_count, "word_count", minimum=0)
        object.__setattr__(self, "complexity", _coerce_tier(self.complexity))
        if self.certification_price.is_negative:
            raise InvalidArgumentError(
                "certification_price", "cannot be negative", self.certification_price
            )


@dataclass(frozen=True)
class LineItem:
    """Priced line for one document."""

    document: DocumentInput
    billable_pages: Decimal
    translation_charge: Money
    certification_charge: Money

    @property
    def line_total(self) -> Money:
        return self.translation_charge + self.certification_charge

    @property
    def is_notarized(self) -> bool:
        return self.document.is_notarized


# ============================================================================
# Calculations
# ============================================================================


def compute_billable_pages(
    word_count: int,
    complexity_multiplier: Decimal,
    words_per_page: int,
) -> Decimal:
    """
    Billable page-equivalents for a word count.

    Rounded half-up to one decimal, then never less than one page: an
    empty or near-empty document still carries a one-page minimum charge.
    """
    if words_per_page <= 0:
        raise InvalidArgumentError("words_per_page", "must be positive", words_per_page)
    if word_count < 0:
        raise InvalidArgumentError("word_count", "cannot be negative", word_count)
    if complexity_multiplier <= 0:
        raise InvalidArgumentError(
            "complexity_multiplier", "must be positive", complexity_multiplier
        )

    raw = Decimal(word_count) / Decimal(words_per_page) * complexity_multiplier
    rounded = raw.quantize(_TENTH, rounding=ROUND_HALF_UP)
    tenths = (rounded * 10).to_integral_value(rounding=ROUND_CEILING)
    pages = max(MIN_BILLABLE_PAGES, tenths / 10)
    return pages.quantize(_TENTH)


def compute_translation_charge(billable_pages: Decimal, pricing: LineItemPricing) -> Money:
    """Per-page charge rounded UP to the regime's rounding increment."""
    raw = pricing.base_rate_per_page * billable_pages * pricing.language_multiplier
    return raw.ceil_to(pricing.rounding_unit)


def compute_line_item(document: DocumentInput, pricing: LineItemPricing) -> LineItem:
    """Price a single document."""
    if document.certification_price.currency != pricing.currency:
        raise InvalidArgumentError(
            "certification_price",
            f"currency {document.certification_price.currency} does not match "
            f"pricing currency {pricing.currency}",
        )

    multiplier = pricing.complexity.multiplier_for(document.complexity)
    pages = compute_billable_pages(document.word_count, multiplier, pricing.words_per_page)
    translation = compute_translation_charge(pages, pricing)

    logger.debug("line_item_computed", extra={
        "label": document.label,
        "word_count": document.word_count,
        "complexity": document.complexity.value,
        "billable_pages": str(pages),
        "translation_charge": str(translation.amount),
        "certification_charge": str(document.certification_price.amount),
        "is_notarized": document.is_notarized,
    })

    return LineItem(
        document=document,
        billable_pages=pages,
        translation_charge=translation,
        certification_charge=document.certification_price,
    )
