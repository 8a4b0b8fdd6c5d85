"""
Quote Aggregator - combine line items, turnaround, delivery and tax.

Pure functions with deterministic behavior. No I/O.

This is the single pricing path for every call site. Rounding happens at
fixed boundaries only:

    per document     translation charge ceil'd to the regime's rounding unit
    per adjustment   rounded to the currency minor unit
    turnaround fee   rounded to the minor unit before it enters taxable
    tax, total       rounded half-up to the minor unit

Order of operations:

    subtotal = translation_total + certification_total
    taxable  = subtotal + adjustments + turnaround_fee + delivery_fee
    tax      = round(taxable * rate)
    total    = round(taxable + tax)

Usage:
    result = aggregate(
        documents=[doc],
        tier=regime.tiers.get("rush"),
        turnaround=TurnaroundInputs(availability, regime.schedule, start, holidays),
        delivery=resolve_delivery(regime.delivery_options, physical_code="pickup"),
        tax_region=resolve_tax(region_code="AB", tax_table=rows),
        pricing=regime.line_items,
    )
    print(result.total)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Sequence

from quote_engines.adjustments import QuoteAdjustment, compute_adjustments
from quote_engines.delivery import DeliverySelection
from quote_engines.line_item import DocumentInput, LineItem, LineItemPricing, compute_line_item
from quote_engines.tax import TaxRegion, calculate_tax
from quote_engines.tracer import traced_engine
from quote_engines.turnaround import TurnaroundInputs, TurnaroundTier, select_turnaround
from quote_kernel.domain.validation import require_int
from quote_kernel.domain.values import Currency, Money
from quote_kernel.exceptions import InvalidArgumentError
from quote_kernel.logging_config import get_logger

logger = get_logger("engines.aggregator")


@dataclass(frozen=True)
class QuoteCertification:
    """Certification charged once per quote rather than per document."""

    name: str
    unit_price: Money
    quantity: int = 1

    def __post_init__(self) -> None:
        require_int(self.quantity, "quantity", minimum=1)
        if self.unit_price.is_negative:
            raise InvalidArgumentError("unit_price", "cannot be negative", self.unit_price)

    @property
    def total(self) -> Money:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class PricingResult:
    """
    Immutable price breakdown and delivery estimate for one quote.

    Currency fields are rounded to the minor unit; ``line_items`` keep
    their per-document values.
    """

    currency: Currency
    line_items: tuple[LineItem, ...]
    billable_pages_total: Decimal
    translation_total: Money
    certification_total: Money
    subtotal: Money
    surcharge_total: Money
    discount_total: Money
    adjustments_total: Money
    turnaround_code: str
    turnaround_fee: Money
    turnaround_days: int
    delivery_fee: Money
    taxable_amount: Money
    tax_region_code: str
    tax_rate: Decimal
    tax_name: str
    tax_amount: Money
    total: Money
    estimated_delivery_date: date


@traced_engine(
    "aggregator",
    "1.0",
    fingerprint_fields=("documents", "tier", "tax_region", "adjustments", "quote_certifications"),
)
def aggregate(
    documents: Sequence[DocumentInput],
    tier: TurnaroundTier,
    turnaround: TurnaroundInputs,
    delivery: DeliverySelection,
    tax_region: TaxRegion,
    pricing: LineItemPricing,
    adjustments: Sequence[QuoteAdjustment] = (),
    quote_certifications: Sequence[QuoteCertification] = (),
) -> PricingResult:
    """
    Price a document set for the selected tier, delivery and tax region.

    Raises:
        InvalidArgumentError: no documents, or inputs in another currency.
        IneligibleTurnaroundSelectionError: ``tier`` is locked.
    """
    if not documents:
        raise InvalidArgumentError("documents", "at least one document is required")

    currency = pricing.currency
    for money, argument in [
        (delivery.fee, "delivery"),
        *((c.unit_price, "quote_certifications") for c in quote_certifications),
    ]:
        if money.currency != currency:
            raise InvalidArgumentError(
                argument, f"currency {money.currency} does not match pricing currency {currency}"
            )

    line_items = tuple(compute_line_item(doc, pricing) for doc in documents)
    pages_total = sum((item.billable_pages for item in line_items), Decimal("0"))

    translation_total = Money.total((i.translation_charge for i in line_items), currency).round()
    certification_total = (
        Money.total((i.certification_charge for i in line_items), currency)
        + Money.total((c.total for c in quote_certifications), currency)
    ).round()
    subtotal = translation_total + certification_total

    totals = compute_adjustments(adjustments, subtotal)

    selection = select_turnaround(tier, line_items, turnaround, delivery.transit_days)
    delivery_fee = delivery.fee.round()

    taxable = subtotal + totals.net + selection.fee + delivery_fee
    tax_amount = calculate_tax(taxable, tax_region)
    total = (taxable + tax_amount).round()

    result = PricingResult(
        currency=currency,
        line_items=line_items,
        billable_pages_total=pages_total,
        translation_total=translation_total,
        certification_total=certification_total,
        subtotal=subtotal,
        surcharge_total=totals.surcharge_total,
        discount_total=totals.discount_total,
        adjustments_total=totals.net,
        turnaround_code=tier.code,
        turnaround_fee=selection.fee,
        turnaround_days=selection.turnaround_days,
        delivery_fee=delivery_fee,
        taxable_amount=taxable,
        tax_region_code=tax_region.region_code,
        tax_rate=tax_region.total_rate,
        tax_name=tax_region.display_name,
        tax_amount=tax_amount,
        total=total,
        estimated_delivery_date=selection.delivery_date,
    )

    logger.info("quote_aggregated", extra={
        "document_count": len(line_items),
        "billable_pages_total": str(pages_total),
        "subtotal": str(subtotal.amount),
        "turnaround_code": tier.code,
        "turnaround_fee": str(selection.fee.amount),
        "delivery_fee": str(delivery_fee.amount),
        "tax_region_code": tax_region.region_code,
        "tax_amount": str(tax_amount.amount),
        "total": str(total.amount),
        "currency": currency.code,
        "estimated_delivery_date": selection.delivery_date.isoformat(),
    })
    return result
