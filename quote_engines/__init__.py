"""
Module: quote_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    pricing, tax and scheduling engines. This is the import surface for
    quote_services and for any call site that prices a quote.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import quote_kernel (and sibling engine modules).
    MUST NOT import quote_config or quote_services.

Invariants enforced:
    - Purity: engines never call ``datetime.now()`` or ``date.today()``.
      "Now" is an explicit, timezone-aware parameter.
    - Decimal-only arithmetic: money is ``Money``; floats are refused.
    - Determinism: identical inputs always produce identical outputs.

Failure modes:
    - InvalidArgumentError for malformed input or configuration.
    - RegionNotFoundError when no tax row matches the billing region.
    - IneligibleTurnaroundSelectionError for a locked tier.

Usage:
    from quote_engines import aggregate, resolve_tax, resolve_delivery
    from quote_engines import evaluate_turnaround_availability, TurnaroundInputs
"""

from quote_kernel.logging_config import get_logger

logger = get_logger("engines")

from quote_engines.adjustments import (
    AdjustmentKind,
    AdjustmentTotals,
    AdjustmentValueType,
    QuoteAdjustment,
    compute_adjustments,
)
from quote_engines.aggregator import (
    PricingResult,
    QuoteCertification,
    aggregate,
)
from quote_engines.calendar import (
    Holiday,
    HolidaySet,
    add_business_days,
    is_before_cutoff,
    is_business_day,
    next_business_day,
    resolve_effective_start_date,
)
from quote_engines.delivery import (
    DeliveryGroup,
    DeliveryOption,
    DeliverySelection,
    resolve_delivery,
)
from quote_engines.line_item import (
    ComplexityTable,
    ComplexityTier,
    DocumentInput,
    LineItem,
    LineItemPricing,
    compute_billable_pages,
    compute_line_item,
    compute_translation_charge,
)
from quote_engines.tax import (
    TaxComponent,
    TaxRateRow,
    TaxRegion,
    calculate_tax,
    normalize_region_code,
    resolve_tax,
)
from quote_engines.tracer import traced_engine
from quote_engines.turnaround import (
    CutoffWindow,
    FeeType,
    SameDayEligibilityRow,
    SameDayRequest,
    TierAvailability,
    TurnaroundAvailability,
    TurnaroundDayRule,
    TurnaroundDaySchedule,
    TurnaroundInputs,
    TurnaroundSelection,
    TurnaroundTier,
    TurnaroundTierSet,
    UnavailableReason,
    compute_delivery_date,
    compute_turnaround_days,
    compute_turnaround_fee,
    evaluate_turnaround_availability,
    match_same_day_eligibility,
    rush_eligible_subtotal,
    select_turnaround,
)

__all__ = [
    # Adjustments
    "AdjustmentKind",
    "AdjustmentTotals",
    "AdjustmentValueType",
    "QuoteAdjustment",
    "compute_adjustments",
    # Aggregator
    "PricingResult",
    "QuoteCertification",
    "aggregate",
    # Calendar
    "Holiday",
    "HolidaySet",
    "add_business_days",
    "is_before_cutoff",
    "is_business_day",
    "next_business_day",
    "resolve_effective_start_date",
    # Delivery
    "DeliveryGroup",
    "DeliveryOption",
    "DeliverySelection",
    "resolve_delivery",
    # Line items
    "ComplexityTable",
    "ComplexityTier",
    "DocumentInput",
    "LineItem",
    "LineItemPricing",
    "compute_billable_pages",
    "compute_line_item",
    "compute_translation_charge",
    # Tax
    "TaxComponent",
    "TaxRateRow",
    "TaxRegion",
    "calculate_tax",
    "normalize_region_code",
    "resolve_tax",
    # Tracing
    "traced_engine",
    # Turnaround
    "CutoffWindow",
    "FeeType",
    "SameDayEligibilityRow",
    "SameDayRequest",
    "TierAvailability",
    "TurnaroundAvailability",
    "TurnaroundDayRule",
    "TurnaroundDaySchedule",
    "TurnaroundInputs",
    "TurnaroundSelection",
    "TurnaroundTier",
    "TurnaroundTierSet",
    "UnavailableReason",
    "compute_delivery_date",
    "compute_turnaround_days",
    "compute_turnaround_fee",
    "evaluate_turnaround_availability",
    "match_same_day_eligibility",
    "rush_eligible_subtotal",
    "select_turnaround",
]
