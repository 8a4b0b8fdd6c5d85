"""
quote_services.quote_service -- Call-site facade over the pricing engines.

Responsibility:
    Price a quote the same way for every call site (customer wizard,
    staff order edit, server-side recalculation). Reads "now" once per
    call from an injected Clock, threads the caller's reference snapshot
    (tax rows, holidays, same-day eligibility rows) into the pure engines,
    and pins the result to the pricing regime's checksum.

Architecture position:
    Services -- orchestration over engines + config. Owns no storage:
    callers fetch reference data and persist the outcome themselves.

Invariants enforced:
    - Single clock read: availability, effective start date and tax
      effective date all derive from the same instant.
    - Holidays are narrowed to the billing region before any
      business-day arithmetic.
    - A locked tier is refused, never downgraded.

Failure modes:
    - RegionNotFoundError when no tax row matches the billing region;
      falling back to another region is the caller's decision.
    - IneligibleTurnaroundSelectionError for a locked tier.
    - InvalidArgumentError for malformed requests (no documents, unknown
      tier or delivery code).

Usage:
    from quote_config import get_pricing_regime
    from quote_services import QuotePricingService, QuoteRequest, ReferenceSnapshot

    service = QuotePricingService(get_pricing_regime())
    outcome = service.price(request, ReferenceSnapshot(tax_rates=rows))
    print(outcome.result.total, outcome.result.estimated_delivery_date)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from quote_config.schema import PricingRegime
from quote_engines.adjustments import QuoteAdjustment
from quote_engines.aggregator import PricingResult, QuoteCertification, aggregate
from quote_engines.calendar import HolidaySet, local_date, resolve_effective_start_date
from quote_engines.delivery import DeliverySelection, resolve_delivery
from quote_engines.line_item import DocumentInput
from quote_engines.tax import TaxRateRow, resolve_tax
from quote_engines.turnaround import (
    SameDayEligibilityRow,
    SameDayRequest,
    TurnaroundAvailability,
    TurnaroundInputs,
    TurnaroundTier,
    evaluate_turnaround_availability,
)
from quote_kernel.domain.clock import Clock, SystemClock
from quote_kernel.domain.validation import normalize_region_code
from quote_kernel.exceptions import InvalidArgumentError
from quote_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.quote")


@dataclass(frozen=True)
class QuoteRequest:
    """What the customer (or staff member) asked for."""

    quote_id: str
    documents: tuple[DocumentInput, ...]
    billing_region: str
    turnaround_code: str | None = None
    source_language: str = ""
    target_language: str = ""
    intended_use: str = ""
    physical_delivery_code: str | None = None
    digital_delivery_codes: tuple[str, ...] = ()
    adjustments: tuple[QuoteAdjustment, ...] = ()
    quote_certifications: tuple[QuoteCertification, ...] = ()
    language_multiplier_override: Decimal | None = None
    call_site: str = "quote_wizard"

    def __post_init__(self) -> None:
        object.__setattr__(self, "documents", tuple(self.documents))
        object.__setattr__(self, "digital_delivery_codes", tuple(self.digital_delivery_codes))
        object.__setattr__(self, "adjustments", tuple(self.adjustments))
        object.__setattr__(self, "quote_certifications", tuple(self.quote_certifications))
        if not self.documents:
            raise InvalidArgumentError("documents", "at least one document is required")

    @property
    def same_day_request(self) -> SameDayRequest | None:
        if not (self.source_language and self.target_language and self.intended_use):
            return None
        return SameDayRequest(
            source_language=self.source_language,
            target_language=self.target_language,
            intended_use=self.intended_use,
        )


@dataclass(frozen=True)
class ReferenceSnapshot:
    """Reference rows the caller fetched for this one computation."""

    tax_rates: tuple[TaxRateRow, ...]
    holidays: HolidaySet = field(default_factory=HolidaySet)
    same_day_rows: tuple[SameDayEligibilityRow, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "tax_rates", tuple(self.tax_rates))
        object.__setattr__(self, "same_day_rows", tuple(self.same_day_rows))


@dataclass(frozen=True)
class QuoteOutcome:
    result: PricingResult
    availability: TurnaroundAvailability
    regime_name: str
    regime_checksum: str
    priced_at: datetime


class QuotePricingService:
    """
    Prices quotes against one pricing regime.

    Holds no per-quote state; one instance can serve concurrent callers.
    """

    def __init__(self, regime: PricingRegime, clock: Clock | None = None):
        self._regime = regime
        self._clock = clock or SystemClock()

    @property
    def regime(self) -> PricingRegime:
        return self._regime

    def availability(
        self,
        request: QuoteRequest,
        reference: ReferenceSnapshot,
    ) -> TurnaroundAvailability:
        """Per-tier eligibility flags for the presentation layer."""
        now = self._clock.now()
        with LogContext.bind(quote_id=request.quote_id, call_site=request.call_site):
            holidays = self._holidays_for(request, reference)
            return self._evaluate(request, reference, holidays, now)

    def price(
        self,
        request: QuoteRequest,
        reference: ReferenceSnapshot,
    ) -> QuoteOutcome:
        """
        Full price breakdown and delivery estimate.

        Raises:
            RegionNotFoundError: no tax rows for the billing region.
            IneligibleTurnaroundSelectionError: the requested tier is locked.
        """
        regime = self._regime
        now = self._clock.now()

        with LogContext.bind(quote_id=request.quote_id, call_site=request.call_site):
            region_code = normalize_region_code(request.billing_region)
            holidays = self._holidays_for(request, reference)
            availability = self._evaluate(request, reference, holidays, now)

            tier = self._tier_for(request)
            start = resolve_effective_start_date(
                now,
                regime.time_zone,
                regime.daily_cutoff.hour,
                regime.daily_cutoff.minute,
            )
            delivery = self._delivery_for(request)
            tax_region = resolve_tax(
                region_code=region_code,
                tax_table=reference.tax_rates,
                on_date=local_date(now, regime.time_zone),
            )

            result = aggregate(
                documents=request.documents,
                tier=tier,
                turnaround=TurnaroundInputs(
                    availability=availability,
                    schedule=regime.schedule,
                    effective_start_date=start,
                    holidays=holidays,
                ),
                delivery=delivery,
                tax_region=tax_region,
                pricing=regime.pricing_for(
                    request.source_language, request.language_multiplier_override
                ),
                adjustments=request.adjustments,
                quote_certifications=request.quote_certifications,
            )

            logger.info("quote_priced", extra={
                "regime": regime.name,
                "regime_checksum": regime.checksum,
                "turnaround_code": tier.code,
                "total": str(result.total.amount),
                "currency": result.currency.code,
                "estimated_delivery_date": result.estimated_delivery_date.isoformat(),
            })

        return QuoteOutcome(
            result=result,
            availability=availability,
            regime_name=regime.name,
            regime_checksum=regime.checksum,
            priced_at=now,
        )

    # ------------------------------------------------------------------

    def _holidays_for(self, request: QuoteRequest, reference: ReferenceSnapshot) -> HolidaySet:
        return reference.holidays.for_region(request.billing_region)

    def _evaluate(
        self,
        request: QuoteRequest,
        reference: ReferenceSnapshot,
        holidays: HolidaySet,
        now: datetime,
    ) -> TurnaroundAvailability:
        regime = self._regime
        return evaluate_turnaround_availability(
            tiers=regime.tiers,
            documents=request.documents,
            now=now,
            time_zone=regime.time_zone,
            rush_cutoff=regime.rush_cutoff,
            same_day_cutoff=regime.same_day_cutoff,
            holidays=holidays,
            eligibility_rows=reference.same_day_rows,
            same_day_request=request.same_day_request,
        )

    def _tier_for(self, request: QuoteRequest) -> TurnaroundTier:
        if request.turnaround_code is None:
            return self._regime.tiers.default
        return self._regime.tiers.get(request.turnaround_code)

    def _delivery_for(self, request: QuoteRequest) -> DeliverySelection:
        if not self._regime.delivery_options:
            if request.physical_delivery_code or request.digital_delivery_codes:
                raise InvalidArgumentError(
                    "delivery", "regime has no delivery options configured"
                )
            return DeliverySelection.digital_only(self._regime.currency)
        return resolve_delivery(
            self._regime.delivery_options,
            physical_code=request.physical_delivery_code,
            digital_codes=request.digital_delivery_codes,
        )
