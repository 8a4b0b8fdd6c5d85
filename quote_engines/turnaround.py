"""
Turnaround Engine - tier eligibility, turnaround fees and delivery dates.

Pure functions with no I/O. "Now", the holiday snapshot and the same-day
eligibility rows are parameters; nothing here reads the clock.

Tiers are a selection, not a workflow. Each tier's gate is evaluated
independently and reported; the engine never downgrades a selection.
Asking for the fee or date of a tier whose gate is closed raises
IneligibleTurnaroundSelectionError.

Gates:
    rush      - not every document notarized; now before the rush cutoff
    same_day  - not every document notarized; an active eligibility row
                for every document type; now before the same-day cutoff;
                today a business day with no same-day blackout
    others    - always available

Usage:
    from quote_engines.turnaround import (
        compute_turnaround_fee, compute_delivery_date, rush_eligible_subtotal,
    )

    base = rush_eligible_subtotal(line_items, "CAD")
    fee = compute_turnaround_fee(rush_tier, base)          # 30% of base
    ready = compute_delivery_date(
        rush_tier, Decimal("2.2"), date(2025, 1, 3), holidays, schedule,
    )
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, tzinfo
from decimal import ROUND_CEILING, Decimal
from enum import Enum
from typing import Iterable, Iterator, Sequence

from quote_engines.calendar import (
    HolidayDates,
    HolidaySet,
    add_business_days,
    is_before_cutoff,
    is_business_day,
    local_time,
)
from quote_engines.line_item import DocumentInput, LineItem
from quote_engines.tracer import traced_engine
from quote_kernel.domain.validation import require_int, to_decimal
from quote_kernel.domain.values import Currency, Money
from quote_kernel.exceptions import (
    IneligibleTurnaroundSelectionError,
    InvalidArgumentError,
    SameDayEligibilityNotFoundError,
)
from quote_kernel.logging_config import get_logger

logger = get_logger("engines.turnaround")

STANDARD = "standard"
RUSH = "rush"
SAME_DAY = "same_day"

_HUNDRED = Decimal("100")


class FeeType(str, Enum):
    """How a tier's fee_value is applied."""

    PERCENTAGE = "percentage"  # of the rush-eligible subtotal
    FLAT = "flat"


class UnavailableReason(str, Enum):
    """Machine-readable reasons a tier is locked."""

    ALL_DOCUMENTS_NOTARIZED = "all_documents_notarized"
    PAST_RUSH_CUTOFF = "past_rush_cutoff"
    PAST_SAME_DAY_CUTOFF = "past_same_day_cutoff"
    NOT_A_BUSINESS_DAY = "not_a_business_day"
    SAME_DAY_BLACKOUT = "same_day_blackout"
    NO_SAME_DAY_ELIGIBILITY = "no_same_day_eligibility"
    NO_SAME_DAY_REQUEST = "no_same_day_request"


# ============================================================================
# Configuration value objects
# ============================================================================


@dataclass(frozen=True)
class TurnaroundTier:
    """
    One selectable turnaround speed.

    ``estimated_days`` is display data (advertised days or reduction);
    delivery dates come from the TurnaroundDaySchedule.
    """

    code: str
    name: str
    fee_type: FeeType
    fee_value: Decimal
    estimated_days: int = 0
    is_rush: bool = False
    is_default: bool = False

    def __post_init__(self) -> None:
        if not self.code or not self.code.strip():
            raise InvalidArgumentError("code", "tier code cannot be empty", self.code)
        try:
            object.__setattr__(self, "fee_type", FeeType(self.fee_type))
        except ValueError as e:
            raise InvalidArgumentError("fee_type", "unknown fee type", self.fee_type) from e
        fee_value = to_decimal(self.fee_value, "fee_value")
        if fee_value < 0:
            raise InvalidArgumentError("fee_value", "cannot be negative", self.fee_value)
        object.__setattr__(self, "fee_value", fee_value)
        require_int(self.estimated_days, "estimated_days", minimum=0)

    @property
    def is_same_day(self) -> bool:
        return self.code == SAME_DAY


@dataclass(frozen=True)
class TurnaroundTierSet:
    """The tiers offered by a regime: unique codes, exactly one default."""

    tiers: tuple[TurnaroundTier, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "tiers", tuple(self.tiers))
        if not self.tiers:
            raise InvalidArgumentError("tiers", "at least one tier is required")
        codes = [t.code for t in self.tiers]
        duplicates = sorted({c for c in codes if codes.count(c) > 1})
        if duplicates:
            raise InvalidArgumentError("tiers", f"duplicate tier codes: {', '.join(duplicates)}")
        defaults = [t.code for t in self.tiers if t.is_default]
        if len(defaults) != 1:
            raise InvalidArgumentError(
                "tiers", f"exactly one default tier required, found {len(defaults)}", defaults
            )

    @property
    def default(self) -> TurnaroundTier:
        return next(t for t in self.tiers if t.is_default)

    @property
    def codes(self) -> tuple[str, ...]:
        return tuple(t.code for t in self.tiers)

    def get(self, code: str) -> TurnaroundTier:
        for tier in self.tiers:
            if tier.code == code:
                return tier
        raise InvalidArgumentError("tier", "unknown turnaround tier", code)

    def __iter__(self) -> Iterator[TurnaroundTier]:
        return iter(self.tiers)

    def __len__(self) -> int:
        return len(self.tiers)


@dataclass(frozen=True)
class TurnaroundDayRule:
    """``base_days`` up to ``base_pages``, plus one day per ``pages_per_extra_day`` beyond."""

    base_days: int
    base_pages: Decimal
    pages_per_extra_day: Decimal

    def __post_init__(self) -> None:
        require_int(self.base_days, "base_days", minimum=0)
        base_pages = to_decimal(self.base_pages, "base_pages")
        if base_pages < 0:
            raise InvalidArgumentError("base_pages", "cannot be negative", self.base_pages)
        per_day = to_decimal(self.pages_per_extra_day, "pages_per_extra_day")
        if per_day <= 0:
            raise InvalidArgumentError(
                "pages_per_extra_day", "must be positive", self.pages_per_extra_day
            )
        object.__setattr__(self, "base_pages", base_pages)
        object.__setattr__(self, "pages_per_extra_day", per_day)

    def days_for(self, billable_pages: Decimal) -> int:
        extra_pages = max(Decimal("0"), billable_pages - self.base_pages)
        extra_days = (extra_pages / self.pages_per_extra_day).to_integral_value(
            rounding=ROUND_CEILING
        )
        return self.base_days + int(extra_days)

    def never_exceeds(self, other: TurnaroundDayRule) -> bool:
        """True when this rule yields no more days than ``other`` for every page count."""
        return (
            self.base_days <= other.base_days
            and self.base_pages >= other.base_pages
            and self.pages_per_extra_day >= other.pages_per_extra_day
        )


@dataclass(frozen=True)
class TurnaroundDaySchedule:
    """
    Day rules per tier: a standard rule, a rush rule and per-code overrides.

    The rush rule (and any override used by a rush tier) must never produce
    more days than the standard rule.
    """

    standard: TurnaroundDayRule
    rush: TurnaroundDayRule
    overrides: tuple[tuple[str, TurnaroundDayRule], ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "overrides", tuple(self.overrides))
        if not self.rush.never_exceeds(self.standard):
            raise InvalidArgumentError(
                "schedule", "rush rule can produce more days than the standard rule"
            )

    def rule_for(self, tier: TurnaroundTier) -> TurnaroundDayRule:
        for code, rule in self.overrides:
            if code == tier.code:
                return rule
        return self.rush if tier.is_rush else self.standard


@dataclass(frozen=True)
class CutoffWindow:
    """Local time-of-day after which a tier stops accepting today's work."""

    hour: int
    minute: int = 0
    weekdays_only: bool = False

    def __post_init__(self) -> None:
        require_int(self.hour, "hour")
        require_int(self.minute, "minute")
        if not 0 <= self.hour <= 23:
            raise InvalidArgumentError("hour", "must be between 0 and 23", self.hour)
        if not 0 <= self.minute <= 59:
            raise InvalidArgumentError("minute", "must be between 0 and 59", self.minute)

    def is_open(self, now: datetime, time_zone: str | tzinfo) -> bool:
        return is_before_cutoff(now, time_zone, self.hour, self.minute, self.weekdays_only)


# ============================================================================
# Same-day eligibility
# ============================================================================


def _norm(value: str) -> str:
    return (value or "").strip().lower()


@dataclass(frozen=True)
class SameDayEligibilityRow:
    """One row of the external same-day eligibility table."""

    source_language: str
    target_language: str
    document_type: str
    intended_use: str
    additional_fee: Money
    is_active: bool = True

    def __post_init__(self) -> None:
        if self.additional_fee.is_negative:
            raise InvalidArgumentError(
                "additional_fee", "cannot be negative", self.additional_fee
            )

    def matches(
        self,
        source_language: str,
        target_language: str,
        document_type: str,
        intended_use: str,
    ) -> bool:
        return (
            self.is_active
            and _norm(self.source_language) == _norm(source_language)
            and _norm(self.target_language) == _norm(target_language)
            and _norm(self.document_type) == _norm(document_type)
            and _norm(self.intended_use) == _norm(intended_use)
        )


@dataclass(frozen=True)
class SameDayRequest:
    """Order attributes the same-day table is keyed on, besides document type."""

    source_language: str
    target_language: str
    intended_use: str


def match_same_day_eligibility(
    rows: Iterable[SameDayEligibilityRow],
    request: SameDayRequest,
    document_types: Iterable[str],
) -> tuple[SameDayEligibilityRow, ...]:
    """
    The matching row for each distinct document type, in first-seen order.

    Raises:
        InvalidArgumentError: no document types given.
        SameDayEligibilityNotFoundError: some document type has no active row.
    """
    distinct: list[str] = []
    for doc_type in document_types:
        if _norm(doc_type) not in (_norm(d) for d in distinct):
            distinct.append(doc_type)
    if not distinct:
        raise InvalidArgumentError("document_types", "at least one document type is required")

    table = tuple(rows)
    matched: list[SameDayEligibilityRow] = []
    missing: list[str] = []
    for doc_type in distinct:
        row = next(
            (
                r for r in table
                if r.matches(
                    request.source_language,
                    request.target_language,
                    doc_type,
                    request.intended_use,
                )
            ),
            None,
        )
        if row is None:
            missing.append(doc_type)
        else:
            matched.append(row)

    if missing:
        raise SameDayEligibilityNotFoundError(
            source_language=request.source_language,
            target_language=request.target_language,
            intended_use=request.intended_use,
            missing_document_types=missing,
        )
    return tuple(matched)


# ============================================================================
# Availability
# ============================================================================


@dataclass(frozen=True)
class TierAvailability:
    code: str
    available: bool
    reasons: tuple[UnavailableReason, ...] = ()


@dataclass(frozen=True)
class TurnaroundAvailability:
    """
    Eligibility of every tier at one instant.

    The presentation layer uses the flags to lock options; the aggregator
    uses ``require`` to refuse a locked selection.
    """

    tiers: tuple[TierAvailability, ...]
    same_day_additional_fee: Money
    local_date: date

    def get(self, code: str) -> TierAvailability | None:
        return next((t for t in self.tiers if t.code == code), None)

    def is_available(self, code: str) -> bool:
        entry = self.get(code)
        return entry is not None and entry.available

    @property
    def available_codes(self) -> tuple[str, ...]:
        return tuple(t.code for t in self.tiers if t.available)

    def require(self, code: str) -> TierAvailability:
        """Return the tier's entry, or raise if it is unknown or locked."""
        entry = self.get(code)
        if entry is None:
            raise IneligibleTurnaroundSelectionError(code, ())
        if not entry.available:
            raise IneligibleTurnaroundSelectionError(code, [r.value for r in entry.reasons])
        return entry


def _all_notarized(documents: Sequence[DocumentInput]) -> bool:
    return bool(documents) and all(d.is_notarized for d in documents)


@traced_engine("turnaround_availability", "1.0", fingerprint_fields=("now", "time_zone"))
def evaluate_turnaround_availability(
    tiers: TurnaroundTierSet,
    documents: Sequence[DocumentInput],
    now: datetime,
    time_zone: str | tzinfo,
    rush_cutoff: CutoffWindow,
    same_day_cutoff: CutoffWindow,
    holidays: HolidaySet,
    eligibility_rows: Iterable[SameDayEligibilityRow] = (),
    same_day_request: SameDayRequest | None = None,
) -> TurnaroundAvailability:
    """
    Evaluate every tier's gate at ``now``.

    ``holidays`` should already be narrowed to the operative region.
    """
    if not documents:
        raise InvalidArgumentError("documents", "at least one document is required")

    currency = documents[0].certification_price.currency
    today = local_time(now, time_zone).date()
    all_notarized = _all_notarized(documents)
    same_day_fee = Money.zero(currency)

    entries: list[TierAvailability] = []
    for tier in tiers:
        reasons: list[UnavailableReason] = []

        if tier.is_same_day:
            if all_notarized:
                reasons.append(UnavailableReason.ALL_DOCUMENTS_NOTARIZED)
            if not same_day_cutoff.is_open(now, time_zone):
                reasons.append(UnavailableReason.PAST_SAME_DAY_CUTOFF)
            if not is_business_day(today, holidays):
                reasons.append(UnavailableReason.NOT_A_BUSINESS_DAY)
            elif holidays.blocks_same_day(today):
                reasons.append(UnavailableReason.SAME_DAY_BLACKOUT)
            if same_day_request is None:
                reasons.append(UnavailableReason.NO_SAME_DAY_REQUEST)
            else:
                try:
                    matched = match_same_day_eligibility(
                        eligibility_rows,
                        same_day_request,
                        [d.document_type for d in documents],
                    )
                except SameDayEligibilityNotFoundError:
                    reasons.append(UnavailableReason.NO_SAME_DAY_ELIGIBILITY)
                else:
                    same_day_fee = Money.total((r.additional_fee for r in matched), currency)

        elif tier.is_rush:
            if all_notarized:
                reasons.append(UnavailableReason.ALL_DOCUMENTS_NOTARIZED)
            if not rush_cutoff.is_open(now, time_zone):
                reasons.append(UnavailableReason.PAST_RUSH_CUTOFF)

        entries.append(TierAvailability(
            code=tier.code,
            available=not reasons,
            reasons=tuple(reasons),
        ))

    availability = TurnaroundAvailability(
        tiers=tuple(entries),
        same_day_additional_fee=same_day_fee,
        local_date=today,
    )

    logger.info("turnaround_availability_evaluated", extra={
        "local_date": today.isoformat(),
        "available": list(availability.available_codes),
        "locked": {t.code: [r.value for r in t.reasons] for t in entries if not t.available},
        "same_day_additional_fee": str(same_day_fee.amount),
    })
    return availability


# ============================================================================
# Fees and dates
# ============================================================================


def rush_eligible_subtotal(line_items: Iterable[LineItem], currency: str | Currency) -> Money:
    """Translation plus certification of every non-notarized line."""
    return Money.total((item.line_total for item in line_items if not item.is_notarized), currency)


def compute_turnaround_fee(
    tier: TurnaroundTier,
    rush_eligible_subtotal: Money,
    same_day_additional_fee: Money | None = None,
) -> Money:
    """
    Unrounded turnaround fee for ``tier``.

    Percentage fees apply to the rush-eligible subtotal only; flat fees
    ignore it. Same-day adds the resolved per-order surcharge.
    """
    currency = rush_eligible_subtotal.currency
    if tier.fee_type == FeeType.PERCENTAGE:
        fee = rush_eligible_subtotal * tier.fee_value / _HUNDRED
    else:
        fee = Money(amount=tier.fee_value, currency=currency)

    if tier.is_same_day and same_day_additional_fee is not None:
        fee = fee + same_day_additional_fee

    logger.debug("turnaround_fee_computed", extra={
        "tier": tier.code,
        "fee_type": tier.fee_type.value,
        "fee_value": str(tier.fee_value),
        "rush_eligible_subtotal": str(rush_eligible_subtotal.amount),
        "fee": str(fee.amount),
    })
    return fee


def compute_turnaround_days(
    tier: TurnaroundTier,
    billable_pages: Decimal,
    schedule: TurnaroundDaySchedule,
) -> int:
    """Business days of work for ``tier``; zero for same-day."""
    if billable_pages < 0:
        raise InvalidArgumentError("billable_pages", "cannot be negative", billable_pages)
    if tier.is_same_day:
        return 0

    days = schedule.rule_for(tier).days_for(billable_pages)
    if tier.is_rush:
        standard_days = schedule.standard.days_for(billable_pages)
        if days > standard_days:
            raise InvalidArgumentError(
                "schedule",
                f"rush tier {tier.code!r} needs {days} days, standard needs {standard_days}",
            )
    return days


def compute_delivery_date(
    tier: TurnaroundTier,
    billable_page_total: Decimal,
    effective_start_date: date,
    holidays: HolidayDates,
    schedule: TurnaroundDaySchedule,
    transit_days: int = 0,
) -> date:
    """
    Date the order reaches the customer.

    Same-day is ready on ``effective_start_date`` itself; other tiers
    advance by their turnaround days. Physical transit days are further
    business days on top.
    """
    require_int(transit_days, "transit_days", minimum=0)
    days = compute_turnaround_days(tier, billable_page_total, schedule)
    ready = effective_start_date if tier.is_same_day else add_business_days(
        effective_start_date, days, holidays
    )
    return add_business_days(ready, transit_days, holidays) if transit_days else ready


# ============================================================================
# Selection
# ============================================================================


@dataclass(frozen=True)
class TurnaroundInputs:
    """Everything the aggregator needs to price and date a tier."""

    availability: TurnaroundAvailability
    schedule: TurnaroundDaySchedule
    effective_start_date: date
    holidays: HolidaySet = field(default_factory=HolidaySet)


@dataclass(frozen=True)
class TurnaroundSelection:
    """Resolved fee and delivery date for the chosen tier."""

    tier_code: str
    fee: Money
    turnaround_days: int
    delivery_date: date


def select_turnaround(
    tier: TurnaroundTier,
    line_items: Sequence[LineItem],
    inputs: TurnaroundInputs,
    transit_days: int = 0,
) -> TurnaroundSelection:
    """
    Fee (rounded to the minor unit) and delivery date for ``tier``.

    Raises:
        IneligibleTurnaroundSelectionError: the tier is locked.
    """
    inputs.availability.require(tier.code)
    if not line_items:
        raise InvalidArgumentError("line_items", "at least one line item is required")

    currency = line_items[0].translation_charge.currency
    pages = sum((item.billable_pages for item in line_items), Decimal("0"))
    fee = compute_turnaround_fee(
        tier,
        rush_eligible_subtotal(line_items, currency),
        inputs.availability.same_day_additional_fee,
    ).round()
    days = compute_turnaround_days(tier, pages, inputs.schedule)
    delivery_date = compute_delivery_date(
        tier, pages, inputs.effective_start_date, inputs.holidays, inputs.schedule, transit_days
    )
    return TurnaroundSelection(
        tier_code=tier.code,
        fee=fee,
        turnaround_days=days,
        delivery_date=delivery_date,
    )
