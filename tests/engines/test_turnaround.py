"""
Tests for the turnaround engine.

Covers:
- Tier set and day schedule validation
- Turnaround fees: percentage, flat, same-day surcharge (Scenario C)
- Notarized documents excluded from the rush-eligible base
- Day counts and delivery dates, including transit days
- Availability gates: cutoffs, notarization, same-day eligibility,
  holidays and blackouts (Scenario E)
"""

from datetime import UTC, date, datetime
from decimal import Decimal

import pytest

from quote_engines.calendar import HolidaySet
from quote_engines.line_item import compute_line_item
from quote_engines.turnaround import (
    CutoffWindow,
    FeeType,
    SameDayRequest,
    TurnaroundDayRule,
    TurnaroundDaySchedule,
    TurnaroundInputs,
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
from quote_kernel.domain.values import Money
from quote_kernel.exceptions import (
    IneligibleTurnaroundSelectionError,
    InvalidArgumentError,
    SameDayEligibilityNotFoundError,
)

EDMONTON = "America/Edmonton"
WED_MORNING = datetime(2025, 1, 8, 17, 0, tzinfo=UTC)    # 10:00 local
WED_AFTERNOON = datetime(2025, 1, 8, 22, 0, tzinfo=UTC)  # 15:00 local
WED_EVENING = datetime(2025, 1, 9, 0, 0, tzinfo=UTC)     # 17:00 local
SAT_MORNING = datetime(2025, 1, 11, 17, 0, tzinfo=UTC)

ES_EN_IRCC = SameDayRequest(source_language="es", target_language="en", intended_use="ircc")


def _cad(amount: str) -> Money:
    return Money.of(amount, "CAD")


class TestTierSet:

    def test_default_tier(self, tiers):
        assert tiers.default.code == "standard"

    def test_lookup(self, tiers):
        assert tiers.get("rush").is_rush

    def test_unknown_code(self, tiers):
        with pytest.raises(InvalidArgumentError):
            tiers.get("overnight")

    def test_two_defaults_rejected(self):
        with pytest.raises(InvalidArgumentError, match="exactly one default"):
            TurnaroundTierSet(tiers=(
                TurnaroundTier("standard", "Standard", "percentage", "0", is_default=True),
                TurnaroundTier("rush", "Rush", "percentage", "30", is_rush=True, is_default=True),
            ))

    def test_no_default_rejected(self):
        with pytest.raises(InvalidArgumentError):
            TurnaroundTierSet(tiers=(
                TurnaroundTier("rush", "Rush", "percentage", "30", is_rush=True),
            ))

    def test_duplicate_codes_rejected(self):
        with pytest.raises(InvalidArgumentError, match="duplicate"):
            TurnaroundTierSet(tiers=(
                TurnaroundTier("standard", "Standard", "percentage", "0", is_default=True),
                TurnaroundTier("standard", "Again", "flat", "10"),
            ))

    def test_negative_fee_rejected(self):
        with pytest.raises(InvalidArgumentError):
            TurnaroundTier("rush", "Rush", FeeType.FLAT, Decimal("-1"))

    def test_unknown_fee_type_rejected(self):
        with pytest.raises(InvalidArgumentError):
            TurnaroundTier("rush", "Rush", "per_word", Decimal("1"))


class TestDaySchedule:

    @pytest.mark.parametrize("pages,expected", [
        ("1.0", 2), ("2.0", 2), ("2.2", 3), ("4.0", 3), ("4.1", 4), ("10.0", 6),
    ])
    def test_standard_days(self, tiers, schedule, pages, expected):
        assert compute_turnaround_days(tiers.get("standard"), Decimal(pages), schedule) == expected

    @pytest.mark.parametrize("pages,expected", [
        ("1.0", 1), ("2.0", 1), ("2.2", 2), ("5.0", 2), ("5.1", 3), ("10.0", 4),
    ])
    def test_rush_days(self, tiers, schedule, pages, expected):
        assert compute_turnaround_days(tiers.get("rush"), Decimal(pages), schedule) == expected

    def test_same_day_is_zero_days(self, tiers, schedule):
        assert compute_turnaround_days(tiers.get("same_day"), Decimal("40"), schedule) == 0

    def test_slower_rush_rule_rejected(self):
        with pytest.raises(InvalidArgumentError, match="rush rule"):
            TurnaroundDaySchedule(
                standard=TurnaroundDayRule(2, Decimal("2"), Decimal("2")),
                rush=TurnaroundDayRule(3, Decimal("2"), Decimal("3")),
            )

    def test_override_used_for_its_tier(self, tiers):
        schedule = TurnaroundDaySchedule(
            standard=TurnaroundDayRule(2, Decimal("2"), Decimal("2")),
            rush=TurnaroundDayRule(1, Decimal("2"), Decimal("3")),
            overrides=(("standard", TurnaroundDayRule(5, Decimal("0"), Decimal("10"))),),
        )
        assert compute_turnaround_days(tiers.get("standard"), Decimal("1.0"), schedule) == 6

    def test_rush_override_slower_than_standard_rejected(self, tiers):
        schedule = TurnaroundDaySchedule(
            standard=TurnaroundDayRule(2, Decimal("2"), Decimal("2")),
            rush=TurnaroundDayRule(1, Decimal("2"), Decimal("3")),
            overrides=(("rush", TurnaroundDayRule(9, Decimal("2"), Decimal("3"))),),
        )
        with pytest.raises(InvalidArgumentError):
            compute_turnaround_days(tiers.get("rush"), Decimal("1.0"), schedule)

    def test_zero_pages_per_extra_day_rejected(self):
        with pytest.raises(InvalidArgumentError):
            TurnaroundDayRule(2, Decimal("2"), Decimal("0"))


class TestDeliveryDate:

    def test_standard_from_friday(self, tiers, schedule):
        # 2.2 pages -> 3 business days: Mon, Tue, Wed.
        result = compute_delivery_date(
            tiers.get("standard"), Decimal("2.2"), date(2025, 1, 3), HolidaySet.empty(), schedule
        )
        assert result == date(2025, 1, 8)

    def test_rush_not_later_than_standard(self, tiers, schedule):
        start = date(2025, 1, 3)
        for pages in ("1.0", "3.3", "7.9", "25.0"):
            rush = compute_delivery_date(
                tiers.get("rush"), Decimal(pages), start, HolidaySet.empty(), schedule
            )
            standard = compute_delivery_date(
                tiers.get("standard"), Decimal(pages), start, HolidaySet.empty(), schedule
            )
            assert rush <= standard

    def test_same_day_is_start_date(self, tiers, schedule):
        start = date(2025, 1, 8)
        result = compute_delivery_date(
            tiers.get("same_day"), Decimal("3.0"), start, HolidaySet.empty(), schedule
        )
        assert result == start

    def test_holiday_pushes_date(self, tiers, schedule):
        result = compute_delivery_date(
            tiers.get("rush"), Decimal("1.0"), date(2025, 1, 3), HolidaySet.of(date(2025, 1, 6)), schedule
        )
        assert result == date(2025, 1, 7)

    def test_transit_days_added(self, tiers, schedule):
        result = compute_delivery_date(
            tiers.get("rush"), Decimal("1.0"), date(2025, 1, 3), HolidaySet.empty(), schedule,
            transit_days=3,
        )
        # Ready Monday 6th, then Tue, Wed, Thu.
        assert result == date(2025, 1, 9)

    def test_same_day_with_transit(self, tiers, schedule):
        result = compute_delivery_date(
            tiers.get("same_day"), Decimal("1.0"), date(2025, 1, 8), HolidaySet.empty(), schedule,
            transit_days=1,
        )
        assert result == date(2025, 1, 9)


class TestTurnaroundFee:

    def test_scenario_c(self, tiers):
        fee = compute_turnaround_fee(tiers.get("rush"), _cad("145.00"))
        assert fee.round() == _cad("43.50")

    def test_standard_is_free(self, tiers):
        assert compute_turnaround_fee(tiers.get("standard"), _cad("500.00")).is_zero

    def test_flat_fee_ignores_subtotal(self):
        tier = TurnaroundTier("express", "Express", FeeType.FLAT, Decimal("25.00"), is_rush=True)
        assert compute_turnaround_fee(tier, _cad("999.00")) == _cad("25.00")

    def test_same_day_adds_surcharge(self, tiers):
        fee = compute_turnaround_fee(tiers.get("same_day"), _cad("145.00"), _cad("10.00"))
        assert fee == _cad("155.00")

    def test_rush_ignores_same_day_surcharge(self, tiers):
        fee = compute_turnaround_fee(tiers.get("rush"), _cad("100.00"), _cad("10.00"))
        assert fee == _cad("30.00")


class TestRushEligibleSubtotal:

    def test_notarized_excluded(self, pricing, document_factory):
        items = [
            compute_line_item(document_factory(word_count=500), pricing),
            compute_line_item(
                document_factory(word_count=500, certification="50.00", is_notarized=True), pricing
            ),
        ]
        assert rush_eligible_subtotal(items, "CAD") == _cad("145.00")

    def test_notarization_equivalence(self, pricing, document_factory, tiers):
        plain = compute_line_item(document_factory(word_count=900), pricing)
        notarized = compute_line_item(
            document_factory(word_count=300, certification="40.00", is_notarized=True), pricing
        )
        rush = tiers.get("rush")

        with_flag = compute_turnaround_fee(rush, rush_eligible_subtotal([plain, notarized], "CAD"))
        without_doc = compute_turnaround_fee(rush, rush_eligible_subtotal([plain], "CAD"))
        assert with_flag == without_doc

    def test_all_notarized_is_zero(self, pricing, document_factory):
        items = [compute_line_item(document_factory(is_notarized=True), pricing)]
        assert rush_eligible_subtotal(items, "CAD").is_zero


class TestSameDayMatching:

    def test_single_type(self, same_day_rows):
        matched = match_same_day_eligibility(same_day_rows, ES_EN_IRCC, ["birth_certificate"])
        assert len(matched) == 1

    def test_every_type_must_match(self, same_day_rows):
        with pytest.raises(SameDayEligibilityNotFoundError) as exc_info:
            match_same_day_eligibility(
                same_day_rows, ES_EN_IRCC, ["birth_certificate", "diploma"]
            )
        assert exc_info.value.missing_document_types == ("diploma",)
        assert exc_info.value.code == "SAME_DAY_ELIGIBILITY_NOT_FOUND"

    def test_inactive_row_does_not_match(self, same_day_rows):
        with pytest.raises(SameDayEligibilityNotFoundError):
            match_same_day_eligibility(same_day_rows, ES_EN_IRCC, ["drivers_license"])

    def test_duplicate_types_matched_once(self, same_day_rows):
        matched = match_same_day_eligibility(
            same_day_rows, ES_EN_IRCC,
            ["birth_certificate", "Birth_Certificate", "marriage_certificate"],
        )
        assert len(matched) == 2

    def test_language_pair_must_match(self, same_day_rows):
        request = SameDayRequest("de", "en", "ircc")
        with pytest.raises(SameDayEligibilityNotFoundError):
            match_same_day_eligibility(same_day_rows, request, ["birth_certificate"])

    def test_no_document_types(self, same_day_rows):
        with pytest.raises(InvalidArgumentError):
            match_same_day_eligibility(same_day_rows, ES_EN_IRCC, [])


class TestAvailability:

    def setup_method(self):
        self.rush_cutoff = CutoffWindow(16, 30)
        self.same_day_cutoff = CutoffWindow(14, 0, weekdays_only=True)

    def _evaluate(self, tiers, documents, now, rows, holidays=None, request=ES_EN_IRCC):
        return evaluate_turnaround_availability(
            tiers=tiers,
            documents=documents,
            now=now,
            time_zone=EDMONTON,
            rush_cutoff=self.rush_cutoff,
            same_day_cutoff=self.same_day_cutoff,
            holidays=holidays if holidays is not None else HolidaySet.empty(),
            eligibility_rows=rows,
            same_day_request=request,
        )

    def test_morning_everything_available(self, tiers, same_day_rows, document_factory):
        docs = [
            document_factory(document_type="birth_certificate"),
            document_factory(document_type="marriage_certificate"),
        ]
        availability = self._evaluate(tiers, docs, WED_MORNING, same_day_rows)

        assert availability.available_codes == ("standard", "rush", "same_day")
        assert availability.same_day_additional_fee == _cad("10.00")
        assert availability.local_date == date(2025, 1, 8)

    def test_scenario_e_same_day_locked_after_cutoff(self, tiers, same_day_rows, document_factory):
        availability = self._evaluate(tiers, [document_factory()], WED_AFTERNOON, same_day_rows)

        assert availability.is_available("rush")
        assert not availability.is_available("same_day")
        assert UnavailableReason.PAST_SAME_DAY_CUTOFF in availability.get("same_day").reasons
        with pytest.raises(IneligibleTurnaroundSelectionError) as exc_info:
            availability.require("same_day")
        assert exc_info.value.tier_code == "same_day"
        assert "past_same_day_cutoff" in exc_info.value.reasons

    def test_rush_locked_after_rush_cutoff(self, tiers, same_day_rows, document_factory):
        availability = self._evaluate(tiers, [document_factory()], WED_EVENING, same_day_rows)

        assert availability.available_codes == ("standard",)
        assert availability.get("rush").reasons == (UnavailableReason.PAST_RUSH_CUTOFF,)

    def test_all_notarized_locks_rush_and_same_day(self, tiers, same_day_rows, document_factory):
        docs = [document_factory(is_notarized=True)]
        availability = self._evaluate(tiers, docs, WED_MORNING, same_day_rows)

        assert availability.available_codes == ("standard",)
        assert UnavailableReason.ALL_DOCUMENTS_NOTARIZED in availability.get("rush").reasons

    def test_partially_notarized_keeps_rush(self, tiers, same_day_rows, document_factory):
        docs = [document_factory(is_notarized=True), document_factory()]
        availability = self._evaluate(tiers, docs, WED_MORNING, same_day_rows)
        assert availability.is_available("rush")

    def test_unmatched_document_type_locks_same_day(self, tiers, same_day_rows, document_factory):
        docs = [document_factory(document_type="birth_certificate"), document_factory(document_type="diploma")]
        availability = self._evaluate(tiers, docs, WED_MORNING, same_day_rows)

        assert availability.get("same_day").reasons == (UnavailableReason.NO_SAME_DAY_ELIGIBILITY,)
        assert availability.same_day_additional_fee.is_zero

    def test_missing_request_locks_same_day(self, tiers, same_day_rows, document_factory):
        availability = self._evaluate(
            tiers, [document_factory()], WED_MORNING, same_day_rows, request=None
        )
        assert UnavailableReason.NO_SAME_DAY_REQUEST in availability.get("same_day").reasons

    def test_holiday_locks_same_day(self, tiers, same_day_rows, document_factory):
        availability = self._evaluate(
            tiers, [document_factory()], WED_MORNING, same_day_rows,
            holidays=HolidaySet.of(date(2025, 1, 8)),
        )
        assert UnavailableReason.NOT_A_BUSINESS_DAY in availability.get("same_day").reasons
        assert availability.is_available("rush")

    def test_blackout_locks_same_day_only(self, tiers, same_day_rows, document_factory):
        availability = self._evaluate(
            tiers, [document_factory()], WED_MORNING, same_day_rows,
            holidays=HolidaySet(same_day_blackouts=frozenset({date(2025, 1, 8)})),
        )
        assert availability.get("same_day").reasons == (UnavailableReason.SAME_DAY_BLACKOUT,)

    def test_weekend_locks_same_day(self, tiers, same_day_rows, document_factory):
        availability = self._evaluate(tiers, [document_factory()], SAT_MORNING, same_day_rows)

        reasons = availability.get("same_day").reasons
        assert UnavailableReason.NOT_A_BUSINESS_DAY in reasons
        assert UnavailableReason.PAST_SAME_DAY_CUTOFF in reasons

    def test_standard_always_available(self, tiers, same_day_rows, document_factory):
        docs = [document_factory(is_notarized=True)]
        availability = self._evaluate(tiers, docs, SAT_MORNING, same_day_rows, request=None)
        assert availability.require("standard").available

    def test_unknown_tier_refused(self, tiers, same_day_rows, document_factory):
        availability = self._evaluate(tiers, [document_factory()], WED_MORNING, same_day_rows)
        with pytest.raises(IneligibleTurnaroundSelectionError):
            availability.require("overnight")

    def test_no_documents_rejected(self, tiers, same_day_rows):
        with pytest.raises(InvalidArgumentError):
            self._evaluate(tiers, [], WED_MORNING, same_day_rows)


class TestSelectTurnaround:

    def test_rush_selection(self, tiers, schedule, pricing, same_day_rows, document_factory):
        docs = [document_factory(word_count=500)]
        availability = evaluate_turnaround_availability(
            tiers=tiers, documents=docs, now=WED_MORNING, time_zone=EDMONTON,
            rush_cutoff=CutoffWindow(16, 30), same_day_cutoff=CutoffWindow(14, 0, True),
            holidays=HolidaySet.empty(), eligibility_rows=same_day_rows,
            same_day_request=ES_EN_IRCC,
        )
        inputs = TurnaroundInputs(availability, schedule, date(2025, 1, 8))
        items = [compute_line_item(d, pricing) for d in docs]

        selection = select_turnaround(tiers.get("rush"), items, inputs)

        assert selection.fee == _cad("43.50")
        assert selection.turnaround_days == 2
        assert selection.delivery_date == date(2025, 1, 10)

    def test_locked_tier_raises(self, tiers, schedule, pricing, same_day_rows, document_factory):
        docs = [document_factory()]
        availability = evaluate_turnaround_availability(
            tiers=tiers, documents=docs, now=WED_AFTERNOON, time_zone=EDMONTON,
            rush_cutoff=CutoffWindow(16, 30), same_day_cutoff=CutoffWindow(14, 0, True),
            holidays=HolidaySet.empty(), eligibility_rows=same_day_rows,
            same_day_request=ES_EN_IRCC,
        )
        inputs = TurnaroundInputs(availability, schedule, date(2025, 1, 8))
        items = [compute_line_item(d, pricing) for d in docs]

        with pytest.raises(IneligibleTurnaroundSelectionError):
            select_turnaround(tiers.get("same_day"), items, inputs)
