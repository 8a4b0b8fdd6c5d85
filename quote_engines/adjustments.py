"""
Adjustment Engine - staff surcharges and discounts on a quote.

Pure functions with no I/O.

A percentage adjustment is ``value`` percent of the quote subtotal
(translation + certification); a fixed adjustment is ``value`` in the
quote currency. Each calculated amount is rounded to the minor unit
before totalling, so the stored per-adjustment amounts always sum to
the reported totals.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Sequence

from quote_kernel.domain.validation import to_decimal
from quote_kernel.domain.values import Money
from quote_kernel.exceptions import InvalidArgumentError
from quote_kernel.logging_config import get_logger

logger = get_logger("engines.adjustments")

_HUNDRED = Decimal("100")


class AdjustmentKind(str, Enum):
    SURCHARGE = "surcharge"
    DISCOUNT = "discount"


class AdjustmentValueType(str, Enum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"


@dataclass(frozen=True)
class QuoteAdjustment:
    """A manual surcharge or discount; ``value`` is never negative."""

    kind: AdjustmentKind
    value_type: AdjustmentValueType
    value: Decimal
    reason: str = ""

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "kind", AdjustmentKind(self.kind))
            object.__setattr__(self, "value_type", AdjustmentValueType(self.value_type))
        except ValueError as e:
            raise InvalidArgumentError("adjustment", str(e)) from e
        value = to_decimal(self.value, "value")
        if value < 0:
            raise InvalidArgumentError("value", "cannot be negative; use kind", self.value)
        object.__setattr__(self, "value", value)

    def amount_on(self, subtotal: Money) -> Money:
        """Unsigned amount of this adjustment for ``subtotal``."""
        if self.value_type == AdjustmentValueType.PERCENTAGE:
            return (subtotal * self.value / _HUNDRED).round()
        return Money(amount=self.value, currency=subtotal.currency).round()


@dataclass(frozen=True)
class AdjustmentTotals:
    surcharge_total: Money
    discount_total: Money

    @property
    def net(self) -> Money:
        """Surcharges minus discounts; negative when discounts dominate."""
        return self.surcharge_total - self.discount_total


def compute_adjustments(
    adjustments: Sequence[QuoteAdjustment],
    subtotal: Money,
) -> AdjustmentTotals:
    """
    Total surcharges and discounts against ``subtotal``.

    Raises:
        InvalidArgumentError: discounts exceed subtotal plus surcharges.
    """
    currency = subtotal.currency
    surcharges = Money.total(
        (a.amount_on(subtotal) for a in adjustments if a.kind == AdjustmentKind.SURCHARGE),
        currency,
    )
    discounts = Money.total(
        (a.amount_on(subtotal) for a in adjustments if a.kind == AdjustmentKind.DISCOUNT),
        currency,
    )
    if discounts > subtotal + surcharges:
        raise InvalidArgumentError(
            "adjustments",
            f"discounts {discounts} exceed subtotal plus surcharges {subtotal + surcharges}",
        )

    totals = AdjustmentTotals(surcharge_total=surcharges, discount_total=discounts)
    if adjustments:
        logger.debug("adjustments_computed", extra={
            "count": len(adjustments),
            "surcharge_total": str(surcharges.amount),
            "discount_total": str(discounts.amount),
            "net": str(totals.net.amount),
        })
    return totals
