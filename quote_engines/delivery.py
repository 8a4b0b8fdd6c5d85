"""
Delivery Engine - resolve the customer's delivery choices into a fee.

Pure functions with no I/O.

Digital options (portal, email) are free and may be toggled, except the
ones marked always-selected, which are included on every order. At most
one physical option (mail, courier, pickup) is chosen; its price is the
delivery fee and its ``estimated_days`` are transit business days added
after the translation is ready.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Sequence

from quote_kernel.domain.validation import require_int
from quote_kernel.domain.values import Currency, Money
from quote_kernel.exceptions import InvalidArgumentError
from quote_kernel.logging_config import get_logger

logger = get_logger("engines.delivery")


class DeliveryGroup(str, Enum):
    DIGITAL = "digital"
    PHYSICAL = "physical"


@dataclass(frozen=True)
class DeliveryOption:
    """One configured delivery method."""

    code: str
    name: str
    group: DeliveryGroup
    price: Money
    estimated_days: int = 0
    is_always_selected: bool = False
    requires_address: bool = False

    def __post_init__(self) -> None:
        if not self.code or not self.code.strip():
            raise InvalidArgumentError("code", "delivery option code cannot be empty", self.code)
        try:
            object.__setattr__(self, "group", DeliveryGroup(self.group))
        except ValueError as e:
            raise InvalidArgumentError("group", "unknown delivery group", self.group) from e
        if self.price.is_negative:
            raise InvalidArgumentError("price", "cannot be negative", self.price)
        require_int(self.estimated_days, "estimated_days", minimum=0)
        if self.group == DeliveryGroup.DIGITAL:
            if not self.price.is_zero:
                raise InvalidArgumentError("price", "digital delivery is free", self.price)
            if self.estimated_days:
                raise InvalidArgumentError(
                    "estimated_days", "digital delivery has no transit time", self.estimated_days
                )
        elif self.is_always_selected:
            raise InvalidArgumentError(
                "is_always_selected", "only digital options can be always selected", self.code
            )

    @property
    def is_digital(self) -> bool:
        return self.group == DeliveryGroup.DIGITAL


@dataclass(frozen=True)
class DeliverySelection:
    """Resolved delivery choice for one quote."""

    digital_codes: tuple[str, ...]
    physical: DeliveryOption | None
    fee: Money

    @property
    def transit_days(self) -> int:
        return self.physical.estimated_days if self.physical else 0

    @property
    def requires_address(self) -> bool:
        return self.physical is not None and self.physical.requires_address

    @classmethod
    def digital_only(cls, currency: str | Currency) -> DeliverySelection:
        """No physical option and no fee; for callers without option config."""
        return cls(digital_codes=(), physical=None, fee=Money.zero(currency))


def _index(options: Iterable[DeliveryOption]) -> dict[str, DeliveryOption]:
    indexed: dict[str, DeliveryOption] = {}
    for option in options:
        if option.code in indexed:
            raise InvalidArgumentError("delivery_options", "duplicate option code", option.code)
        indexed[option.code] = option
    return indexed


def resolve_delivery(
    options: Sequence[DeliveryOption],
    physical_code: str | None = None,
    digital_codes: Iterable[str] = (),
) -> DeliverySelection:
    """
    Validate the chosen codes against ``options`` and price them.

    Always-selected digital options are added whether or not they were
    requested.

    Raises:
        InvalidArgumentError: unknown code, a code in the wrong group, or
            no always-selected digital option configured.
    """
    indexed = _index(options)
    always = [o.code for o in options if o.is_digital and o.is_always_selected]
    if not always:
        raise InvalidArgumentError(
            "delivery_options", "no always-selected digital option configured"
        )

    chosen: list[str] = list(always)
    for code in digital_codes:
        option = indexed.get(code)
        if option is None:
            raise InvalidArgumentError("digital_codes", "unknown delivery option", code)
        if not option.is_digital:
            raise InvalidArgumentError("digital_codes", "not a digital option", code)
        if code not in chosen:
            chosen.append(code)

    physical: DeliveryOption | None = None
    if physical_code is not None:
        physical = indexed.get(physical_code)
        if physical is None:
            raise InvalidArgumentError("physical_code", "unknown delivery option", physical_code)
        if physical.is_digital:
            raise InvalidArgumentError("physical_code", "not a physical option", physical_code)

    currency = options[0].price.currency
    fee = physical.price if physical else Money.zero(currency)

    logger.debug("delivery_resolved", extra={
        "digital_codes": chosen,
        "physical_code": physical.code if physical else None,
        "fee": str(fee.amount),
        "transit_days": physical.estimated_days if physical else 0,
    })
    return DeliverySelection(digital_codes=tuple(chosen), physical=physical, fee=fee)
