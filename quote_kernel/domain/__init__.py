"""Pure domain primitives: monetary values, currencies and clocks."""

from quote_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from quote_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from quote_kernel.domain.values import Currency, Money

__all__ = [
    "Clock",
    "Currency",
    "CurrencyInfo",
    "CurrencyRegistry",
    "DeterministicClock",
    "Money",
    "SystemClock",
]
