"""Currency -- ISO 4217 registry for billing currencies and their minor units."""

from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar


@dataclass(frozen=True)
class CurrencyInfo:
    """Information about a single ISO 4217 currency."""

    code: str
    decimal_places: int
    name: str

    @property
    def minor_unit(self) -> Decimal:
        """Smallest billable amount, used as the Decimal.quantize() exponent."""
        if self.decimal_places == 0:
            return Decimal("1")
        return Decimal("0." + "0" * (self.decimal_places - 1) + "1")


class CurrencyRegistry:
    """Registry of the ISO 4217 currencies quotes can be billed in."""

    _CURRENCIES: ClassVar[dict[str, CurrencyInfo]] = {
        "CAD": CurrencyInfo("CAD", 2, "Canadian Dollar"),
        "USD": CurrencyInfo("USD", 2, "US Dollar"),
        "EUR": CurrencyInfo("EUR", 2, "Euro"),
        "GBP": CurrencyInfo("GBP", 2, "Pound Sterling"),
        "AUD": CurrencyInfo("AUD", 2, "Australian Dollar"),
        "NZD": CurrencyInfo("NZD", 2, "New Zealand Dollar"),
        "CHF": CurrencyInfo("CHF", 2, "Swiss Franc"),
        "MXN": CurrencyInfo("MXN", 2, "Mexican Peso"),
        "INR": CurrencyInfo("INR", 2, "Indian Rupee"),
        "CNY": CurrencyInfo("CNY", 2, "Chinese Yuan"),
        # Zero decimal currencies
        "JPY": CurrencyInfo("JPY", 0, "Japanese Yen"),
        "KRW": CurrencyInfo("KRW", 0, "South Korean Won"),
        # Three decimal currencies
        "KWD": CurrencyInfo("KWD", 3, "Kuwaiti Dinar"),
        "BHD": CurrencyInfo("BHD", 3, "Bahraini Dinar"),
    }

    # Default decimal places for unknown currencies
    DEFAULT_DECIMAL_PLACES: ClassVar[int] = 2

    @classmethod
    def is_valid(cls, code: str) -> bool:
        """Check if a currency code is a supported ISO 4217 code."""
        if not code or not isinstance(code, str):
            return False
        return code.upper().strip() in cls._CURRENCIES

    @classmethod
    def get_info(cls, code: str) -> CurrencyInfo | None:
        """Get currency information by code."""
        if not code or not isinstance(code, str):
            return None
        return cls._CURRENCIES.get(code.upper().strip())

    @classmethod
    def get_decimal_places(cls, code: str) -> int:
        """Get decimal places for a currency."""
        info = cls.get_info(code)
        return info.decimal_places if info else cls.DEFAULT_DECIMAL_PLACES

    @classmethod
    def all_codes(cls) -> frozenset[str]:
        """Get all supported currency codes."""
        return frozenset(cls._CURRENCIES.keys())
