"""
Lightweight domain validation helpers.

Pure checks with no I/O. Used at engine and config boundaries so that
rates, multipliers and counts arrive as Decimal or int, never float.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any

from quote_kernel.exceptions import InvalidArgumentError

_COUNTRY_PREFIX = re.compile(r"^[A-Z]{2}-(?P<region>.+)$")


def to_decimal(value: Any, argument: str) -> Decimal:
    """Convert a Decimal, int or numeric string to a finite Decimal."""
    if isinstance(value, (bool, float)):
        raise InvalidArgumentError(argument, "must be Decimal, int or str", value)
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation as e:
        raise InvalidArgumentError(argument, "not a number", value) from e
    if not result.is_finite():
        raise InvalidArgumentError(argument, "must be finite", value)
    return result


def require_int(value: Any, argument: str, minimum: int | None = None) -> int:
    """Reject bools and non-ints, and anything below ``minimum``."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(argument, "must be an integer", value)
    if minimum is not None and value < minimum:
        raise InvalidArgumentError(argument, f"must be at least {minimum}", value)
    return value


def normalize_region_code(region_code: str) -> str:
    """'ca-ab ' -> 'AB'. Codes without a country prefix pass through upper-cased."""
    if not isinstance(region_code, str) or not region_code.strip():
        raise InvalidArgumentError("region_code", "must be a non-empty string", region_code)
    code = region_code.strip().upper()
    match = _COUNTRY_PREFIX.match(code)
    return match.group("region").strip() if match else code
