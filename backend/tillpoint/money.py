"""
Money helpers.

All currency amounts are Decimal. Intermediate arithmetic is never rounded;
values are quantized to CENT exactly once, when a figure is reported or
persisted.
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENT = Decimal("0.01")
ZERO = Decimal("0")

# Maximum accepted amount: 9,999,999,999.99 (fits Numeric(12, 2))
MAX_AMOUNT = Decimal("9999999999.99")


def to_decimal(value) -> Decimal:
    """Coerce ints, strings and Decimals to Decimal. Floats go through str() to avoid binary noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError("boolean is not a monetary amount")
    if isinstance(value, float):
        value = str(value)
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"invalid amount: {value!r}") from exc


def quantize(value: Decimal) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format_amount(value: Decimal | None) -> str | None:
    """JSON-safe string form ("27.00")."""
    if value is None:
        return None
    return str(quantize(value))
