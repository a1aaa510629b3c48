"""
Money Utilities - Safe Decimal operations for prices and quantities.

Avoids float precision issues by using Decimal throughout.
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Union

Number = Union[str, int, float, Decimal]

# Default precision for money operations (2 decimal places)
MONEY_PRECISION = Decimal("0.01")


def is_numeric(value: object) -> bool:
    """
    Check whether a value can be used as a number.

    Accepts ints, floats, Decimals and numeric strings. Booleans, NaN and
    infinities are rejected.
    """
    if isinstance(value, bool) or value is None:
        return False
    if not isinstance(value, (str, int, float, Decimal)):
        return False
    try:
        number = Decimal(str(value).strip()) if isinstance(value, (str, float)) else Decimal(value)
    except (InvalidOperation, ValueError):
        return False
    return number.is_finite()


def to_decimal(value: Union[Number, None]) -> Decimal:
    """
    Convert any value to Decimal safely.

    Args:
        value: Value to convert (str, int, float, Decimal, or None)

    Returns:
        Decimal representation of the value, or Decimal("0") if None/invalid
    """
    if value is None:
        return Decimal("0")

    if isinstance(value, Decimal):
        return value

    try:
        # Convert via string to avoid float precision issues
        if isinstance(value, float):
            return Decimal(str(value))
        if isinstance(value, str):
            return Decimal(value.strip())
        return Decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        return Decimal("0")


def to_quantity(value: Number) -> int | None:
    """
    Convert a numeric value to a whole quantity.

    Returns:
        The integer quantity, or None when the value has a fractional part
    """
    number = to_decimal(value)
    if number != number.to_integral_value():
        return None
    return int(number)


def round_money(value: Number) -> Decimal:
    """Round monetary value to two decimal places."""
    return to_decimal(value).quantize(MONEY_PRECISION, rounding=ROUND_HALF_UP)


def multiply(value: Number, factor: Number) -> Decimal:
    """Safe multiplication of monetary value by a factor."""
    return to_decimal(value) * to_decimal(factor)
