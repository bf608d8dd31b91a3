"""
Money Utilities - Safe Decimal operations for cart prices.

Avoids float precision issues by using Decimal throughout.
Floats only appear at JSON boundaries (persisted snapshot, API dicts).
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Union

from shopcart.config import CURRENCY_LABEL

# Default precision for money operations (2 decimal places)
MONEY_PRECISION = Decimal("0.01")

Number = Union[str, int, float, Decimal]


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

    # bool is an int subclass, never a price
    if isinstance(value, bool):
        return Decimal("0")

    try:
        if isinstance(value, float):
            # Use string representation to preserve precision
            return Decimal(str(value))
        return Decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        return Decimal("0")


def parse_price(value: Union[Number, None]) -> Decimal:
    """
    Strict variant of to_decimal for untrusted input.

    Raises:
        ValueError: If the value is not a finite, non-negative number
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, bool):
        raise ValueError(f"price must be a number, got {value!r}")
    try:
        result = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        raise ValueError(f"price must be a number, got {value!r}")
    if not result.is_finite() or result < 0:
        raise ValueError(f"price must be a non-negative number, got {value!r}")
    return result


def round_money(value: Number) -> Decimal:
    """Round monetary value to 2 decimal places (half up)."""
    return to_decimal(value).quantize(MONEY_PRECISION, rounding=ROUND_HALF_UP)


def format_money(value: Number, label: str = CURRENCY_LABEL) -> str:
    """
    Format monetary value with the storefront currency label.

    Example:
        format_money(12.5) -> "RM 12.50"
    """
    return f"{label} {round_money(value):,.2f}"


def to_float(value: Number) -> float:
    """
    Convert Decimal to float for JSON serialization.

    Use only at boundaries, not for internal calculations.
    """
    return float(to_decimal(value))


def add(a: Number, b: Number) -> Decimal:
    """Safe addition of monetary values."""
    return to_decimal(a) + to_decimal(b)


def multiply(value: Number, factor: Number) -> Decimal:
    """Safe multiplication of monetary value by a factor."""
    return to_decimal(value) * to_decimal(factor)


def compare(a: Number, b: Number) -> int:
    """
    Compare two monetary values.

    Returns:
        -1 if a < b, 0 if a == b, 1 if a > b
    """
    diff = to_decimal(a) - to_decimal(b)
    if diff < 0:
        return -1
    elif diff > 0:
        return 1
    return 0
