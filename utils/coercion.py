"""
Lenient coercion of intake values.

Intake data arrives as strings, numbers or nothing at all. Numbers that do
not parse become None instead of raising, and booleans accept the usual
yes/no spellings.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

TWO_PLACES = Decimal("0.01")

TRUTHY_TOKENS = frozenset({"true", "1", "yes", "y"})
FALSY_TOKENS = frozenset({"false", "0", "no", "n"})


def to_decimal(value: Any) -> Optional[Decimal]:
    """
    Parse a monetary or weight value to a 2-place Decimal.

    Examples:
        "12.3"      -> Decimal("12.30")
        12.345      -> Decimal("12.35")
        "12.345abc" -> None
        ""          -> None

    Args:
        value: Raw value from the booking

    Returns:
        Decimal rounded half-up to 2 places, or None if not a finite number
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float)):
        number = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text or "_" in text:
            return None
        try:
            number = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None

    if not number.is_finite():
        return None

    # Beyond the context precision quantize cannot hold 2 places
    try:
        return number.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return None


def to_positive_int(value: Any) -> Optional[int]:
    """Parse a count; anything that is not a positive whole number is None."""
    number = to_decimal(value)
    if number is None or number <= 0 or number != number.to_integral_value():
        return None
    return int(number)


def normalize_boolean(value: Any) -> Optional[bool]:
    """
    Coerce a flag that may arrive as a string or number.

    Recognized tokens (case-insensitive): true/1/yes/y and false/0/no/n.
    Any other value falls back to plain truthiness.

    Returns:
        bool, or None when value is None
    """
    if value is None:
        return None
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUTHY_TOKENS:
            return True
        if lowered in FALSY_TOKENS:
            return False
    return bool(value)
