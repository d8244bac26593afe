"""
Text utilities for intake values.

Used by the field resolver to decide whether a candidate is present.
"""

from typing import Any, Optional


def clean_text(value: Any, max_length: Optional[int] = None) -> Optional[str]:
    """
    Clean a scalar intake value for storage.

    - Accepts strings and plain numbers (phone numbers often arrive as ints)
    - Strips whitespace
    - Truncates to max length
    - Returns None for empty/whitespace-only values and anything else

    Args:
        value: Raw value from the booking
        max_length: Maximum characters to keep

    Returns:
        Cleaned text or None
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        value = str(value)

    if not isinstance(value, str):
        return None

    # Strip whitespace
    value = value.strip()

    if not value:
        return None

    # Truncate if too long
    if max_length is not None and len(value) > max_length:
        value = value[:max_length]

    return value


def join_names(first: Any, last: Any) -> Optional[str]:
    """
    Join first and last name parts.

    Both parts must be non-empty after trimming:
    - ("  Ana ", "Reyes") -> "Ana Reyes"
    - ("Ana", "")         -> None
    """
    first_clean = clean_text(first)
    last_clean = clean_text(last)

    if not first_clean or not last_clean:
        return None

    return f"{first_clean} {last_clean}"
