"""
Coercion helpers for loosely-typed backend records.

The automation backend returns numbers as strings, booleans as "true"/"false"
and blanks for missing values. These helpers normalize such values once, at
the record-model boundary, so the engine works with canonical types. None of
them raise on malformed input.
"""

import math
from datetime import date, datetime
from typing import Any, Optional

TRUE_STRINGS = frozenset({"true", "yes", "1", "y", "t"})
FALSE_STRINGS = frozenset({"false", "no", "0", "n", "f"})


def blank_to_none(value: Any) -> Any:
    """Map empty / whitespace-only strings to None."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


def to_text(value: Any) -> Optional[str]:
    """Coerce a scalar to a stripped string, or None when blank."""
    value = blank_to_none(value)
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (dict, list)):
        return None
    return str(value)


def to_float(value: Any) -> Optional[float]:
    """
    Coerce a numeric-looking value to float.

    Returns None for missing, non-numeric, NaN or infinite input.

    Example:
        >>> to_float("12.50")
        12.5
        >>> to_float("n/a") is None
        True
    """
    value = blank_to_none(value)
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().replace(",", "").lstrip("$")
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def to_bool(value: Any) -> Optional[bool]:
    """Coerce true/false flags that may arrive as strings or numbers."""
    value = blank_to_none(value)
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
    return None


def to_local_naive(moment: datetime) -> datetime:
    """Convert an aware datetime to naive local time; naive input is returned as-is."""
    if moment.tzinfo is not None:
        return moment.astimezone().replace(tzinfo=None)
    return moment


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 date or timestamp into a naive local datetime.

    Timestamps without an offset are taken as local time. Returns None when
    the value is missing or unparseable.
    """
    if isinstance(value, datetime):
        return to_local_naive(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = to_text(value)
    if text is None:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return to_local_naive(parsed)
