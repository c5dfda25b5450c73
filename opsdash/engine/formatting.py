"""
Display formatting for KPI values, dates and durations.

Every formatter accepts loosely-typed input and returns the "—" placeholder
instead of raising or producing NaN/Infinity.
"""

from datetime import datetime
from typing import Any, Optional

from opsdash.engine.coercion import parse_timestamp, to_float

PLACEHOLDER = "—"


def safe_ratio(numerator: Any, denominator: Any) -> Optional[float]:
    """numerator / denominator, or None when either is missing or the denominator is zero."""
    num = to_float(numerator)
    den = to_float(denominator)
    if num is None or not den:
        return None
    return num / den


def format_number(value: Any) -> str:
    """Locale-grouped number: 1234 -> "1,234", 1234.5 -> "1,234.5"."""
    number = to_float(value)
    if number is None:
        return PLACEHOLDER
    if number.is_integer():
        return f"{int(number):,}"
    return f"{number:,.3f}".rstrip("0").rstrip(".")


def format_currency(value: Any) -> str:
    """Dollar amount with two decimals: 1234.5 -> "$1,234.50"."""
    number = to_float(value)
    if number is None:
        return PLACEHOLDER
    sign = "-" if number < 0 else ""
    return f"{sign}${abs(number):,.2f}"


def format_percent(numerator: Any, denominator: Any, decimals: int = 0) -> str:
    """Share as a percentage ("20%", "12.5%"); "—" for a zero denominator."""
    ratio = safe_ratio(numerator, denominator)
    if ratio is None:
        return PLACEHOLDER
    return f"{ratio * 100:.{decimals}f}%"


def format_duration(ms: Any) -> str:
    """Milliseconds as "3m 12s" or "45s"."""
    number = to_float(ms)
    if number is None:
        return PLACEHOLDER
    secs = int(number // 1000)
    mins, rem = divmod(secs, 60)
    return f"{mins}m {rem}s" if mins > 0 else f"{secs}s"


def format_date(value: Any) -> str:
    """Short date such as "Oct 19, 2026". Unparseable input is returned unchanged."""
    if value is None or value == "":
        return PLACEHOLDER
    moment = value if isinstance(value, datetime) else parse_timestamp(value)
    if moment is None:
        return str(value)
    return f"{moment:%b} {moment.day}, {moment.year}"


def format_datetime(value: Any) -> str:
    """Short date and time such as "Oct 19, 2026, 2:05 PM"."""
    if value is None or value == "":
        return PLACEHOLDER
    moment = value if isinstance(value, datetime) else parse_timestamp(value)
    if moment is None:
        return str(value)
    hour = moment.hour % 12 or 12
    return f"{format_date(moment)}, {hour}:{moment:%M} {'AM' if moment.hour < 12 else 'PM'}"


def truncate(text: Optional[str], length: int = 50) -> str:
    """Cut text to ``length`` characters, marking the cut with an ellipsis."""
    if not text:
        return ""
    return text[:length] + "…" if len(text) > length else text
