"""
Date range presets for period filters.
"""

from datetime import date, datetime, timedelta
from typing import Optional

from opsdash.models.derived import DateRange

PRESET_DAYS = {
    "7d": 7,
    "30d": 30,
    "90d": 90,
}

PRESETS = ("Today", "7d", "30d", "90d", "YTD", "All")


class UnknownPresetError(ValueError):
    """Raised for a preset name outside PRESETS."""


def preset_range(preset: str, today: Optional[date] = None) -> DateRange:
    """
    Resolve a preset name to ISO date bounds.

    "All" has blank bounds, which the data source treats as unfiltered.

    Example:
        >>> preset_range("7d", date(2026, 10, 19))
        DateRange(start='2026-10-12', end='2026-10-19', preset='7d')
    """
    today = today or datetime.now().date()
    end = today.isoformat()

    if preset == "Today":
        return DateRange(start=end, end=end, preset=preset)
    if preset in PRESET_DAYS:
        start = today - timedelta(days=PRESET_DAYS[preset])
        return DateRange(start=start.isoformat(), end=end, preset=preset)
    if preset == "YTD":
        return DateRange(start=f"{today.year:04d}-01-01", end=end, preset=preset)
    if preset == "All":
        return DateRange(start="", end="", preset=preset)
    raise UnknownPresetError(f"Unknown date range preset: {preset}")


def resolve_range(
    preset: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    default_preset: str = "30d",
    today: Optional[date] = None,
) -> DateRange:
    """Explicit bounds win over a preset; with neither, the default preset applies."""
    if start_date or end_date:
        return DateRange(start=start_date or "", end=end_date or "")
    return preset_range(preset or default_preset, today)
