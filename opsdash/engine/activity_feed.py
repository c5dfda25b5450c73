"""
Activity Feed: the most recent operations as a timeline.
"""

from datetime import datetime
from typing import Any, Callable, Optional, Sequence

from opsdash.engine.coercion import parse_timestamp, to_text
from opsdash.engine.formatting import format_currency, format_date, truncate
from opsdash.models.derived import ActivityFeedItem
from opsdash.models.enums import OperationStatus
from opsdash.models.records import OperationLogEntry

DEFAULT_FEED_LIMIT = 20

ERROR_ICON = "🔴"
DEFAULT_ICON = "📝"


def _mentions(*words: str) -> Callable[[str], bool]:
    return lambda action: any(word in action for word in words)


# Evaluated in order; the first matching rule wins.
ICON_RULES: tuple[tuple[Callable[[str], bool], str], ...] = (
    (_mentions("create", "add"), "➕"),
    (_mentions("update", "edit"), "✏️"),
    (_mentions("delete", "remove"), "🗑️"),
    (_mentions("call", "phone"), "📞"),
    (_mentions("email", "send"), "📧"),
    (_mentions("search", "lookup"), "🔍"),
    (_mentions("schedule", "appointment"), "📅"),
)


def activity_icon(action: Optional[str], status: Optional[str]) -> str:
    """Pick the icon for a log entry: errors first, then action keywords."""
    if status == OperationStatus.ERROR.value:
        return ERROR_ICON
    if not action:
        return DEFAULT_ICON
    lowered = action.lower()
    for matches, icon in ICON_RULES:
        if matches(lowered):
            return icon
    return DEFAULT_ICON


def relative_time(value: Any, now: datetime) -> str:
    """
    Human relative label for a timestamp.

    "just now", "5m ago", "3h ago", "2d ago", then an absolute short date
    from a week on. Missing input gives ""; unparseable input is echoed back.
    """
    text = to_text(value)
    if text is None:
        return ""
    moment = parse_timestamp(text)
    if moment is None:
        return text

    elapsed = (now - moment).total_seconds()
    minutes = int(elapsed // 60)
    hours = int(elapsed // 3600)
    days = int(elapsed // 86400)

    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    if days < 7:
        return f"{days}d ago"
    return format_date(moment)


def latest_entries(
    logs: Sequence[OperationLogEntry], limit: int = DEFAULT_FEED_LIMIT
) -> list[OperationLogEntry]:
    """Newest entries first (ISO string order on date_time), at most ``limit``."""
    ordered = sorted(logs, key=lambda l: l.date_time or "", reverse=True)
    return ordered[:limit]


def build_activity_feed(
    logs: Sequence[OperationLogEntry],
    now: datetime,
    limit: int = DEFAULT_FEED_LIMIT,
) -> list[ActivityFeedItem]:
    """
    Format the newest operation log entries for the timeline.

    Args:
        logs: Operation log entries for the period
        now: Reference time for relative labels
        limit: Maximum number of entries

    Returns:
        Feed items, newest first
    """
    return [
        ActivityFeedItem(
            icon=activity_icon(entry.action, entry.status),
            entity=entry.entity or "System",
            action=entry.action or "activity",
            status=entry.status,
            notes=truncate(entry.notes, 50),
            cost=format_currency(entry.cost) if entry.cost else "",
            timestamp=entry.date_time,
            relative_time=relative_time(entry.date_time, now),
        )
        for entry in latest_entries(logs, limit)
    ]
