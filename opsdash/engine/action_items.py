"""
Action items and system status for the command center side panels.
"""

from typing import Sequence

from opsdash.engine.correlation import DEFAULT_APPOINTMENT_STATUSES, eligible_contacts
from opsdash.models.derived import ActionItem, SystemStatus
from opsdash.models.enums import ActionColor
from opsdash.models.records import Contact, OperationLogEntry

# Error share above which the system needs attention
ATTENTION_ERROR_RATE = 0.10


def build_action_items(
    contacts: Sequence[Contact],
    logs: Sequence[OperationLogEntry],
    statuses: Sequence[str] = DEFAULT_APPOINTMENT_STATUSES,
) -> list[ActionItem]:
    """Follow-ups implied by the current data, or a single all-clear item."""
    items = []

    errors = sum(1 for l in logs if l.is_error)
    if errors:
        items.append(
            ActionItem(
                color=ActionColor.RED,
                icon="🚨",
                text=f"{errors} workflow error(s)",
                sub="Check System Health",
            )
        )

    new = sum(1 for c in contacts if c.status == "New")
    if new:
        items.append(
            ActionItem(
                color=ActionColor.YELLOW,
                icon="👤",
                text=f"{new} new contact(s) awaiting follow-up",
                sub="View in Pipeline",
            )
        )

    contacted = sum(1 for c in contacts if c.status == "Contacted")
    if contacted:
        items.append(
            ActionItem(
                color=ActionColor.BLUE,
                icon="📞",
                text=f"{contacted} contacted, awaiting response",
                sub="Follow up on leads",
            )
        )

    scheduled = len(eligible_contacts(contacts, statuses))
    if scheduled:
        items.append(
            ActionItem(
                color=ActionColor.BLUE,
                icon="📅",
                text=f"{scheduled} scheduled meeting(s)",
                sub="Review appointments below",
            )
        )

    if not items:
        items.append(
            ActionItem(
                color=ActionColor.GREEN,
                icon="✅",
                text="All systems operational",
                sub="No action required",
            )
        )
    return items


def build_system_status(logs: Sequence[OperationLogEntry]) -> SystemStatus:
    """Success rate of operations with an all-clear / minor / attention level."""
    count = len(logs)
    errors = sum(1 for l in logs if l.is_error)
    rate = (count - errors) / count * 100 if count else 100.0

    if errors == 0:
        level, label = "success", "All Clear"
    elif errors / count > ATTENTION_ERROR_RATE:
        level, label = "destructive", "Needs Attention"
    else:
        level, label = "warning", "Minor Issues"

    return SystemStatus(
        success_rate=f"{rate:.1f}%",
        label=label,
        level=level,
        total=count,
        errors=errors,
    )
