"""
Enumeration types for the ops dashboard.

All enums inherit from str to ensure JSON serialization compatibility.
"""

from enum import Enum


class Entity(str, Enum):
    """Record collections exposed by the automation backend."""

    CONTACTS = "contacts"
    CALL_LOG = "calllog"
    LOGS = "logs"
    EXPENSES = "expenses"


class AlertSeverity(str, Enum):
    """
    Alert severity tiers, listed from most to least urgent.

    The rank drives display order: critical alerts are shown first.
    """

    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        return SEVERITY_RANK[self]


SEVERITY_RANK = {
    AlertSeverity.CRITICAL: 0,
    AlertSeverity.WARNING: 1,
    AlertSeverity.INFO: 2,
}


class OperationStatus(str, Enum):
    """Known statuses of operation log entries. Other values pass through as text."""

    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"


class ExpenseUnit(str, Enum):
    """Billing cadence of an expense record."""

    MONTHLY = "monthly"
    ANNUAL = "annual"
    ONE_TIME = "one-time"


class AppointmentBand(str, Enum):
    """Display urgency band of an appointment relative to now."""

    TODAY = "today"
    PAST = "past"
    SOON = "soon"
    LATER = "later"
    TBD = "tbd"


class ActionColor(str, Enum):
    """Indicator colours for command center action items."""

    RED = "red"
    YELLOW = "yellow"
    BLUE = "blue"
    GREEN = "green"
