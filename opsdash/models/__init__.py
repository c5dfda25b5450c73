"""
Pydantic v2 data models for the ops dashboard.

Model Organization:
    - enums: Enumeration types for consistent classification
    - records: Backend entity rows (contacts, calls, operation logs, expenses)
    - derived: Per-load view models (KPIs, series, alerts, feed, appointments)
"""

from .derived import (
    ActionItem,
    ActivityFeedItem,
    Alert,
    AlertSummary,
    Appointment,
    AppointmentView,
    CommandCenterSnapshot,
    DateRange,
    KPICard,
    PageSnapshot,
    Series,
    SeriesPoint,
    SystemStatus,
)
from .enums import (
    ActionColor,
    AlertSeverity,
    AppointmentBand,
    Entity,
    ExpenseUnit,
    OperationStatus,
)
from .records import (
    BackendRecord,
    CallLogEntry,
    Contact,
    ExpenseRecord,
    OperationLogEntry,
    parse_records,
)

__all__ = [
    "ActionColor",
    "ActionItem",
    "ActivityFeedItem",
    "Alert",
    "AlertSeverity",
    "AlertSummary",
    "Appointment",
    "AppointmentBand",
    "AppointmentView",
    "BackendRecord",
    "CallLogEntry",
    "CommandCenterSnapshot",
    "Contact",
    "DateRange",
    "Entity",
    "ExpenseRecord",
    "ExpenseUnit",
    "KPICard",
    "OperationLogEntry",
    "OperationStatus",
    "PageSnapshot",
    "Series",
    "SeriesPoint",
    "SystemStatus",
    "parse_records",
]
