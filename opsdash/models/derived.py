"""
Derived, per-load view models produced by the command center engine.

None of these are persisted. They are rebuilt on every load cycle and
serialized with camelCase keys for the rendering client.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from opsdash.models.enums import ActionColor, AlertSeverity, AppointmentBand


class ViewModel(BaseModel):
    """Base for derived view data (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SeriesPoint(ViewModel):
    """One bucket of a chart series."""

    key: str
    value: float


class Series(ViewModel):
    """A named chart series, optionally with several datasets sharing one set of keys."""

    name: str
    label: str
    points: list[SeriesPoint] = Field(default_factory=list)
    extra: dict[str, list[float]] = Field(
        default_factory=dict,
        description="Additional datasets aligned with points (e.g. errors per day)",
    )

    @property
    def keys(self) -> list[str]:
        return [p.key for p in self.points]


class KPICard(ViewModel):
    """
    A labelled KPI, already formatted for display.

    Attributes:
        label: Card title
        value: Formatted value ("$12.50", "1,204", "—")
        trend_label: Secondary caption under the value
        trend: Visual hint: 1 good, -1 bad, 0 neutral
    """

    label: str
    value: str
    trend_label: str = ""
    trend: int = 0


class Appointment(ViewModel):
    """A booked contact merged with the call that carried its appointment details."""

    name: str
    company: str = ""
    phone: str = ""
    email: str = ""
    appointment_date: str = ""
    appointment_type: str = "Meeting"
    calendar_url: str = ""
    contact_id: Optional[str] = None


class AppointmentView(ViewModel):
    """Appointment plus its display classification relative to now."""

    appointment: Appointment
    band: AppointmentBand
    days_out: Optional[int] = None
    badge: str = ""
    when: str = ""


class Alert(ViewModel):
    """An actionable alert surfaced on the command center."""

    severity: AlertSeverity
    icon: str
    title: str
    detail: str = ""
    link: str = ""


class AlertSummary(ViewModel):
    """Severity-ranked alerts plus badge state. An empty list means all clear."""

    alerts: list[Alert] = Field(default_factory=list)
    count: int = 0
    has_critical: bool = False

    @property
    def all_clear(self) -> bool:
        return self.count == 0


class ActivityFeedItem(ViewModel):
    """One entry of the recent-activity timeline."""

    icon: str
    entity: str
    action: str
    status: Optional[str] = None
    notes: str = ""
    cost: str = ""
    timestamp: Optional[str] = None
    relative_time: str = ""


class ActionItem(ViewModel):
    """A follow-up suggestion derived from the current data."""

    color: ActionColor
    icon: str
    text: str
    sub: str = ""


class SystemStatus(ViewModel):
    """Operation success rate summary."""

    success_rate: str
    label: str
    level: str
    total: int = 0
    errors: int = 0


class DateRange(ViewModel):
    """Inclusive date bounds as ISO strings; blanks mean unbounded."""

    start: str = ""
    end: str = ""
    preset: Optional[str] = None


class CommandCenterSnapshot(ViewModel):
    """Everything the command center renders for one load cycle."""

    generated_at: datetime
    date_range: DateRange
    kpis: list[KPICard] = Field(default_factory=list)
    series: dict[str, Series] = Field(default_factory=dict)
    alerts: AlertSummary = Field(default_factory=AlertSummary)
    activity_feed: list[ActivityFeedItem] = Field(default_factory=list)
    appointments: list[AppointmentView] = Field(default_factory=list)
    action_items: list[ActionItem] = Field(default_factory=list)
    system_status: Optional[SystemStatus] = None
    failed_entities: list[str] = Field(default_factory=list)
    degraded: bool = False
    error: Optional[str] = None
    generation: int = 0
    stale: bool = False


class PageSnapshot(ViewModel):
    """KPIs, series and page-specific panels for one dashboard page."""

    page: str
    generated_at: datetime
    date_range: DateRange
    kpis: list[KPICard] = Field(default_factory=list)
    series: dict[str, Series] = Field(default_factory=dict)
    alerts: AlertSummary = Field(default_factory=AlertSummary)
    activity_feed: list[ActivityFeedItem] = Field(default_factory=list)
    system_status: Optional[SystemStatus] = None
    failed_entities: list[str] = Field(default_factory=list)
    degraded: bool = False
    error: Optional[str] = None
