"""
Alert Synthesizer: rule-based alerts for the command center.

Evaluates a fixed, ordered set of independent rules over the fetched
collections. Each rule may emit any number of alerts; the combined list is
stably sorted by severity (critical, warning, info), so alerts within a tier
keep rule-evaluation order. No alerts at all is the "all clear" state.

Rules:
1. Expiration bands over expenses (one alert per expiring record)
2. Error-rate spike over operation logs
3. Daily cost spike over operation logs
4. Failed calls over call logs (one summary alert)
"""

import math
from datetime import datetime, timedelta
from typing import Callable, Optional, Sequence

import structlog
from pydantic import BaseModel, Field

from opsdash.engine.bucketing import sum_by_day
from opsdash.engine.coercion import parse_timestamp
from opsdash.engine.formatting import format_currency, format_date
from opsdash.models.derived import Alert, AlertSummary
from opsdash.models.enums import SEVERITY_RANK, AlertSeverity
from opsdash.models.records import CallLogEntry, ExpenseRecord, OperationLogEntry

logger = structlog.get_logger()


class AlertPolicy(BaseModel):
    """
    Thresholds for the alert rules.

    The minimum-sample guards keep small collections from raising noisy
    alerts; both compare with strict "greater than".
    """

    error_rate_threshold: float = Field(default=0.10, ge=0.0, le=1.0)
    error_rate_min_records: int = Field(default=5, ge=0)
    cost_spike_min_days: int = Field(default=3, ge=0)
    cost_spike_multiplier: float = Field(default=2.0, gt=0)
    cost_spike_noise_floor: float = Field(default=0.01, ge=0)
    expiry_warning_days: int = Field(default=7, ge=1)
    expiry_info_days: int = Field(default=14, ge=1)

    @classmethod
    def from_settings(cls, settings) -> "AlertPolicy":
        return cls(
            error_rate_threshold=settings.error_rate_threshold,
            error_rate_min_records=settings.error_rate_min_records,
            cost_spike_min_days=settings.cost_spike_min_days,
            cost_spike_multiplier=settings.cost_spike_multiplier,
            cost_spike_noise_floor=settings.cost_spike_noise_floor,
            expiry_warning_days=settings.expiry_warning_days,
            expiry_info_days=settings.expiry_info_days,
        )


class AlertInputs(BaseModel):
    """Collections and clock a rule evaluates against."""

    expenses: list[ExpenseRecord] = Field(default_factory=list)
    logs: list[OperationLogEntry] = Field(default_factory=list)
    calls: list[CallLogEntry] = Field(default_factory=list)
    now: datetime


AlertRule = Callable[[AlertInputs, AlertPolicy], list[Alert]]


def days_until(moment: datetime, now: datetime) -> int:
    """Whole days from now until ``moment``, rounded up (0 or negative once passed)."""
    return math.ceil((moment - now) / timedelta(days=1))


def expiration_alerts(inputs: AlertInputs, policy: AlertPolicy) -> list[Alert]:
    """One alert per expense that expired or expires within the info window."""
    alerts = []
    for expense in inputs.expenses:
        expires = parse_timestamp(expense.expiration_date)
        if expires is None:
            continue
        name = expense.name or "Subscription"
        days_left = days_until(expires, inputs.now)
        renews = format_date(expense.expiration_date)

        if days_left <= 0:
            alerts.append(
                Alert(
                    severity=AlertSeverity.CRITICAL,
                    icon="🔴",
                    title=f"{name} expired",
                    detail=f"Expired {abs(days_left)} day(s) ago",
                    link="#subscriptions",
                )
            )
        elif days_left <= policy.expiry_warning_days:
            alerts.append(
                Alert(
                    severity=AlertSeverity.WARNING,
                    icon="🟡",
                    title=f"{name} expires in {days_left}d",
                    detail=f"Renews {renews}",
                    link="#subscriptions",
                )
            )
        elif days_left <= policy.expiry_info_days:
            alerts.append(
                Alert(
                    severity=AlertSeverity.INFO,
                    icon="🔵",
                    title=f"{name} renewal coming",
                    detail=f"{days_left} days · {renews}",
                    link="#subscriptions",
                )
            )
    return alerts


def error_rate_alerts(inputs: AlertInputs, policy: AlertPolicy) -> list[Alert]:
    """Warn when the share of failed operations exceeds the threshold."""
    count = len(inputs.logs)
    if count <= policy.error_rate_min_records:
        return []
    errors = sum(1 for l in inputs.logs if l.is_error)
    rate = errors / count
    if rate <= policy.error_rate_threshold:
        return []
    return [
        Alert(
            severity=AlertSeverity.WARNING,
            icon="⚠️",
            title=f"High error rate: {rate * 100:.0f}%",
            detail=f"{errors} of {count} operations failed",
            link="#system-health",
        )
    ]


def cost_spike_alerts(inputs: AlertInputs, policy: AlertPolicy) -> list[Alert]:
    """Flag the most expensive day when it exceeds a multiple of the daily mean."""
    daily = sum_by_day(
        inputs.logs,
        lambda l: l.date_time,
        lambda l: l.cost,
        include=lambda l: bool(l.cost),
    )
    if len(daily) <= policy.cost_spike_min_days:
        return []

    mean = sum(p.value for p in daily) / len(daily)
    # max() keeps the earliest day on ties
    peak = max(daily, key=lambda p: p.value)
    if peak.value <= mean * policy.cost_spike_multiplier or mean <= policy.cost_spike_noise_floor:
        return []
    return [
        Alert(
            severity=AlertSeverity.INFO,
            icon="💰",
            title="AI cost spike detected",
            detail=(
                f"{format_date(peak.key)}: {format_currency(peak.value)} "
                f"({peak.value / mean:.1f}x avg)"
            ),
            link="#system-health",
        )
    ]


def failed_call_alerts(inputs: AlertInputs, policy: AlertPolicy) -> list[Alert]:
    """Summarize calls flagged unsuccessful or ending in an error status."""
    failed = sum(1 for c in inputs.calls if c.failed)
    if not failed:
        return []
    return [
        Alert(
            severity=AlertSeverity.WARNING,
            icon="📞",
            title=f"{failed} failed call(s)",
            detail="Check Call Activity for details",
            link="#call-activity",
        )
    ]


DEFAULT_RULES: tuple[AlertRule, ...] = (
    expiration_alerts,
    error_rate_alerts,
    cost_spike_alerts,
    failed_call_alerts,
)


def rank_alerts(alerts: Sequence[Alert]) -> list[Alert]:
    """Stable sort by severity rank: critical, then warning, then info."""
    return sorted(alerts, key=lambda a: SEVERITY_RANK[a.severity])


def summarize(alerts: Sequence[Alert]) -> AlertSummary:
    """Rank alerts and derive the badge count and critical flag."""
    ranked = rank_alerts(alerts)
    return AlertSummary(
        alerts=ranked,
        count=len(ranked),
        has_critical=any(a.severity == AlertSeverity.CRITICAL for a in ranked),
    )


class AlertSynthesizer:
    """
    Runs alert rules over one load cycle's data.

    Attributes:
        policy: Rule thresholds
        rules: Ordered rules; evaluation order breaks ties within a severity tier

    Example:
        >>> synthesizer = AlertSynthesizer(AlertPolicy())
        >>> summary = synthesizer.synthesize(expenses=expenses, logs=logs, calls=calls)
        >>> summary.has_critical
        False
    """

    def __init__(
        self,
        policy: Optional[AlertPolicy] = None,
        rules: Sequence[AlertRule] = DEFAULT_RULES,
    ):
        self.policy = policy or AlertPolicy()
        self.rules = list(rules)
        self.logger = structlog.get_logger()

    def synthesize(
        self,
        expenses: Sequence[ExpenseRecord] = (),
        logs: Sequence[OperationLogEntry] = (),
        calls: Sequence[CallLogEntry] = (),
        now: Optional[datetime] = None,
    ) -> AlertSummary:
        """
        Evaluate every rule and return the ranked alert summary.

        A rule that raises is logged and skipped; the remaining rules still run.
        """
        inputs = AlertInputs(
            expenses=list(expenses),
            logs=list(logs),
            calls=list(calls),
            now=now or datetime.now(),
        )

        fired: list[Alert] = []
        for rule in self.rules:
            try:
                fired.extend(rule(inputs, self.policy))
            except Exception as e:
                self.logger.error(
                    "alert_rule_failed",
                    rule=getattr(rule, "__name__", repr(rule)),
                    error=str(e),
                    exc_info=True,
                )

        summary = summarize(fired)
        self.logger.info(
            "alerts_synthesized",
            count=summary.count,
            has_critical=summary.has_critical,
            by_severity={
                s.value: sum(1 for a in summary.alerts if a.severity == s) for s in AlertSeverity
            },
        )
        return summary
