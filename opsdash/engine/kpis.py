"""
KPI Calculator: formatted KPI card families.

Each family is a pure reduction over one or more record collections and
returns its cards in a fixed, caller-visible order. Money values format as
currency, counts as grouped integers, rates as percentages. Averages and
rates over empty collections render the "—" placeholder.
"""

from datetime import datetime
from typing import Any, Callable, Iterable, Optional, Sequence, TypeVar

from opsdash.engine.correlation import DEFAULT_APPOINTMENT_STATUSES, eligible_contacts
from opsdash.engine.formatting import (
    PLACEHOLDER,
    format_currency,
    format_duration,
    format_number,
    format_percent,
    safe_ratio,
)
from opsdash.engine.coercion import parse_timestamp
from opsdash.models.derived import KPICard
from opsdash.models.enums import ExpenseUnit
from opsdash.models.records import CallLogEntry, Contact, ExpenseRecord, OperationLogEntry

R = TypeVar("R")

# Expenses expiring within this many days count as "expiring soon"
EXPIRING_SOON_DAYS = 30


def total(values: Iterable[Optional[float]]) -> float:
    """Sum treating missing values as 0."""
    return sum(v or 0.0 for v in values)


def month_start(now: datetime) -> str:
    """First day of the current month as an ISO date string."""
    return f"{now.year:04d}-{now.month:02d}-01"


def month_scoped_count(
    records: Iterable[R],
    accessor: Callable[[R], Optional[str]],
    now: datetime,
) -> int:
    """
    Count records dated in the current calendar month or later.

    Compares the ISO date prefix of the field with the first day of the month
    as strings; missing dates never match.
    """
    start = month_start(now)
    return sum(1 for r in records if (accessor(r) or "") >= start)


def monthly_cost(expense: ExpenseRecord) -> float:
    """Monthly share of an expense: annual / 12, one-time 0, anything else as monthly."""
    cost = expense.cost or 0.0
    unit = expense.unit_key
    if unit == ExpenseUnit.ANNUAL.value:
        return cost / 12
    if unit == ExpenseUnit.ONE_TIME.value:
        return 0.0
    return cost


def command_center_kpis(
    contacts: Sequence[Contact],
    calls: Sequence[CallLogEntry],
    logs: Sequence[OperationLogEntry],
    statuses: Sequence[str] = DEFAULT_APPOINTMENT_STATUSES,
) -> list[KPICard]:
    """Headline cards: contacts, calls, booked appointments and AI spend."""
    successful = sum(1 for c in calls if c.call_successful is True)
    scheduled = len(eligible_contacts(contacts, statuses))
    spend = total(l.cost for l in logs)

    return [
        KPICard(label="Total Contacts", value=format_number(len(contacts)), trend_label="in period"),
        KPICard(
            label="Calls Made",
            value=format_number(len(calls)),
            trend_label=f"{successful} successful",
        ),
        KPICard(label="Appointments", value=format_number(scheduled), trend_label="scheduled"),
        KPICard(
            label="AI Spend",
            value=format_currency(spend),
            trend_label=f"{format_number(len(logs))} operations",
        ),
    ]


def system_health_kpis(logs: Sequence[OperationLogEntry]) -> list[KPICard]:
    """Operation volume, error rate, token usage and AI cost."""
    count = len(logs)
    errors = sum(1 for l in logs if l.is_error)
    cost = total(l.cost for l in logs)
    avg_cost = safe_ratio(cost, count)

    return [
        KPICard(label="Operations", value=format_number(count), trend_label="in period"),
        KPICard(
            label="Errors",
            value=format_number(errors),
            trend=-1 if errors else 0,
            trend_label=(
                f"{format_percent(errors, count, decimals=1)} error rate" if count else PLACEHOLDER
            ),
        ),
        KPICard(
            label="Total Tokens",
            value=format_number(total(l.tokens for l in logs)),
            trend_label="AI usage",
        ),
        KPICard(
            label="AI Cost",
            value=format_currency(cost),
            trend_label=f"{format_currency(avg_cost)} avg" if avg_cost is not None else PLACEHOLDER,
        ),
    ]


def call_activity_kpis(calls: Sequence[CallLogEntry]) -> list[KPICard]:
    """Call volume, success rate, duration and cost."""
    count = len(calls)
    successful = sum(1 for c in calls if c.call_successful is True)
    duration = total(c.call_duration_ms for c in calls)
    cost = total(c.call_cost for c in calls)
    avg_duration = safe_ratio(duration, count)
    avg_cost = safe_ratio(cost, count)

    return [
        KPICard(label="Total Calls", value=format_number(count), trend_label="in period"),
        KPICard(
            label="Success Rate",
            value=format_percent(successful, count),
            trend_label=f"{successful} successful",
        ),
        KPICard(
            label="Avg Duration",
            value=format_duration(avg_duration),
            trend_label=f"{format_duration(duration)} total",
        ),
        KPICard(
            label="Call Cost",
            value=format_currency(cost),
            trend_label=f"{format_currency(avg_cost)} avg" if avg_cost is not None else PLACEHOLDER,
        ),
    ]


def subscription_kpis(expenses: Sequence[ExpenseRecord], now: datetime) -> list[KPICard]:
    """Recurring burn and upcoming expirations of tracked services."""
    monthly = total(monthly_cost(e) for e in expenses)

    soon = 0
    for expense in expenses:
        expires = parse_timestamp(expense.expiration_date)
        if expires is None:
            continue
        days_left = (expires - now).total_seconds() / 86400
        if 0 < days_left <= EXPIRING_SOON_DAYS:
            soon += 1

    return [
        KPICard(label="Total Services", value=format_number(len(expenses)), trend_label="active"),
        KPICard(label="Monthly Burn", value=format_currency(monthly), trend_label="per month"),
        KPICard(label="Annual Cost", value=format_currency(monthly * 12), trend_label="projected"),
        KPICard(
            label="Expiring Soon",
            value=format_number(soon),
            trend=-1 if soon else 0,
            trend_label=f"next {EXPIRING_SOON_DAYS} days",
        ),
    ]


def new_contacts_this_month_kpi(contacts: Sequence[Contact], now: datetime) -> KPICard:
    """Contacts created since the first of the current month."""
    count = month_scoped_count(contacts, lambda c: c.created_on, now)
    return KPICard(
        label="New This Month",
        value=format_number(count),
        trend_label=f"{now:%B}",
    )


def status_breakdown_kpis(
    records: Sequence[Any], limit: int = 3, total_label: str = "Total"
) -> list[KPICard]:
    """Total plus the first ``limit`` status groups with their share."""
    counts: dict[str, int] = {}
    for record in records:
        status = getattr(record, "status", None) or "Unknown"
        counts[status] = counts.get(status, 0) + 1

    cards = [KPICard(label=total_label, value=format_number(len(records)), trend_label="in period")]
    for status, count in list(counts.items())[:limit]:
        cards.append(
            KPICard(
                label=status,
                value=format_number(count),
                trend_label=format_percent(count, len(records)),
            )
        )
    return cards
