"""
Dashboard pages beside the command center.

- system-health: operation volume, errors, tokens and AI cost
- call-activity: call volume, success rate, duration and sentiment
- subscriptions: recurring burn and upcoming expirations
- pipeline: contact totals and status breakdown

Each page names the entities it needs and a pure builder that turns the
fetched collections into a PageSnapshot. Fetching is done by
``CommandCenterService.load_page``.
"""

from datetime import datetime
from typing import Callable, Mapping, Sequence

from pydantic import BaseModel, ConfigDict

from opsdash.config import Settings
from opsdash.engine.action_items import build_system_status
from opsdash.engine.activity_feed import build_activity_feed
from opsdash.engine.alerts import (
    AlertInputs,
    AlertPolicy,
    expiration_alerts,
    failed_call_alerts,
    summarize,
)
from opsdash.engine.bucketing import bucket_by_day, bucket_by_month, count_by_field, split_by_day, sum_by_day
from opsdash.engine.kpis import (
    call_activity_kpis,
    monthly_cost,
    new_contacts_this_month_kpi,
    status_breakdown_kpis,
    subscription_kpis,
    system_health_kpis,
)
from opsdash.models.derived import Series, SeriesPoint
from opsdash.models.enums import Entity, ExpenseUnit
from opsdash.models.records import (
    BackendRecord,
    CallLogEntry,
    Contact,
    ExpenseRecord,
    OperationLogEntry,
)

ENTITY_MODELS: dict[Entity, type[BackendRecord]] = {
    Entity.CONTACTS: Contact,
    Entity.CALL_LOG: CallLogEntry,
    Entity.LOGS: OperationLogEntry,
    Entity.EXPENSES: ExpenseRecord,
}

Collections = Mapping[Entity, Sequence[BackendRecord]]

# Fields of a PageSnapshot produced by a builder (everything but load metadata)
PageBuilder = Callable[[Collections, datetime, Settings], dict]


class PageDefinition(BaseModel):
    """
    A dashboard page: the entities it fetches and how it is built.

    Attributes:
        name: URL slug of the page
        entities: Entities to fetch, all in one concurrent batch
        dated: Whether lookups carry the selected date range
        builder: Pure function from fetched collections to snapshot fields
    """

    model_config = ConfigDict(frozen=True)

    name: str
    entities: tuple[Entity, ...]
    dated: bool = True
    builder: PageBuilder


def monthly_burn_by_service(expenses: Sequence[ExpenseRecord]) -> list[SeriesPoint]:
    """Monthly cost per service, most expensive first. One-time expenses are left out."""
    burn: dict[str, float] = {}
    for expense in expenses:
        if expense.unit_key == ExpenseUnit.ONE_TIME.value:
            continue
        name = expense.name or "Other"
        burn[name] = burn.get(name, 0.0) + monthly_cost(expense)
    # sorted() is stable, so equal costs keep first-seen order
    ranked = sorted(burn.items(), key=lambda item: item[1], reverse=True)
    return [SeriesPoint(key=name, value=cost) for name, cost in ranked]


def build_system_health(records: Collections, now: datetime, settings: Settings) -> dict:
    logs = records.get(Entity.LOGS, [])
    days, successes, errors = split_by_day(logs, lambda l: l.date_time, lambda l: l.is_error)
    return {
        "kpis": system_health_kpis(logs),
        "series": {
            "operations_per_day": Series(
                name="operations_per_day",
                label="Operations",
                points=[SeriesPoint(key=d, value=v) for d, v in zip(days, successes)],
                extra={"errors": errors},
            ),
            "operations_by_status": Series(
                name="operations_by_status",
                label="Status",
                points=count_by_field(logs, lambda l: l.status, default="unknown"),
            ),
            "ai_cost_per_day": Series(
                name="ai_cost_per_day",
                label="AI Cost",
                points=sum_by_day(
                    logs, lambda l: l.date_time, lambda l: l.cost, include=lambda l: bool(l.cost)
                ),
            ),
        },
        "activity_feed": build_activity_feed(logs, now, settings.activity_feed_limit),
        "system_status": build_system_status(logs),
    }


def build_call_activity(records: Collections, now: datetime, settings: Settings) -> dict:
    calls = records.get(Entity.CALL_LOG, [])
    inputs = AlertInputs(calls=list(calls), now=now)
    return {
        "kpis": call_activity_kpis(calls),
        "series": {
            "calls_per_day": Series(
                name="calls_per_day",
                label="Calls",
                points=bucket_by_day(calls, lambda c: c.started_at),
            ),
            "calls_by_sentiment": Series(
                name="calls_by_sentiment",
                label="Sentiment",
                points=count_by_field(calls, lambda c: c.user_sentiment),
            ),
        },
        "alerts": summarize(failed_call_alerts(inputs, AlertPolicy.from_settings(settings))),
    }


def build_subscriptions(records: Collections, now: datetime, settings: Settings) -> dict:
    expenses = records.get(Entity.EXPENSES, [])
    inputs = AlertInputs(expenses=list(expenses), now=now)
    return {
        "kpis": subscription_kpis(expenses, now),
        "series": {
            "monthly_burn_by_service": Series(
                name="monthly_burn_by_service",
                label="Monthly Cost",
                points=monthly_burn_by_service(expenses),
            ),
            "services_started_per_month": Series(
                name="services_started_per_month",
                label="Services Started",
                points=bucket_by_month(expenses, lambda e: e.start_date),
            ),
        },
        "alerts": summarize(expiration_alerts(inputs, AlertPolicy.from_settings(settings))),
    }


def build_pipeline(records: Collections, now: datetime, settings: Settings) -> dict:
    contacts = records.get(Entity.CONTACTS, [])
    return {
        "kpis": status_breakdown_kpis(contacts, total_label="Total Contacts")
        + [new_contacts_this_month_kpi(contacts, now)],
        "series": {
            "contacts_by_status": Series(
                name="contacts_by_status",
                label="Contacts by Status",
                points=count_by_field(contacts, lambda c: c.status),
            ),
            "contacts_per_month": Series(
                name="contacts_per_month",
                label="New Contacts",
                points=bucket_by_month(contacts, lambda c: c.created_on),
            ),
        },
    }


PAGES: dict[str, PageDefinition] = {
    page.name: page
    for page in (
        PageDefinition(name="system-health", entities=(Entity.LOGS,), builder=build_system_health),
        PageDefinition(name="call-activity", entities=(Entity.CALL_LOG,), builder=build_call_activity),
        PageDefinition(
            name="subscriptions", entities=(Entity.EXPENSES,), dated=False, builder=build_subscriptions
        ),
        PageDefinition(name="pipeline", entities=(Entity.CONTACTS,), builder=build_pipeline),
    )
}
