"""
Command Center: load cycle and snapshot assembly.

One load cycle fetches contacts, call logs, operation logs and expenses
concurrently, waits for all four to settle, and computes every derived view
from the results in one pass. Each fetch is isolated: a failure leaves that
entity empty and the rest of the page intact. Only when every fetch fails is
the snapshot marked as a page-level error.

Loads may overlap when the date range changes quickly. Each load carries a
generation number, and only the newest load's snapshot is committed as the
current state.
"""

import asyncio
from datetime import datetime
from typing import Any, Optional, Sequence

import structlog

from opsdash.config import Settings, get_settings
from opsdash.connectors.backend_client import EntityDataSource
from opsdash.engine.action_items import build_action_items, build_system_status
from opsdash.engine.activity_feed import DEFAULT_FEED_LIMIT, build_activity_feed
from opsdash.engine.alerts import AlertPolicy, AlertSynthesizer
from opsdash.engine.bucketing import bucket_by_day, count_by_field, split_by_day, sum_by_day
from opsdash.engine.correlation import (
    DEFAULT_APPOINTMENT_STATUSES,
    classify_appointment,
    correlate_appointments,
)
from opsdash.engine.kpis import command_center_kpis
from opsdash.engine.pages import ENTITY_MODELS, PAGES
from opsdash.models.derived import CommandCenterSnapshot, DateRange, PageSnapshot, Series
from opsdash.models.enums import Entity
from opsdash.models.records import (
    CallLogEntry,
    Contact,
    ExpenseRecord,
    OperationLogEntry,
    parse_records,
)

logger = structlog.get_logger()

# Entity fetched for each slot of a load cycle, and whether it is date-filtered
FETCH_PLAN: tuple[tuple[Entity, type, bool], ...] = (
    (Entity.CONTACTS, Contact, True),
    (Entity.CALL_LOG, CallLogEntry, True),
    (Entity.LOGS, OperationLogEntry, True),
    (Entity.EXPENSES, ExpenseRecord, False),
)


def build_series(
    contacts: Sequence[Contact],
    calls: Sequence[CallLogEntry],
    logs: Sequence[OperationLogEntry],
) -> dict[str, Series]:
    """Chart series for the command center."""
    days, successes, errors = split_by_day(logs, lambda l: l.date_time, lambda l: l.is_error)
    operations = Series(
        name="operations_per_day",
        label="Operations",
        points=[{"key": d, "value": v} for d, v in zip(days, successes)],
        extra={"errors": errors},
    )
    return {
        "calls_per_day": Series(
            name="calls_per_day",
            label="Calls",
            points=bucket_by_day(calls, lambda c: c.started_at),
        ),
        "contacts_by_status": Series(
            name="contacts_by_status",
            label="Contacts by Status",
            points=count_by_field(contacts, lambda c: c.status),
        ),
        "operations_per_day": operations,
        "ai_cost_per_day": Series(
            name="ai_cost_per_day",
            label="AI Cost",
            points=sum_by_day(
                logs, lambda l: l.date_time, lambda l: l.cost, include=lambda l: bool(l.cost)
            ),
        ),
    }


def build_snapshot(
    contacts: Sequence[Contact],
    calls: Sequence[CallLogEntry],
    logs: Sequence[OperationLogEntry],
    expenses: Sequence[ExpenseRecord],
    now: Optional[datetime] = None,
    date_range: Optional[DateRange] = None,
    policy: Optional[AlertPolicy] = None,
    appointment_statuses: Sequence[str] = DEFAULT_APPOINTMENT_STATUSES,
    feed_limit: int = DEFAULT_FEED_LIMIT,
) -> CommandCenterSnapshot:
    """
    Compute every command center view from one set of fetched collections.

    Pure: the inputs are not modified and a fresh snapshot is returned.
    """
    now = now or datetime.now()
    appointments = correlate_appointments(contacts, calls, appointment_statuses)

    return CommandCenterSnapshot(
        generated_at=now,
        date_range=date_range or DateRange(),
        kpis=command_center_kpis(contacts, calls, logs, appointment_statuses),
        series=build_series(contacts, calls, logs),
        alerts=AlertSynthesizer(policy).synthesize(
            expenses=expenses, logs=logs, calls=calls, now=now
        ),
        activity_feed=build_activity_feed(logs, now, feed_limit),
        appointments=[classify_appointment(a, now) for a in appointments],
        action_items=build_action_items(contacts, logs, appointment_statuses),
        system_status=build_system_status(logs),
    )


class CommandCenterService:
    """
    Runs command center load cycles against an entity data source.

    Attributes:
        source: Entity data source (usually a BackendClient)
        settings: Application settings (policy thresholds, feed size, ...)
        current: Snapshot of the newest committed load, if any

    Example:
        >>> service = CommandCenterService(source=client)
        >>> snapshot = await service.load(preset_range("30d"))
        >>> snapshot.alerts.count
        2
    """

    def __init__(self, source: EntityDataSource, settings: Optional[Settings] = None):
        self.source = source
        self.settings = settings or get_settings()
        self.policy = AlertPolicy.from_settings(self.settings)
        self.current: Optional[CommandCenterSnapshot] = None
        self._generation = 0
        self.logger = structlog.get_logger()

    async def _fetch(self, entity: Entity, filters: dict[str, Any]) -> Optional[list[dict]]:
        """Fetch one entity; None signals a failure the caller degrades to empty."""
        try:
            return await self.source.lookup(entity.value, filters)
        except Exception as e:
            self.logger.warning(
                "entity_fetch_failed",
                entity=entity.value,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

    async def load(
        self,
        date_range: Optional[DateRange] = None,
        now: Optional[datetime] = None,
    ) -> CommandCenterSnapshot:
        """
        Run one load cycle.

        All four fetches are awaited together; derived views are computed
        only once every fetch has settled. The snapshot is committed to
        ``current`` unless a newer load started meanwhile, in which case it is
        returned with ``stale=True`` and the current state is left alone.
        """
        self._generation += 1
        generation = self._generation
        date_range = date_range or DateRange()
        period = {"start_date": date_range.start, "end_date": date_range.end}

        results = await asyncio.gather(
            *(self._fetch(entity, period if dated else {}) for entity, _, dated in FETCH_PLAN)
        )

        failed = [entity.value for (entity, _, _), rows in zip(FETCH_PLAN, results) if rows is None]
        contacts, calls, logs, expenses = (
            parse_records(model, rows or []) for (_, model, _), rows in zip(FETCH_PLAN, results)
        )

        snapshot = build_snapshot(
            contacts,
            calls,
            logs,
            expenses,
            now=now,
            date_range=date_range,
            policy=self.policy,
            appointment_statuses=self.settings.appointment_status_set,
            feed_limit=self.settings.activity_feed_limit,
        )
        snapshot.generation = generation
        snapshot.failed_entities = failed
        if len(failed) == len(FETCH_PLAN):
            snapshot.degraded = True
            snapshot.error = "No data could be loaded from the backend"

        if generation < self._generation:
            snapshot.stale = True
            self.logger.info(
                "stale_load_discarded",
                generation=generation,
                latest=self._generation,
            )
            return snapshot

        self.current = snapshot
        self.logger.info(
            "command_center_loaded",
            generation=generation,
            contacts=len(contacts),
            calls=len(calls),
            logs=len(logs),
            expenses=len(expenses),
            alerts=snapshot.alerts.count,
            failed_entities=failed,
        )
        return snapshot

    async def load_page(
        self,
        page: str,
        date_range: Optional[DateRange] = None,
        now: Optional[datetime] = None,
        filters: Optional[dict[str, Any]] = None,
    ) -> PageSnapshot:
        """
        Load one of the secondary dashboard pages.

        Fetches only the entities the page needs, with the same per-entity
        isolation as the command center. Extra ``filters`` are added to the
        date-filtered lookups.

        Raises:
            KeyError: If ``page`` is not a known page
        """
        definition = PAGES[page]
        now = now or datetime.now()
        date_range = date_range or DateRange()
        lookup_filters = {"start_date": date_range.start, "end_date": date_range.end}
        lookup_filters.update(filters or {})

        results = await asyncio.gather(
            *(
                self._fetch(entity, lookup_filters if definition.dated else {})
                for entity in definition.entities
            )
        )

        failed = [entity.value for entity, rows in zip(definition.entities, results) if rows is None]
        records = {
            entity: parse_records(ENTITY_MODELS[entity], rows or [])
            for entity, rows in zip(definition.entities, results)
        }

        snapshot = PageSnapshot(
            page=page,
            generated_at=now,
            date_range=date_range,
            failed_entities=failed,
            **definition.builder(records, now, self.settings),
        )
        if len(failed) == len(definition.entities):
            snapshot.degraded = True
            snapshot.error = "No data could be loaded from the backend"

        self.logger.info(
            "page_loaded",
            page=page,
            records={entity.value: len(items) for entity, items in records.items()},
            failed_entities=failed,
        )
        return snapshot
