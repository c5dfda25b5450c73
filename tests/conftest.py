"""
Pytest configuration and shared fixtures for the opsdash test suite.

Provides record factories (raw backend rows and parsed models), an in-memory
entity data source, environment isolation and an authenticated API client.
"""

import asyncio
import os
from datetime import datetime, timedelta
from typing import Any, Optional
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from hypothesis import HealthCheck, settings

# Cold-start generation of the first text examples can trip the too_slow health check
settings.register_profile("opsdash", suppress_health_check=[HealthCheck.too_slow])
settings.load_profile("opsdash")

# Set testing environment BEFORE importing the app
os.environ["TESTING"] = "true"
os.environ["JWT_SECRET"] = "test-secret-do-not-use-in-production"
os.environ["AUTHORIZED_EMAIL"] = "owner@example.com"
os.environ["BACKEND_BASE_URL"] = "http://backend.test/webhook"
os.environ["GOOGLE_CLIENT_ID"] = "test-client.apps.googleusercontent.com"
os.environ["DEV_MODE"] = "false"
os.environ["LOG_FORMAT"] = "console"

from opsdash.connectors.backend_client import ALLOWED_ENDPOINTS, BackendError
from opsdash.models.records import CallLogEntry, Contact, ExpenseRecord, OperationLogEntry

AUTHORIZED_EMAIL = "owner@example.com"

# Reference clock used across tests: Monday, Oct 19 2026, 10:00 local
NOW = datetime(2026, 10, 19, 10, 0, 0)


# ---------------------------------------------------------------------------
# Backend row factories (raw dicts as the CRUD webhooks return them)
# ---------------------------------------------------------------------------


def make_contact_row(
    contact_id: Optional[str] = None,
    full_name: str = "Ada Lovelace",
    status: str = "New",
    created_on: str = "2026-10-15T09:00:00",
    **overrides,
) -> dict[str, Any]:
    """Factory for a raw contacts row."""
    row = dict(
        contact_id=contact_id or f"c_{uuid4().hex[:8]}",
        full_name=full_name,
        company_name="Analytical Engines Ltd",
        status=status,
        created_on=created_on,
        phone="+1 555 0100",
        email="ada@example.com",
    )
    row.update(overrides)
    return row


def make_call_row(
    contact_id: str = "c_1",
    call_started_at: Optional[str] = "2026-10-18T14:00:00",
    call_successful: Any = "true",
    **overrides,
) -> dict[str, Any]:
    """Factory for a raw calllog row without appointment details."""
    row = dict(
        contact_id=contact_id,
        call_started_at=call_started_at,
        created_on=call_started_at,
        call_successful=call_successful,
        finalStatus="completed",
        duration_ms="192000",
        combined_cost="0.42",
    )
    row.update(overrides)
    return row


def make_log_row(
    date_time: Optional[str] = "2026-10-18T12:00:00",
    action: str = "update contact",
    status: str = "success",
    cost: Any = "",
    **overrides,
) -> dict[str, Any]:
    """Factory for a raw operation log row."""
    row = dict(
        date_time=date_time,
        entity="contacts",
        action=action,
        status=status,
        category="crm",
        workflow="contacts-sync",
        notes="Synced from form submission",
        cost=cost,
        tokens="",
    )
    row.update(overrides)
    return row


def make_expense_row(
    name: str = "Mail",
    expiration_date: Optional[str] = "2026-12-31",
    cost: Any = "12.00",
    unit: str = "Monthly",
    **overrides,
) -> dict[str, Any]:
    """Factory for a raw expenses row."""
    row = dict(
        name=name,
        cost=cost,
        unit=unit,
        start_date="2026-01-01",
        expiration_date=expiration_date,
    )
    row.update(overrides)
    return row


# ---------------------------------------------------------------------------
# Model factories
# ---------------------------------------------------------------------------


def make_contact(**kwargs) -> Contact:
    return Contact.model_validate(make_contact_row(**kwargs))


def make_call(**kwargs) -> CallLogEntry:
    return CallLogEntry.model_validate(make_call_row(**kwargs))


def make_log(**kwargs) -> OperationLogEntry:
    return OperationLogEntry.model_validate(make_log_row(**kwargs))


def make_expense(**kwargs) -> ExpenseRecord:
    return ExpenseRecord.model_validate(make_expense_row(**kwargs))


def days_from(now: datetime, days: int) -> str:
    """ISO date ``days`` after ``now`` (negative for the past)."""
    return (now + timedelta(days=days)).date().isoformat()


# ---------------------------------------------------------------------------
# In-memory data source
# ---------------------------------------------------------------------------


class FakeDataSource:
    """
    In-memory stand-in for the backend client.

    Attributes:
        rows: Raw rows per entity name
        failing: Entities (or CRUD endpoints) whose requests raise BackendError
        delays: Seconds to wait before answering, keyed by the start_date filter
        http_errors: (status, body) the backend answers with, keyed by CRUD endpoint
        requests: (entity, filters) of every lookup, in call order
    """

    def __init__(
        self,
        rows: Optional[dict[str, list]] = None,
        failing: tuple[str, ...] = (),
        delays: Optional[dict[str, float]] = None,
    ):
        self.rows = rows or {}
        self.failing = set(failing)
        self.delays = delays or {}
        self.http_errors: dict[str, tuple[int, dict]] = {}
        self.requests: list[tuple[str, dict]] = []
        self.crud_requests: list[tuple[str, dict]] = []

    async def lookup(self, entity: str, filters: Optional[dict] = None) -> list[dict]:
        filters = dict(filters or {})
        self.requests.append((entity, filters))
        delay = self.delays.get(filters.get("start_date", ""))
        if delay:
            await asyncio.sleep(delay)
        if entity in self.failing:
            raise BackendError(f"{entity}-lookup unavailable", status_code=503)
        return list(self.rows.get(entity, []))

    async def crud(self, endpoint: str, payload: Optional[dict] = None) -> Any:
        if endpoint not in ALLOWED_ENDPOINTS:
            raise BackendError(f"Invalid endpoint: {endpoint}", status_code=400)
        if endpoint in self.failing:
            raise BackendError("Failed to reach backend: connection refused")
        if endpoint in self.http_errors:
            status_code, body = self.http_errors[endpoint]
            raise BackendError(body.get("message", f"HTTP {status_code}"), status_code=status_code, data=body)
        self.crud_requests.append((endpoint, dict(payload or {})))
        return {"success": True, "data": payload or {}}


def sample_rows(now: datetime = NOW) -> dict[str, list]:
    """A small but complete data set touching every command center view."""
    return {
        "contacts": [
            make_contact_row(contact_id="c_1", full_name="Ada Lovelace", status="Scheduled Meeting"),
            make_contact_row(contact_id="c_2", full_name="Grace Hopper", status="New"),
            make_contact_row(contact_id="c_3", full_name="Alan Turing", status="Contacted"),
        ],
        "calllog": [
            make_call_row(
                contact_id="c_1",
                call_started_at="2026-10-18T14:00:00",
                calendar_appointment_date_time="2026-10-21T15:00:00",
                calendar_appointment_type="Discovery",
                calendar_appointment_url="https://cal.example.com/e/1",
            ),
            make_call_row(contact_id="c_2", call_started_at="2026-10-17T11:00:00", call_successful="false"),
        ],
        "logs": [
            make_log_row(date_time="2026-10-18T12:00:00", action="create contact", cost="0.05"),
            make_log_row(date_time="2026-10-19T09:30:00", action="send email", status="error"),
        ],
        "expenses": [
            make_expense_row(name="Mail", expiration_date=days_from(now, 5)),
            make_expense_row(name="Hosting", expiration_date="2027-06-30", cost="240", unit="Annual"),
        ],
    }


# ---------------------------------------------------------------------------
# Pytest fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def fake_source():
    """Data source pre-populated with the sample data set."""
    return FakeDataSource(rows=sample_rows())


@pytest.fixture
def client(fake_source):
    """FastAPI test client whose backend is the in-memory data source."""
    from opsdash.connectors.backend_client import get_backend_client
    from opsdash.main import app

    async def override_backend_client():
        yield fake_source

    app.dependency_overrides[get_backend_client] = override_backend_client
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Authenticated request headers for the authorized account."""
    from opsdash.auth.jwt import create_access_token

    token = create_access_token({"sub": AUTHORIZED_EMAIL})
    return {
        "Authorization": f"Bearer {token}",
        "X-Request-ID": str(uuid4()),
    }
