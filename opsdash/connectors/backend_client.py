"""
Automation backend client.

The backend exposes one CRUD webhook per entity and operation
(``contacts-lookup``, ``calllog-update``, ...). Every call is a JSON POST to
``{base_url}/{endpoint}`` with an ``operation`` envelope:

- lookup: {"operation": "get", "filters": {...}}
- create / update / delete: {"operation": ..., "data": {...}}

Only allowlisted endpoints may be called. Requests are not retried; callers
decide how to degrade on failure.
"""

from typing import Any, AsyncIterator, Optional, Protocol

import httpx
import structlog

from opsdash.config import get_settings

logger = structlog.get_logger()


ALLOWED_ENDPOINTS = frozenset(
    {
        "contacts-lookup", "contacts-create", "contacts-update", "contacts-delete",
        "calllog-lookup", "calllog-create", "calllog-update", "calllog-delete",
        "logs-lookup", "logs-create", "logs-update", "logs-delete",
        "leads-lookup", "leads-create", "leads-update", "leads-delete",
        "sales-lookup", "sales-create", "sales-update", "sales-delete",
        "expenses-lookup", "expenses-create", "expenses-update", "expenses-delete",
        "configuration-lookup", "configuration-update",
        "contactstatus-lookup", "leadstatus-lookup",
        "expensetype-lookup", "expenseunit-lookup",
        "executions-lookup",
    }
)


class BackendError(Exception):
    """
    Raised when a backend request fails.

    Attributes:
        status_code: HTTP status returned by the backend (0 for transport errors)
        data: Parsed error body, when there was one
    """

    def __init__(self, message: str, status_code: int = 0, data: Optional[dict] = None):
        super().__init__(message)
        self.status_code = status_code
        self.data = data or {}


class EndpointNotAllowedError(BackendError):
    """Raised for endpoints outside the allowlist."""


class EntityDataSource(Protocol):
    """Anything that can look up one entity's records."""

    async def lookup(self, entity: str, filters: Optional[dict[str, Any]] = None) -> list[dict]:
        ...


def clean_filters(filters: Optional[dict[str, Any]]) -> dict[str, Any]:
    """Drop filters whose value is None or an empty string."""
    return {k: v for k, v in (filters or {}).items() if v is not None and v != ""}


def extract_records(payload: Any) -> list[dict]:
    """
    Pull the record list out of a lookup response.

    Records arrive under "data" or "results"; a bare list is taken as-is.
    Anything else yields an empty list.
    """
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in ("data", "results"):
            rows = payload.get(key)
            if isinstance(rows, list):
                return rows
    return []


class BackendClient:
    """
    Async client for the CRUD webhook backend.

    Attributes:
        base_url: Webhook base URL (no trailing slash)
        timeout: Per-request timeout in seconds

    Example:
        >>> async with BackendClient("https://automation.example.com/webhook") as client:
        ...     contacts = await client.lookup("contacts", {"start_date": "2026-10-01"})
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(cls) -> "BackendClient":
        settings = get_settings()
        return cls(base_url=settings.backend_base_url, timeout=settings.backend_timeout_seconds)

    async def __aenter__(self):
        """Async context manager entry."""
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.aclose()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self._http_client

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def crud(self, endpoint: str, payload: Optional[dict[str, Any]] = None) -> Any:
        """
        POST a payload to an allowlisted endpoint and return the decoded JSON.

        Raises:
            EndpointNotAllowedError: If the endpoint is not allowlisted
            BackendError: If the backend is not configured, unreachable, or
                answers with a non-2xx status
        """
        if endpoint not in ALLOWED_ENDPOINTS:
            raise EndpointNotAllowedError(f"Invalid endpoint: {endpoint}", status_code=400)
        if not self.base_url:
            raise BackendError("Backend base URL not configured", status_code=500)

        url = f"{self.base_url}/{endpoint}"
        client = self._ensure_client()

        try:
            response = await client.post(url, json=payload or {})
        except httpx.HTTPError as e:
            logger.error("backend_request_error", endpoint=endpoint, error=str(e))
            raise BackendError(f"Failed to reach backend: {e}") from e

        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = {}
            logger.error(
                "backend_request_failed",
                endpoint=endpoint,
                status_code=response.status_code,
            )
            message = body.get("message") if isinstance(body, dict) else None
            raise BackendError(
                message or f"HTTP {response.status_code}",
                status_code=response.status_code,
                data=body if isinstance(body, dict) else {},
            )

        try:
            data = response.json()
        except ValueError as e:
            raise BackendError(
                f"Invalid JSON from {endpoint}", status_code=response.status_code
            ) from e

        logger.debug("backend_request_success", endpoint=endpoint, status_code=response.status_code)
        return data

    async def lookup(self, entity: str, filters: Optional[dict[str, Any]] = None) -> list[dict]:
        """Fetch an entity's records. Blank filter values are never sent."""
        payload = await self.crud(
            f"{entity}-lookup", {"operation": "get", "filters": clean_filters(filters)}
        )
        records = extract_records(payload)
        logger.info("entity_lookup", entity=entity, count=len(records))
        return records

    async def create(self, entity: str, data: dict[str, Any]) -> Any:
        return await self.crud(f"{entity}-create", {"operation": "create", "data": data})

    async def update(self, entity: str, data: dict[str, Any]) -> Any:
        return await self.crud(f"{entity}-update", {"operation": "update", "data": data})

    async def delete(self, entity: str, data: dict[str, Any]) -> Any:
        return await self.crud(f"{entity}-delete", {"operation": "delete", "data": data})


async def get_backend_client() -> AsyncIterator[BackendClient]:
    """FastAPI dependency yielding a request-scoped backend client."""
    async with BackendClient.from_settings() as client:
        yield client
