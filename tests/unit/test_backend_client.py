"""
Unit tests for the CRUD webhook backend client.

Uses httpx.MockTransport so no network is touched.
"""

import asyncio
import json

import httpx
import pytest

from opsdash.connectors.backend_client import (
    BackendClient,
    BackendError,
    EndpointNotAllowedError,
    clean_filters,
    extract_records,
)

BASE_URL = "http://backend.test/webhook"


def _client(handler) -> BackendClient:
    return BackendClient(BASE_URL, timeout=5.0, transport=httpx.MockTransport(handler))


def _run(client: BackendClient, coro_fn):
    async def runner():
        async with client:
            return await coro_fn(client)

    return asyncio.run(runner())


class TestHelpers:
    def test_backend_clean_filters_strips_blanks(self):
        assert clean_filters({"start_date": "2026-10-01", "end_date": "", "status": None, "limit": 0}) == {
            "start_date": "2026-10-01",
            "limit": 0,
        }
        assert clean_filters(None) == {}

    def test_backend_extract_records_shapes(self):
        assert extract_records({"data": [{"a": 1}]}) == [{"a": 1}]
        assert extract_records({"results": [{"b": 2}]}) == [{"b": 2}]
        assert extract_records([{"c": 3}]) == [{"c": 3}]
        assert extract_records({"data": "nope"}) == []
        assert extract_records(None) == []


class TestBackendClient:
    def test_backend_lookup_posts_get_envelope(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"success": True, "data": [{"contact_id": "c_1"}]})

        rows = _run(_client(handler), lambda c: c.lookup("contacts", {"start_date": "2026-10-01", "end_date": ""}))

        assert rows == [{"contact_id": "c_1"}]
        assert seen["url"] == f"{BASE_URL}/contacts-lookup"
        assert seen["body"] == {"operation": "get", "filters": {"start_date": "2026-10-01"}}

    def test_backend_create_update_delete_envelopes(self):
        bodies = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append((request.url.path.rsplit("/", 1)[-1], json.loads(request.content)))
            return httpx.Response(200, json={"success": True})

        async def calls(c):
            await c.create("expenses", {"name": "Mail"})
            await c.update("expenses", {"id": 1, "cost": 12})
            await c.delete("expenses", {"id": 1})

        _run(_client(handler), calls)

        assert bodies == [
            ("expenses-create", {"operation": "create", "data": {"name": "Mail"}}),
            ("expenses-update", {"operation": "update", "data": {"id": 1, "cost": 12}}),
            ("expenses-delete", {"operation": "delete", "data": {"id": 1}}),
        ]

    def test_backend_crud_rejects_unlisted_endpoint(self):
        def handler(request):
            raise AssertionError("request must not be sent")

        with pytest.raises(EndpointNotAllowedError):
            _run(_client(handler), lambda c: c.crud("admin-drop", {}))

    def test_backend_http_error_raises_with_status(self):
        def handler(request):
            return httpx.Response(500, json={"message": "workflow crashed"})

        with pytest.raises(BackendError) as exc_info:
            _run(_client(handler), lambda c: c.lookup("logs"))
        assert exc_info.value.status_code == 500
        assert str(exc_info.value) == "workflow crashed"

    def test_backend_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(BackendError) as exc_info:
            _run(_client(handler), lambda c: c.lookup("logs"))
        assert exc_info.value.status_code == 0

    def test_backend_invalid_json_raises(self):
        def handler(request):
            return httpx.Response(200, content=b"<html>")

        with pytest.raises(BackendError):
            _run(_client(handler), lambda c: c.lookup("logs"))

    def test_backend_missing_base_url(self):
        client = BackendClient("", transport=httpx.MockTransport(lambda r: httpx.Response(200, json=[])))
        with pytest.raises(BackendError) as exc_info:
            _run(client, lambda c: c.lookup("logs"))
        assert exc_info.value.status_code == 500
