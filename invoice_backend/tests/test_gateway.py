"""
Unit tests for src/api/gateway.py

SupabaseGateway is exercised against httpx.MockTransport so the PostgREST
request shape and the error normalization can be checked without a network.
"""

import json

import httpx
import pytest

from src.api.errors import PersistenceError
from src.api.gateway import InMemoryGateway, SupabaseGateway, build_gateway
from src.api.settings import Settings

BASE_URL = "https://project.supabase.co"
KEY = "service-key"
ROW = {
    "id": "3f2b8c1e-9d4a-4e6b-8f1a-2c3d4e5f6a7b",
    "client_name": "Acme",
    "amount": 150,
    "status": "draft",
    "due_date": "2025-01-01",
    "created_at": "2025-01-01T00:00:00+00:00",
}


def gateway_with(handler) -> SupabaseGateway:
    return SupabaseGateway(BASE_URL, KEY, timeout_seconds=2.0, transport=httpx.MockTransport(handler))


class TestSupabaseGatewayRequests:
    @pytest.mark.asyncio
    async def test_list_orders_and_authenticates(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return httpx.Response(200, json=[ROW])

        gateway = gateway_with(handler)
        rows = await gateway.list("amount", True)
        await gateway.aclose()

        request = seen["request"]
        assert rows == [ROW]
        assert request.method == "GET"
        assert request.url.path == "/rest/v1/invoices"
        assert request.url.params["order"] == "amount.asc"
        assert request.url.params["select"] == "*"
        assert request.headers["apikey"] == KEY
        assert request.headers["Authorization"] == f"Bearer {KEY}"

    @pytest.mark.asyncio
    async def test_list_descending(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["order"] == "created_at.desc"
            return httpx.Response(200, json=[])

        gateway = gateway_with(handler)
        assert await gateway.list("created_at", False) == []
        await gateway.aclose()

    @pytest.mark.asyncio
    async def test_insert_returns_representation(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "POST"
            assert request.headers["Prefer"] == "return=representation"
            body = json.loads(request.content)
            assert body == {"client_name": "Acme", "amount": 150, "status": "draft", "due_date": "2025-01-01"}
            return httpx.Response(201, json=[{**ROW, **body}])

        gateway = gateway_with(handler)
        created = await gateway.insert(
            {"client_name": "Acme", "amount": 150, "status": "draft", "due_date": "2025-01-01"}
        )
        await gateway.aclose()
        assert created["id"] == ROW["id"]

    @pytest.mark.asyncio
    async def test_insert_without_representation_is_an_error(self):
        gateway = gateway_with(lambda request: httpx.Response(201, content=b""))
        with pytest.raises(PersistenceError) as info:
            await gateway.insert({"client_name": "Acme"})
        await gateway.aclose()
        assert info.value.code == "BAD_RESPONSE"

    @pytest.mark.asyncio
    async def test_update_filters_by_id(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "PATCH"
            assert request.url.params["id"] == f"eq.{ROW['id']}"
            assert json.loads(request.content) == {"status": "paid"}
            return httpx.Response(200, json=[{**ROW, "status": "paid"}])

        gateway = gateway_with(handler)
        updated = await gateway.update(ROW["id"], {"status": "paid"})
        await gateway.aclose()
        assert updated["status"] == "paid"

    @pytest.mark.asyncio
    async def test_update_zero_rows_returns_none(self):
        gateway = gateway_with(lambda request: httpx.Response(200, json=[]))
        assert await gateway.update(ROW["id"], {"status": "paid"}) is None
        await gateway.aclose()

    @pytest.mark.asyncio
    async def test_delete_counts_rows(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "DELETE"
            assert request.url.params["id"] == f"eq.{ROW['id']}"
            return httpx.Response(200, json=[ROW])

        gateway = gateway_with(handler)
        assert await gateway.delete(ROW["id"]) == 1
        await gateway.aclose()

    @pytest.mark.asyncio
    async def test_delete_missing_row_is_zero(self):
        gateway = gateway_with(lambda request: httpx.Response(200, json=[]))
        assert await gateway.delete(ROW["id"]) == 0
        await gateway.aclose()


class TestSupabaseGatewayErrors:
    @pytest.mark.asyncio
    async def test_postgrest_error_is_normalized(self):
        error_body = {
            "code": "23514",
            "message": 'new row for relation "invoices" violates check constraint "invoices_amount_check"',
            "details": "Failing row contains (...)",
            "hint": None,
        }
        gateway = gateway_with(lambda request: httpx.Response(400, json=error_body))
        with pytest.raises(PersistenceError) as info:
            await gateway.insert({"client_name": "Acme"})
        await gateway.aclose()

        exc = info.value
        assert exc.message == error_body["message"]
        assert exc.code == "23514"
        assert exc.details == "Failing row contains (...)"
        assert exc.hint is None
        assert exc.status_code == 400

    @pytest.mark.asyncio
    async def test_non_json_error_is_normalized(self):
        gateway = gateway_with(lambda request: httpx.Response(502, text="Bad Gateway"))
        with pytest.raises(PersistenceError) as info:
            await gateway.list("created_at", False)
        await gateway.aclose()
        assert info.value.code == "HTTP_502"
        assert info.value.details == "Bad Gateway"

    @pytest.mark.asyncio
    async def test_timeout_is_normalized(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        gateway = gateway_with(handler)
        with pytest.raises(PersistenceError) as info:
            await gateway.delete(ROW["id"])
        await gateway.aclose()
        assert info.value.code == "TIMEOUT"

    @pytest.mark.asyncio
    async def test_connection_error_is_normalized(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        gateway = gateway_with(handler)
        with pytest.raises(PersistenceError) as info:
            await gateway.update(ROW["id"], {"amount": 1})
        await gateway.aclose()
        assert info.value.code == "CONNECTION_ERROR"
        assert "connection refused" in info.value.details

    @pytest.mark.asyncio
    async def test_unreadable_success_body(self):
        gateway = gateway_with(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(PersistenceError) as info:
            await gateway.list("created_at", False)
        await gateway.aclose()
        assert info.value.code == "BAD_RESPONSE"


class TestInMemoryGateway:
    @pytest.mark.asyncio
    async def test_assigns_id_and_created_at(self):
        gateway = InMemoryGateway()
        row = await gateway.insert({"client_name": "Acme", "id": "client-chosen"})
        assert row["id"] != "client-chosen"
        assert row["created_at"]

    @pytest.mark.asyncio
    async def test_update_never_overwrites_identity(self):
        gateway = InMemoryGateway()
        row = await gateway.insert({"client_name": "Acme"})
        updated = await gateway.update(row["id"], {"id": "other", "created_at": "x", "client_name": "B"})
        assert updated["id"] == row["id"]
        assert updated["created_at"] == row["created_at"]
        assert updated["client_name"] == "B"

    @pytest.mark.asyncio
    async def test_returned_rows_are_copies(self):
        gateway = InMemoryGateway()
        row = await gateway.insert({"client_name": "Acme"})
        row["client_name"] = "mutated"
        assert (await gateway.list("created_at", False))[0]["client_name"] == "Acme"


class TestBuildGateway:
    def test_memory_backend(self):
        assert isinstance(build_gateway(Settings(persistence_backend="memory")), InMemoryGateway)

    def test_missing_credentials_leave_gateway_unconfigured(self):
        assert build_gateway(Settings(persistence_backend="supabase")) is None
        assert build_gateway(Settings(supabase_url=BASE_URL)) is None
        assert build_gateway(Settings(supabase_service_key=KEY)) is None

    def test_placeholder_credentials_leave_gateway_unconfigured(self):
        settings = Settings(supabase_url="your-supabase-url", supabase_service_key="your-service-key")
        assert build_gateway(settings) is None

    @pytest.mark.asyncio
    async def test_configured_supabase(self):
        gateway = build_gateway(Settings(supabase_url=BASE_URL, supabase_service_key=KEY))
        assert isinstance(gateway, SupabaseGateway)
        await gateway.aclose()
