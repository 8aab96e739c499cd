import os
from typing import List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

# Keep test runs off the network and away from any local .env credentials
os.environ["PERSISTENCE_BACKEND"] = "memory"
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from src.api.errors import PersistenceError  # noqa: E402
from src.api.gateway import InMemoryGateway, InvoiceRow  # noqa: E402
from src.api.main import create_app  # noqa: E402
from src.api.settings import Settings  # noqa: E402

TEST_SETTINGS = Settings(persistence_backend="memory", environment="test", log_level="WARNING")


class RecordingGateway(InMemoryGateway):
    """In-memory gateway that records every call it receives."""

    def __init__(self) -> None:
        super().__init__()
        self.calls: List[Tuple[str, tuple]] = []

    async def list(self, order_by: str, ascending: bool) -> List[InvoiceRow]:
        self.calls.append(("list", (order_by, ascending)))
        return await super().list(order_by, ascending)

    async def insert(self, row: InvoiceRow) -> InvoiceRow:
        self.calls.append(("insert", (row,)))
        return await super().insert(row)

    async def update(self, invoice_id: str, changes: InvoiceRow) -> Optional[InvoiceRow]:
        self.calls.append(("update", (invoice_id, changes)))
        return await super().update(invoice_id, changes)

    async def delete(self, invoice_id: str) -> int:
        self.calls.append(("delete", (invoice_id,)))
        return await super().delete(invoice_id)


class FailingGateway(InMemoryGateway):
    """Gateway whose every operation raises the configured exception."""

    def __init__(self, exc: Exception) -> None:
        super().__init__()
        self.exc = exc

    async def list(self, order_by, ascending):
        raise self.exc

    async def insert(self, row):
        raise self.exc

    async def update(self, invoice_id, changes):
        raise self.exc

    async def delete(self, invoice_id):
        raise self.exc


def duplicate_key_error() -> PersistenceError:
    return PersistenceError(
        'duplicate key value violates unique constraint "invoices_pkey"',
        code="23505",
        details="Key (id)=(x) already exists.",
        hint=None,
        status_code=409,
    )


def invoice_payload(client_name="Acme", amount=150, due_date="2025-01-01", status=None):
    payload = {"client_name": client_name, "amount": amount, "due_date": due_date}
    if status is not None:
        payload["status"] = status
    return payload


@pytest.fixture
def gateway() -> RecordingGateway:
    return RecordingGateway()


@pytest.fixture
def client(gateway) -> TestClient:
    return TestClient(create_app(settings=TEST_SETTINGS, gateway=gateway))


@pytest.fixture
def unconfigured_client() -> TestClient:
    return TestClient(create_app(settings=TEST_SETTINGS, gateway=None))
