from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from threading import RLock
from typing import Any, Dict, List, Optional

import httpx
import structlog

from .errors import PersistenceError
from .settings import Settings

logger = structlog.get_logger()

InvoiceRow = Dict[str, Any]

TABLE = "invoices"

# Values shipped in the sample .env; treated the same as missing credentials.
_PLACEHOLDER_URL = "your-supabase-url"
_PLACEHOLDER_KEY = "your-service-key"


# PUBLIC_INTERFACE
class InvoiceGateway(ABC):
    """
    Abstract contract for the invoice store.

    Every failure is raised as PersistenceError; implementations never let
    transport or driver exceptions escape.
    """

    @abstractmethod
    async def list(self, order_by: str, ascending: bool) -> List[InvoiceRow]:
        """Return all rows ordered by `order_by`."""

    @abstractmethod
    async def insert(self, row: InvoiceRow) -> InvoiceRow:
        """Insert one row and return it as stored (with id and created_at)."""

    @abstractmethod
    async def update(self, invoice_id: str, changes: InvoiceRow) -> Optional[InvoiceRow]:
        """Apply `changes` to the row with `invoice_id`. Return the updated row or None if no row matched."""

    @abstractmethod
    async def delete(self, invoice_id: str) -> int:
        """Delete the row with `invoice_id`. Return the number of rows removed."""

    async def aclose(self) -> None:
        """Release any held resources."""


class InMemoryGateway(InvoiceGateway):
    """
    Thread-safe in-memory gateway suitable for testing and local development.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: dict[str, InvoiceRow] = {}

    def _now(self) -> str:
        return datetime.now(timezone.utc).isoformat()

    async def list(self, order_by: str, ascending: bool) -> List[InvoiceRow]:
        with self._lock:
            items = [row.copy() for row in self._items.values()]
        return sorted(items, key=lambda r: r[order_by], reverse=not ascending)

    async def insert(self, row: InvoiceRow) -> InvoiceRow:
        stored = {
            **row,
            "id": str(uuid.uuid4()),
            "created_at": self._now(),
        }
        with self._lock:
            self._items[stored["id"]] = stored
            return stored.copy()

    async def update(self, invoice_id: str, changes: InvoiceRow) -> Optional[InvoiceRow]:
        with self._lock:
            existing = self._items.get(invoice_id)
            if existing is None:
                return None
            # id and created_at are never overwritten
            merged = {**existing, **changes, "id": existing["id"], "created_at": existing["created_at"]}
            self._items[invoice_id] = merged
            return merged.copy()

    async def delete(self, invoice_id: str) -> int:
        with self._lock:
            return 0 if self._items.pop(invoice_id, None) is None else 1


class SupabaseGateway(InvoiceGateway):
    """
    Gateway over the Supabase REST (PostgREST) API for the `invoices` table.

    Every call is a single statement with a bounded timeout and no retry.
    """

    def __init__(
        self,
        base_url: str,
        service_key: str,
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/rest/v1",
            headers={
                "apikey": service_key,
                "Authorization": f"Bearer {service_key}",
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(timeout_seconds, connect=min(timeout_seconds, 5.0)),
            transport=transport,
        )

    async def _request(
        self,
        method: str,
        params: Dict[str, str],
        json: Optional[InvoiceRow] = None,
        prefer: Optional[str] = None,
    ) -> List[InvoiceRow]:
        headers = {"Prefer": prefer} if prefer else None
        try:
            response = await self._client.request(method, f"/{TABLE}", params=params, json=json, headers=headers)
        except httpx.TimeoutException as exc:
            raise PersistenceError(
                "Timed out waiting for the persistence service",
                code="TIMEOUT",
                details=str(exc) or None,
            ) from exc
        except httpx.HTTPError as exc:
            raise PersistenceError(
                "Could not reach the persistence service",
                code="CONNECTION_ERROR",
                details=str(exc) or None,
            ) from exc

        if response.is_error:
            raise _error_from_response(response)
        if not response.content:
            return []
        try:
            data = response.json()
        except ValueError as exc:
            raise PersistenceError(
                "Persistence service returned an unreadable response",
                code="BAD_RESPONSE",
                details=response.text[:500],
                status_code=response.status_code,
            ) from exc
        if isinstance(data, dict):
            return [data]
        return list(data)

    async def list(self, order_by: str, ascending: bool) -> List[InvoiceRow]:
        direction = "asc" if ascending else "desc"
        return await self._request("GET", {"select": "*", "order": f"{order_by}.{direction}"})

    async def insert(self, row: InvoiceRow) -> InvoiceRow:
        rows = await self._request("POST", {"select": "*"}, json=row, prefer="return=representation")
        if not rows:
            raise PersistenceError(
                "Persistence service did not return the inserted invoice",
                code="BAD_RESPONSE",
            )
        return rows[0]

    async def update(self, invoice_id: str, changes: InvoiceRow) -> Optional[InvoiceRow]:
        rows = await self._request(
            "PATCH",
            {"id": f"eq.{invoice_id}", "select": "*"},
            json=changes,
            prefer="return=representation",
        )
        return rows[0] if rows else None

    async def delete(self, invoice_id: str) -> int:
        rows = await self._request("DELETE", {"id": f"eq.{invoice_id}"}, prefer="return=representation")
        return len(rows)

    async def aclose(self) -> None:
        await self._client.aclose()


def _error_from_response(response: httpx.Response) -> PersistenceError:
    """
    Normalize a PostgREST error response ({code, message, details, hint}) into PersistenceError.
    """
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        return PersistenceError(
            str(body.get("message") or f"Persistence service returned HTTP {response.status_code}"),
            code=_as_text(body.get("code")),
            details=_as_text(body.get("details")),
            hint=_as_text(body.get("hint")),
            status_code=response.status_code,
        )
    return PersistenceError(
        f"Persistence service returned HTTP {response.status_code}",
        code=f"HTTP_{response.status_code}",
        details=response.text[:500] or None,
        status_code=response.status_code,
    )


def _as_text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _is_placeholder(value: Optional[str], placeholder: str) -> bool:
    return value is None or value == placeholder


# PUBLIC_INTERFACE
def build_gateway(settings: Settings) -> Optional[InvoiceGateway]:
    """
    Factory returning the configured gateway based on settings.
    - memory: InMemoryGateway
    - supabase: SupabaseGateway, or None when credentials are missing (unconfigured)
    """
    if settings.persistence_backend == "memory":
        logger.info("gateway_initialized", backend="memory")
        return InMemoryGateway()

    missing = []
    if _is_placeholder(settings.supabase_url, _PLACEHOLDER_URL):
        missing.append("SUPABASE_URL")
    if _is_placeholder(settings.supabase_service_key, _PLACEHOLDER_KEY):
        missing.append("SUPABASE_SERVICE_KEY")
    if missing:
        logger.warning(
            "gateway_unconfigured",
            backend="supabase",
            missing=missing,
            note="list requests return no invoices and writes fail until configured",
        )
        return None

    gateway = SupabaseGateway(
        settings.supabase_url,  # type: ignore[arg-type]
        settings.supabase_service_key,  # type: ignore[arg-type]
        timeout_seconds=settings.persistence_timeout_seconds,
    )
    logger.info("gateway_initialized", backend="supabase", url=settings.supabase_url[:30])  # type: ignore[index]
    return gateway
