from __future__ import annotations

from typing import List, Optional

import structlog

from .errors import ConfigurationError, NotFoundError, PersistenceError
from .gateway import InvoiceGateway, InvoiceRow
from .schemas import DEFAULT_STATUS, InvoiceCreate, InvoiceUpdate

logger = structlog.get_logger()

NOT_CONFIGURED_MESSAGE = (
    "Persistence is not configured. Please set SUPABASE_URL and SUPABASE_SERVICE_KEY"
)


# PUBLIC_INTERFACE
class InvoiceService:
    """
    Business rules between validated input and the persistence gateway.

    The gateway is injected; None means the deployment has no persistence
    configured. Reads degrade to an empty result in that case, writes raise
    ConfigurationError.
    """

    def __init__(self, gateway: Optional[InvoiceGateway]) -> None:
        self._gateway = gateway

    @property
    def configured(self) -> bool:
        return self._gateway is not None

    def _require_gateway(self, operation: str) -> InvoiceGateway:
        if self._gateway is None:
            logger.warning("invoice_gateway_unconfigured", operation=operation)
            raise ConfigurationError(NOT_CONFIGURED_MESSAGE)
        return self._gateway

    async def get_all(self, sort_by: str = "created_at", ascending: bool = False) -> List[InvoiceRow]:
        if self._gateway is None:
            logger.warning("invoice_list_degraded", reason="gateway unconfigured")
            return []

        logger.info("invoice_list_started", sort_by=sort_by, ascending=ascending)
        try:
            rows = await self._gateway.list(sort_by, ascending)
        except PersistenceError as exc:
            _log_persistence_failure("invoice_list_failed", exc)
            raise
        logger.info("invoice_list_succeeded", count=len(rows))
        return rows

    async def create(self, dto: InvoiceCreate) -> InvoiceRow:
        gateway = self._require_gateway("create")
        row = dto.model_dump(mode="json")
        if not row.get("status"):
            row["status"] = DEFAULT_STATUS.value

        logger.info("invoice_create_started", client_name=row["client_name"], amount=row["amount"])
        try:
            created = await gateway.insert(row)
        except PersistenceError as exc:
            _log_persistence_failure("invoice_create_failed", exc)
            raise
        logger.info("invoice_create_succeeded", invoice_id=created.get("id"))
        return created

    async def update(self, invoice_id: str, dto: InvoiceUpdate) -> InvoiceRow:
        gateway = self._require_gateway("update")
        changes = dto.changes()

        logger.info("invoice_update_started", invoice_id=invoice_id, fields=sorted(changes))
        try:
            updated = await gateway.update(invoice_id, changes)
        except PersistenceError as exc:
            _log_persistence_failure("invoice_update_failed", exc, invoice_id=invoice_id)
            raise
        if updated is None:
            logger.info("invoice_update_not_found", invoice_id=invoice_id)
            raise NotFoundError("Invoice not found")
        logger.info("invoice_update_succeeded", invoice_id=invoice_id)
        return updated

    async def delete(self, invoice_id: str) -> None:
        gateway = self._require_gateway("delete")

        logger.info("invoice_delete_started", invoice_id=invoice_id)
        try:
            deleted = await gateway.delete(invoice_id)
        except PersistenceError as exc:
            _log_persistence_failure("invoice_delete_failed", exc, invoice_id=invoice_id)
            raise
        # Zero rows is still success: delete is idempotent.
        logger.info("invoice_delete_succeeded", invoice_id=invoice_id, deleted=deleted)


def _log_persistence_failure(event: str, exc: PersistenceError, **context) -> None:
    logger.error(
        event,
        message=exc.message,
        code=exc.code,
        details=exc.details,
        hint=exc.hint,
        status_code=exc.status_code,
        **context,
    )
