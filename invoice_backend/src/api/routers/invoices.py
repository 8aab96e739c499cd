from __future__ import annotations

from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, Query, Request, status

from ..schemas import ErrorResponse, InvoiceOut, ValidationErrorResponse
from ..services import InvoiceService
from ..validation import validate_create, validate_delete, validate_list_query, validate_update

router = APIRouter(
    prefix="/invoices",
    tags=["invoices"],
)

_ERROR_RESPONSES = {
    400: {"model": ValidationErrorResponse, "description": "Validation error"},
    500: {"model": ErrorResponse, "description": "Persistence or configuration failure"},
}


# PUBLIC_INTERFACE
def get_invoice_service(request: Request) -> InvoiceService:
    """
    Dependency returning the service built at app startup.
    Tests may swap it through app.dependency_overrides.
    """
    return request.app.state.invoice_service


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[InvoiceOut],
    summary="List Invoices",
    description=(
        "List all invoices.\n\n"
        "Query parameters:\n"
        "- sortBy: one of id, client_name, amount, status, due_date, created_at (default created_at)\n"
        "- ascending: 'true' or 'false' (default false)\n\n"
        "Returns an empty list when persistence is not configured."
    ),
    responses={200: {"description": "List retrieved successfully"}, **_ERROR_RESPONSES},
)
async def list_invoices(
    sort_by: Optional[str] = Query(None, alias="sortBy", description="Column to order by"),
    ascending: Optional[str] = Query(None, description="'true' or 'false'"),
    service: InvoiceService = Depends(get_invoice_service),
) -> List[Any]:
    """
    List invoices ordered by the requested column.
    """
    raw = {"sortBy": sort_by, "ascending": ascending}
    query = validate_list_query({k: v for k, v in raw.items() if v is not None})
    return await service.get_all(query.sort_by, query.ascending)


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=InvoiceOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Invoice",
    description="Create a new invoice and return the stored resource. `status` defaults to draft.",
    responses={201: {"description": "Invoice created successfully"}, **_ERROR_RESPONSES},
)
async def create_invoice(
    payload: Any = Body(None, description="Invoice fields: client_name, amount, due_date and optional status"),
    service: InvoiceService = Depends(get_invoice_service),
) -> Any:
    """
    Create a new invoice.
    """
    dto = validate_create(payload)
    return await service.create(dto)


# PUBLIC_INTERFACE
@router.patch(
    "/{invoice_id}",
    response_model=InvoiceOut,
    summary="Update Invoice",
    description="Partially update an invoice. Only supplied fields change; unknown fields are rejected.",
    responses={
        200: {"description": "Invoice updated"},
        404: {"model": ErrorResponse, "description": "Invoice not found"},
        **_ERROR_RESPONSES,
    },
)
async def update_invoice(
    invoice_id: str,
    payload: Any = Body(None, description="Any subset of client_name, amount, status, due_date"),
    service: InvoiceService = Depends(get_invoice_service),
) -> Any:
    """
    Partial update of an invoice.
    """
    target_id, dto = validate_update(invoice_id, payload)
    return await service.update(target_id, dto)


# PUBLIC_INTERFACE
@router.delete(
    "/{invoice_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Invoice",
    description="Delete an invoice by ID. Deleting an invoice that does not exist still returns 204.",
    responses={204: {"description": "Invoice deleted"}, **_ERROR_RESPONSES},
)
async def delete_invoice(
    invoice_id: str,
    service: InvoiceService = Depends(get_invoice_service),
) -> None:
    """
    Delete an invoice. Returns 204 whether or not it existed.
    """
    await service.delete(validate_delete(invoice_id))
    return None

