from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, get_args

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator
from pydantic_core import PydanticCustomError


# PUBLIC_INTERFACE
class InvoiceStatus(str, Enum):
    """Lifecycle status of an invoice."""

    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"


DEFAULT_STATUS = InvoiceStatus.DRAFT

# Field types shared by every invoice model so the DTOs cannot drift from the entity.
ClientName = Annotated[str, StringConstraints(strict=True, min_length=1)]
Amount = Annotated[float, Field(strict=True, gt=0, allow_inf_nan=False)]
DueDate = Annotated[str, StringConstraints(strict=True, min_length=1)]

SortField = Literal["id", "client_name", "amount", "status", "due_date", "created_at"]
SORT_FIELDS = get_args(SortField)

_EXAMPLE = {
    "client_name": "Acme",
    "amount": 150,
    "status": "draft",
    "due_date": "2025-01-01",
}


# PUBLIC_INTERFACE
class InvoiceOut(BaseModel):
    """
    Schema returned by the API for an invoice.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "0b6f7a8e-3c1d-4f4e-9a52-2f1b5c6d7e80",
                **_EXAMPLE,
                "created_at": "2025-01-01T10:15:30.123456+00:00",
            }
        }
    )

    id: str = Field(..., description="Unique identifier (UUID) assigned by persistence")
    client_name: str = Field(..., description="Name of the billed client")
    amount: float = Field(..., description="Invoice amount, strictly positive")
    status: InvoiceStatus = Field(..., description="Lifecycle status")
    due_date: str = Field(..., description="Due date as text")
    created_at: str = Field(..., description="Creation timestamp assigned by persistence")


# PUBLIC_INTERFACE
class InvoiceCreate(BaseModel):
    """
    Schema for creating an invoice. `status` defaults to draft.
    """

    model_config = ConfigDict(json_schema_extra={"example": _EXAMPLE})

    client_name: ClientName = Field(..., description="Name of the billed client")
    amount: Amount = Field(..., description="Invoice amount, strictly positive")
    status: InvoiceStatus = Field(default=DEFAULT_STATUS, description="Lifecycle status")
    due_date: DueDate = Field(..., description="Due date as text")


# PUBLIC_INTERFACE
class InvoiceUpdate(BaseModel):
    """
    Schema for partially updating an invoice.
    All fields are optional; only provided fields will be updated. Unknown fields are rejected.
    """

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={"example": {"status": "sent", "amount": 175.5}},
    )

    client_name: Optional[ClientName] = Field(default=None, description="Name of the billed client")
    amount: Optional[Amount] = Field(default=None, description="Invoice amount, strictly positive")
    status: Optional[InvoiceStatus] = Field(default=None, description="Lifecycle status")
    due_date: Optional[DueDate] = Field(default=None, description="Due date as text")

    @field_validator("client_name", "amount", "status", "due_date", mode="before")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        """
        Omitting a field leaves it untouched; sending an explicit null is an error.
        """
        if v is None:
            raise PydanticCustomError("null_not_allowed", "Field may not be null")
        return v

    def changes(self) -> Dict[str, Any]:
        """Return only the fields the client supplied, JSON-ready."""
        return self.model_dump(mode="json", exclude_unset=True)


# PUBLIC_INTERFACE
class InvoiceListQuery(BaseModel):
    """
    Raw query parameters accepted by the list endpoint.
    """

    sort_by: Optional[SortField] = Field(default=None, alias="sortBy", description="Column to order by")
    ascending: Optional[Literal["true", "false"]] = Field(
        default=None, description="'true' for ascending order, 'false' for descending"
    )


# PUBLIC_INTERFACE
class ErrorDetail(BaseModel):
    """One field-level validation failure."""

    field: str
    message: str


# PUBLIC_INTERFACE
class ErrorResponse(BaseModel):
    """
    Error body returned for every failed request. `details` is a list of field errors
    for 400 responses and the persistence diagnostic for persistence failures.
    """

    error: str
    details: Optional[Any] = None


class ValidationErrorResponse(BaseModel):
    error: str
    details: List[ErrorDetail]


# PUBLIC_INTERFACE
class HealthOut(BaseModel):
    """Health check payload."""

    status: str = Field(..., description="Always 'ok' when the process is serving requests")
    timestamp: str = Field(..., description="Current server time as ISO-8601")
