"""
Request validation for the invoice endpoints.

Turns raw path/query/body input into typed DTOs before anything reaches the
service. Every failure is collected and reported together as a list of
FieldError entries inside a single ValidationError.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .errors import FieldError, ValidationError
from .schemas import InvoiceCreate, InvoiceListQuery, InvoiceUpdate

INVALID_ID = "Invalid invoice ID"
INVALID_BODY = "Invalid request body"
INVALID_QUERY = "Invalid query parameters"

DEFAULT_SORT_BY = "created_at"
DEFAULT_ASCENDING = False

_UUID_RE = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
    re.IGNORECASE,
)

# (field, pydantic error type) -> message; a None field matches any field
_MESSAGES = {
    ("client_name", "missing"): "Client name is required",
    ("client_name", "string_too_short"): "Client name is required",
    ("amount", "missing"): "Amount is required",
    ("amount", "greater_than"): "Amount must be a positive number",
    ("amount", "float_type"): "Amount must be a number",
    ("amount", "finite_number"): "Amount must be a finite number",
    ("due_date", "missing"): "Due date is required",
    ("due_date", "string_too_short"): "Due date is required",
    ("status", "enum"): "Status must be one of: draft, sent, paid, overdue",
    ("sortBy", "literal_error"): "sortBy must be one of: id, client_name, amount, status, due_date, created_at",
    ("ascending", "literal_error"): "ascending must be 'true' or 'false'",
    (None, "extra_forbidden"): "Unrecognized field",
}


@dataclass(frozen=True)
class ListQuery:
    """
    Normalized list parameters handed to the service.
    """
    sort_by: str = DEFAULT_SORT_BY
    ascending: bool = DEFAULT_ASCENDING


def _field_path(loc: Tuple[Any, ...]) -> str:
    return ".".join(str(part) for part in loc) if loc else "body"


def _to_field_errors(exc: PydanticValidationError) -> List[FieldError]:
    errors: List[FieldError] = []
    for err in exc.errors():
        field = _field_path(tuple(err.get("loc", ())))
        top = field.split(".", 1)[0]
        message = (
            _MESSAGES.get((top, err["type"]))
            or _MESSAGES.get((None, err["type"]))
            or err["msg"]
        )
        errors.append(FieldError(field=field, message=message))
    return errors


def _check_id(path_id: Optional[str]) -> List[FieldError]:
    if not path_id:
        return [FieldError(field="id", message="Invoice ID is required")]
    if not _UUID_RE.fullmatch(path_id):
        return [FieldError(field="id", message="Invoice ID must be a valid UUID")]
    return []


def _parse(model: type[BaseModel], data: Any) -> Tuple[Optional[Any], List[FieldError]]:
    if not isinstance(data, Mapping):
        return None, [FieldError(field="body", message="Request body must be a JSON object")]
    try:
        return model.model_validate(dict(data)), []
    except PydanticValidationError as exc:
        return None, _to_field_errors(exc)


# PUBLIC_INTERFACE
def validate_create(body: Any) -> InvoiceCreate:
    """
    Validate a create payload.

    Raises:
        ValidationError: with every failing field when the payload is invalid.
    """
    dto, errors = _parse(InvoiceCreate, body)
    if errors:
        raise ValidationError(INVALID_BODY, errors)
    return dto


# PUBLIC_INTERFACE
def validate_update(path_id: Optional[str], body: Any) -> Tuple[str, InvoiceUpdate]:
    """
    Validate the target id and a partial update payload.

    Id and body failures are reported together. The summary names the id when
    it is malformed, since that is what the client most likely got wrong.
    An update that supplies no fields is rejected. The id is returned lower-cased.
    """
    id_errors = _check_id(path_id)
    dto, body_errors = _parse(InvoiceUpdate, body)
    if dto is not None and not dto.model_fields_set:
        body_errors = [FieldError(field="body", message="At least one field must be provided")]

    if id_errors or body_errors:
        summary = INVALID_ID if id_errors else INVALID_BODY
        raise ValidationError(summary, id_errors + body_errors)
    return path_id.lower(), dto  # type: ignore[union-attr]


# PUBLIC_INTERFACE
def validate_delete(path_id: Optional[str]) -> str:
    """Validate a delete target id and return it lower-cased."""
    errors = _check_id(path_id)
    if errors:
        raise ValidationError(INVALID_ID, errors)
    return path_id.lower()  # type: ignore[union-attr]


# PUBLIC_INTERFACE
def validate_list_query(query: Mapping[str, Any]) -> ListQuery:
    """
    Validate list query parameters.

    Both parameters are optional: sortBy defaults to created_at and ascending to false.
    Unrelated parameters are ignored.
    """
    parsed, errors = _parse(InvoiceListQuery, query)
    if errors:
        raise ValidationError(INVALID_QUERY, errors)
    return ListQuery(
        sort_by=parsed.sort_by or DEFAULT_SORT_BY,
        ascending=DEFAULT_ASCENDING if parsed.ascending is None else parsed.ascending == "true",
    )
