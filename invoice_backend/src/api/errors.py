"""
Error taxonomy shared by the validator, the service and the persistence gateway.

The HTTP layer is the only place that turns these into status codes
(see error_handlers.py).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class FieldError:
    """A single validation failure: the offending field path and a readable message."""

    field: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "message": self.message}


class InvoiceError(Exception):
    """Base class for every error raised by the invoice core."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# PUBLIC_INTERFACE
class ValidationError(InvoiceError):
    """
    Client input was malformed. Carries every collected field failure,
    never just the first one.
    """

    def __init__(self, message: str, errors: List[FieldError]) -> None:
        super().__init__(message)
        self.errors = list(errors)


# PUBLIC_INTERFACE
class NotFoundError(InvoiceError):
    """The targeted invoice does not exist."""


# PUBLIC_INTERFACE
class ConfigurationError(InvoiceError):
    """The persistence gateway is not configured for this deployment."""


# PUBLIC_INTERFACE
class PersistenceError(InvoiceError):
    """
    Normalized failure reported by the persistence gateway.

    Fields mirror what the storage service reports so operators get the
    diagnostic verbatim:
    - code: service error code (e.g. '23505'), or a transport code such as 'TIMEOUT'
    - details: extra detail text from the service
    - hint: remediation hint from the service
    - status_code: HTTP status returned by the storage service, when there was one
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[str] = None,
        hint: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details
        self.hint = hint
        self.status_code = status_code

    def diagnostic(self) -> Dict[str, Any]:
        """Return the gateway diagnostic fields for logging and error bodies."""
        return {"code": self.code, "details": self.details, "hint": self.hint}
