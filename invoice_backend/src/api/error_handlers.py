"""
Global exception handlers: the only place invoice errors become HTTP statuses.

    ValidationError        -> 400 {error, details: [{field, message}]}
    RequestValidationError -> 400, same shape
    NotFoundError          -> 404 {error}
    PersistenceError       -> 500 {error, details: {code, details, hint}}
    ConfigurationError     -> 500 {error}
    Exception              -> 500 {error: "Internal server error"}
"""
from __future__ import annotations

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .errors import (
    ConfigurationError,
    FieldError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)

logger = structlog.get_logger()

INTERNAL_ERROR_MESSAGE = "Internal server error"


def _field_path(loc) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path")]
    return ".".join(parts) or "body"


# PUBLIC_INTERFACE
def register_error_handlers(app: FastAPI) -> None:
    """Register all invoice error handlers on the FastAPI app."""

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        logger.warning(
            "request_validation_failed",
            path=request.url.path,
            error=exc.message,
            fields=[e.field for e in exc.errors],
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": exc.message, "details": [e.to_dict() for e in exc.errors]},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = [FieldError(field=_field_path(e.get("loc", ())), message=e["msg"]) for e in exc.errors()]
        logger.warning("request_validation_failed", path=request.url.path, fields=[d.field for d in details])
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid request", "details": [d.to_dict() for d in details]},
        )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": exc.message})

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": exc.message, "details": exc.diagnostic()},
        )

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": exc.message},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled_exception", path=request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": INTERNAL_ERROR_MESSAGE},
        )
