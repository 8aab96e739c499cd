from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Optional

import structlog
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .error_handlers import register_error_handlers
from .gateway import build_gateway
from .logging_config import setup_logging
from .middleware import RequestLoggingMiddleware
from .routers import health as health_router
from .routers import invoices as invoices_router
from .services import InvoiceService
from .settings import Settings, get_settings

logger = structlog.get_logger()

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "invoices", "description": "Create, list, update and delete invoices."},
]

# Marker meaning "build the gateway from settings"; an explicit None means unconfigured.
_FROM_SETTINGS: Any = object()


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None, gateway: Any = _FROM_SETTINGS) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: settings to use; read from the environment when omitted.
        gateway: persistence gateway to inject. Omit to build one from settings,
            pass None to run without persistence configured.
    """
    settings = settings or get_settings()
    setup_logging(settings)
    if gateway is _FROM_SETTINGS:
        gateway = build_gateway(settings)
    service = InvoiceService(gateway)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "app_started",
            environment=settings.environment,
            backend=settings.persistence_backend,
            persistence_configured=service.configured,
        )
        yield
        if gateway is not None:
            await gateway.aclose()

    app = FastAPI(
        title="Invoice Backend",
        description="Backend API service for managing invoices.",
        version="0.1.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.invoice_service = service

    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(health_router.router)
    app.include_router(invoices_router.router)
    return app


load_dotenv()
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)
