from __future__ import annotations

import logging

import structlog

from .settings import Settings


# PUBLIC_INTERFACE
def setup_logging(settings: Settings) -> None:
    """
    Configure structlog for the process.

    Development gets a human-readable console renderer; every other
    environment emits one JSON object per event.
    """
    if settings.environment == "development":
        tail = [structlog.dev.ConsoleRenderer()]
    else:
        tail = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            *tail,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level)
        ),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
