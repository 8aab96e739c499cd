from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Optional

_BACKENDS = {"supabase", "memory"}
_ENVIRONMENTS = {"development", "production", "test"}
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'supabase' (default) or 'memory'
    - SUPABASE_URL: base URL of the Supabase project (e.g. https://xyz.supabase.co)
    - SUPABASE_SERVICE_KEY: service role key used for the REST API
    - PERSISTENCE_TIMEOUT_SECONDS: timeout applied to every persistence call. Default 10
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - LOG_LEVEL: DEBUG, INFO (default), WARNING, ERROR or CRITICAL
    - ENVIRONMENT: 'development' (default), 'production' or 'test'
    - PORT: port used when running the server directly. Default 4000
    """

    persistence_backend: str = "supabase"
    supabase_url: Optional[str] = None
    supabase_service_key: Optional[str] = None
    persistence_timeout_seconds: float = 10.0
    cors_allow_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    environment: str = "development"
    port: int = 4000


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _get_optional_env(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return value.strip()


def _parse_float(value: str, default: float) -> float:
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _parse_int(value: str, default: int) -> int:
    try:
        return int(value)
    except ValueError:
        return default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "supabase").strip().lower()
    if backend not in _BACKENDS:
        backend = "supabase"

    environment = _get_env("ENVIRONMENT", "development").strip().lower()
    if environment not in _ENVIRONMENTS:
        environment = "development"

    log_level = _get_env("LOG_LEVEL", "INFO").strip().upper()
    if log_level not in _LOG_LEVELS:
        log_level = "INFO"

    return Settings(
        persistence_backend=backend,
        supabase_url=_get_optional_env("SUPABASE_URL"),
        supabase_service_key=_get_optional_env("SUPABASE_SERVICE_KEY"),
        persistence_timeout_seconds=_parse_float(_get_env("PERSISTENCE_TIMEOUT_SECONDS", "10"), 10.0),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        log_level=log_level,
        environment=environment,
        port=_parse_int(_get_env("PORT", "4000"), 4000),
    )
