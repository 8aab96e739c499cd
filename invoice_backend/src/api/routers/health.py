from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter

from ..schemas import HealthOut

router = APIRouter(prefix="/health", tags=["health"])


# PUBLIC_INTERFACE
@router.get("", response_model=HealthOut, summary="Health Check")
async def health_check() -> HealthOut:
    """
    Health check endpoint.

    Returns:
        status 'ok' and the current server time as an ISO8601 string.
    """
    return HealthOut(status="ok", timestamp=datetime.now(timezone.utc).isoformat())
