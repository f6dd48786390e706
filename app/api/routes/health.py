from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.adapters.rate_limit.store import check_store_health
from app.core.config import settings
from app.core.rate_limit import RateLimiters, get_rate_limiters

router = APIRouter(prefix="/health", tags=["Health"])


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("")
def health_check() -> dict:
    """Liveness probe used by the load balancer.

    Returns:
        dict: ``status``, ``timestamp`` and ``service`` name.
    """

    return {
        "status": "healthy",
        "timestamp": _timestamp(),
        "service": settings.app.service_name,
    }


@router.get("/redis")
async def redis_health(
    limiters: Annotated[RateLimiters, Depends(get_rate_limiters)],
) -> JSONResponse:
    """Readiness of the rate limit store.

    Answers 503 when the store is unreachable or not configured. Rate limited
    endpoints keep serving in that state (fail-open).
    """

    healthy = await check_store_health(limiters.api.client)
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "redis": "connected" if healthy else "disconnected",
            "timestamp": _timestamp(),
        },
    )
