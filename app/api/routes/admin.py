from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from app.core.auth import verify_api_key
from app.core.rate_limit import RateLimiters, client_identifier, get_rate_limiters, with_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post(
    "/rate-limits/cleanup",
    dependencies=[Depends(verify_api_key)],
    responses={403: {"description": "Missing or invalid API key"}, 429: {"description": "Too many requests"}},
)
async def cleanup_rate_limits(
    request: Request,
    limiters: Annotated[RateLimiters, Depends(get_rate_limiters)],
) -> Response:
    """Delete every rate limit window record, resetting all budgets.

    Cleanup is best-effort: store errors are logged by the limiters and the
    endpoint still answers 200.
    """

    async def handle(req: Request) -> Response:
        names = await limiters.cleanup_all()
        logger.info("admin.rate_limits_cleaned", extra={"limiters": names})
        return JSONResponse({"status": "ok", "limiters": names})

    return await with_rate_limit(limiters.admin, client_identifier, handle)(request)
