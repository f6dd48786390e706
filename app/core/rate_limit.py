"""Rate limiting for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Design goals:
- Explicit lifecycle: limiters are built once by the application factory,
  stored on ``app.state`` and injected into routes; nothing is created at
  import time.
- Composition: ``with_rate_limit`` takes a request handler and returns a new
  one, so each route chooses its limiter and identifier.
- Fail-open: limiter store failures never block traffic (see adapter).

Identifiers are either a fixed action name (one shared budget for every
caller) or derived per request, e.g. ``client_identifier``.
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitConfig
from app.adapters.rate_limit.redis_sliding_window import SlidingWindowRateLimiter
from app.adapters.rate_limit.store import create_store_client
from app.core.config import AppSettings, settings
from app.core.logging import hash_for_logging

logger = logging.getLogger(__name__)

RequestHandler = Callable[[Request], Awaitable[Response]]
Identifier = str | Callable[[Request], str]

RATE_LIMITED_ERROR = "Too many requests"


def client_identifier(request: Request) -> str:
    """Derive a per-client identifier from proxy headers or the socket peer.

    Order: first entry of X-Forwarded-For, then X-Real-IP, then the peer
    address. Falls back to ``"unknown"`` so every caller without an address
    shares one budget rather than bypassing the limit.
    """

    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host

    return "unknown"


def _retry_after_seconds(reset_time_ms: int, now_ms: int) -> int:
    """Seconds from ``now_ms`` until ``reset_time_ms``, never less than one."""
    return max(1, math.ceil((reset_time_ms - now_ms) / 1000))


def _rate_limit_headers(limiter: AbstractRateLimiter, remaining: int, reset_time: int) -> dict[str, str]:
    return {
        "X-RateLimit-Limit": str(limiter.config.max_requests),
        "X-RateLimit-Remaining": str(remaining),
        "X-RateLimit-Reset": str(reset_time),
    }


def with_rate_limit(
    limiter: AbstractRateLimiter,
    identifier: Identifier,
    handler: RequestHandler,
) -> RequestHandler:
    """Wrap a request handler with a rate limit admission check.

    Args:
        limiter: Limiter deciding admission.
        identifier: Fixed identifier, or a callable deriving it from the request.
        handler: Async handler invoked only when the request is admitted.

    Returns:
        Async handler that either answers 429 or delegates to ``handler``
        and stamps X-RateLimit-* headers on its response. Exceptions raised
        by ``handler`` propagate unchanged.
    """

    async def rate_limited_handler(request: Request) -> Response:
        key = identifier(request) if callable(identifier) else identifier
        result = await limiter.check(key)
        headers = _rate_limit_headers(limiter, result.remaining, result.reset_time)

        if not result.success:
            retry_after = _retry_after_seconds(result.reset_time, limiter.now_ms())
            logger.warning(
                "rate_limit.rejected",
                extra={
                    "key_prefix": limiter.config.key_prefix,
                    "identifier_hash": hash_for_logging(key),
                    "limit": limiter.config.max_requests,
                    "retry_after_s": retry_after,
                    "request_path": request.url.path,
                },
            )
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"error": RATE_LIMITED_ERROR, "retryAfter": retry_after},
                headers={"Retry-After": str(retry_after), **headers},
            )

        response = await handler(request)
        response.headers.update(headers)
        return response

    rate_limited_handler.__name__ = getattr(handler, "__name__", rate_limited_handler.__name__)
    return rate_limited_handler


@dataclass
class RateLimiters:
    """Named limiter instances shared by the routes.

    Attributes:
        contact_form: Contact form submissions (one shared budget).
        api: Public API writes such as newsletter subscriptions.
        admin: Administrative endpoints, keyed per client.
    """

    contact_form: AbstractRateLimiter
    api: AbstractRateLimiter
    admin: AbstractRateLimiter

    def items(self) -> list[tuple[str, AbstractRateLimiter]]:
        return [
            ("contact_form", self.contact_form),
            ("api", self.api),
            ("admin", self.admin),
        ]

    async def cleanup_all(self) -> list[str]:
        """Remove every window record of every limiter.

        Returns:
            Names of the limiters that were cleaned.
        """
        items = self.items()
        await asyncio.gather(*(limiter.cleanup() for _, limiter in items))
        return [name for name, _ in items]

    async def aclose(self) -> None:
        await asyncio.gather(*(limiter.aclose() for _, limiter in self.items()))


def build_rate_limiters(
    app_settings: AppSettings | None = None,
    *,
    client_factory: Callable[[], Any] = create_store_client,
) -> RateLimiters:
    """Construct the named limiters from configuration.

    Args:
        app_settings: Optional app settings; defaults to global settings.
        client_factory: Store client factory, called once per limiter.

    Returns:
        RateLimiters ready to be stored on ``app.state``.
    """

    cfg = app_settings or settings.app

    def _make(max_requests: int, window_seconds: int, prefix: str) -> AbstractRateLimiter:
        config = RateLimitConfig(
            max_requests=max_requests,
            window_ms=window_seconds * 1000,
            key_prefix=prefix,
        )
        return SlidingWindowRateLimiter(config, client_factory=client_factory)

    return RateLimiters(
        contact_form=_make(
            cfg.contact_rate_limit_requests,
            cfg.contact_rate_limit_window_seconds,
            "contact-form:",
        ),
        api=_make(cfg.api_rate_limit_requests, cfg.api_rate_limit_window_seconds, "api:"),
        admin=_make(cfg.admin_rate_limit_requests, cfg.admin_rate_limit_window_seconds, "admin:"),
    )


def get_rate_limiters(request: Request) -> RateLimiters:
    """FastAPI dependency returning the limiters built at startup."""
    return request.app.state.rate_limiters
