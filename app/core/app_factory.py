"""Application factory for the FastAPI app.

Centralizes app construction (metadata, lifespan resources, middleware,
handlers, routers) so tests can build isolated instances with their own
limiters and notifier.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from fastapi import FastAPI

from app.adapters.notifications.base import AbstractNotifier
from app.adapters.notifications.logging_notifier import LoggingNotifier
from app.api.routes import admin_router, contact_router, health_router, newsletter_router
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations
from app.core.rate_limit import RateLimiters, build_rate_limiters

logger = logging.getLogger(__name__)


def create_app(
    *,
    limiters_factory: Callable[[], RateLimiters] = build_rate_limiters,
    notifier: AbstractNotifier | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        limiters_factory: Builds the named rate limiters when the app is created.
        notifier: Delivery port for submissions; logs them when omitted.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    # Store clients connect lazily, so building limiters here does no I/O
    limiters = limiters_factory()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "app.started",
            extra={
                "app_env": settings.app_env,
                "store_configured": limiters.api.client is not None,
            },
        )
        try:
            yield
        finally:
            await limiters.aclose()
            logger.info("app.stopped")

    app = FastAPI(
        title="Portfolio API",
        description=(
            "Public write endpoints of the portfolio site (contact form, "
            "newsletter subscription) protected by sliding-window rate limits, "
            "plus admin maintenance and health checks."
        ),
        version="0.1.0",
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
        lifespan=lifespan,
    )

    app.state.rate_limiters = limiters
    app.state.notifier = notifier or LoggingNotifier()

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(contact_router, prefix="/api")
    app.include_router(newsletter_router, prefix="/api")
    app.include_router(admin_router, prefix="/api")
    app.include_router(health_router, prefix="/api")

    apply_openapi_customizations(app)

    return app
