"""Redis client factory for the shared rate limit store.

The store is reached with two environment-provided parameters: a URL and an
access token (sent as the Redis password). Missing either is an expected,
supported situation: limiters then run fail-open.
"""

from __future__ import annotations

import logging

from redis.asyncio import Redis

from app.core.config import StoreSettings, settings
from app.core.errors import StoreConfigError

logger = logging.getLogger(__name__)


def create_store_client(store_settings: StoreSettings | None = None) -> Redis:
    """Build an asynchronous Redis client from configuration.

    No network round-trip happens here; connections are opened lazily by
    the first command.

    Args:
        store_settings: Optional store settings; defaults to global settings.

    Returns:
        Redis: Client decoding responses to ``str``.

    Raises:
        StoreConfigError: If the URL or the token is not configured.
        ValueError: If the URL scheme is not understood by redis-py.
    """

    cfg = store_settings or settings.store

    missing = [name for name, value in (("REDIS_URL", cfg.url), ("REDIS_TOKEN", cfg.token)) if not value]
    if missing:
        raise StoreConfigError(
            code="store_not_configured",
            message="Rate limit store credentials are not configured",
            details={"hint": f"Set {' and '.join(missing)} to enable rate limiting"},
        )

    client = Redis.from_url(
        cfg.url,
        password=cfg.token,
        decode_responses=True,
        encoding="utf-8",
        socket_timeout=cfg.socket_timeout_seconds,
        socket_connect_timeout=cfg.connect_timeout_seconds,
    )
    logger.debug("store.client_created")
    return client


async def check_store_health(client: Redis | None) -> bool:
    """Return True when the store answers PING."""

    if client is None:
        return False

    try:
        return bool(await client.ping())
    except Exception as exc:
        logger.error(
            "store.health_check_failed",
            extra={"error_type": type(exc).__name__, "error_msg": str(exc)},
        )
        return False
