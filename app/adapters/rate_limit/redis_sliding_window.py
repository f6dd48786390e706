"""Redis-backed sliding-window rate limiter.

Each identifier owns a Redis list of epoch-millisecond timestamps, one per
admitted request, appended at the tail. A check reads the list, trims the
stale head, and admits when fewer than ``max_requests`` entries remain.

Notes:
- Fail-open: when the store is missing or any command fails, the request is
  admitted. A store outage must never turn into a denial of service.
- Not atomic: concurrent checks for the same identifier may both admit at the
  boundary and overshoot the ceiling by the number of requests in flight.
  Exact enforcement would need a compare-and-append primitive in the store.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from app.adapters.rate_limit.base import AbstractRateLimiter, CheckResult, RateLimitConfig
from app.adapters.rate_limit.store import create_store_client
from app.core.logging import hash_for_logging

logger = logging.getLogger(__name__)


class SlidingWindowRateLimiter(AbstractRateLimiter):
    """Sliding-window limiter over a shared Redis list store.

    The store client is created once, at construction, and reused by every
    ``check``/``cleanup`` call without local locking.
    """

    def __init__(
        self,
        config: RateLimitConfig,
        *,
        client_factory: Callable[[], Any] = create_store_client,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the limiter and acquire a store client.

        Args:
            config: Limiter configuration.
            client_factory: Callable returning an async Redis-compatible client.
                Any exception it raises leaves the limiter in fail-open mode.
            clock: Time source returning UNIX time in seconds.
        """
        self.config = config
        self._clock = clock

        try:
            self._client = client_factory()
        except Exception as exc:
            self._client = None
            logger.warning(
                "rate_limit.store_unavailable",
                extra={
                    "key_prefix": config.key_prefix,
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc),
                },
            )

    @property
    def client(self) -> Any:
        """The store client, or None when running fail-open."""
        return self._client

    def now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _open_result(self, now: int, identifier: str, reason: str) -> CheckResult:
        logger.warning(
            "rate_limit.bypassed",
            extra={
                "key_prefix": self.config.key_prefix,
                "identifier_hash": hash_for_logging(identifier),
                "reason": reason,
            },
        )
        return CheckResult(
            success=True,
            remaining=self.config.max_requests,
            reset_time=now + self.config.window_ms,
        )

    async def check(self, identifier: str) -> CheckResult:
        """Admit or reject one event for ``identifier``.

        Args:
            identifier: Non-empty key component (client IP, action name, ...).

        Returns:
            CheckResult for this request. Store failures yield an admitted
            result with the full budget.

        Raises:
            ValueError: If identifier is empty.
        """
        if not identifier:
            raise ValueError("identifier must be a non-empty string")

        now = self.now_ms()
        if self._client is None:
            return self._open_result(now, identifier, "store_not_configured")

        key = self.config.key_for(identifier)
        window_start = now - self.config.window_ms

        try:
            raw_entries = await self._client.lrange(key, 0, -1)
            timestamps = [int(entry) for entry in raw_entries]

            first_live = next(
                (index for index, ts in enumerate(timestamps) if ts >= window_start),
                len(timestamps),
            )
            if first_live > 0:
                await self._client.ltrim(key, first_live, -1)

            live = timestamps[first_live:]
            live_count = len(live)

            if live_count >= self.config.max_requests:
                reset_time = live[0] + self.config.window_ms
                logger.warning(
                    "rate_limit.exceeded",
                    extra={
                        "key_prefix": self.config.key_prefix,
                        "identifier_hash": hash_for_logging(identifier),
                        "limit": self.config.max_requests,
                        "live_count": live_count,
                        "reset_time": reset_time,
                    },
                )
                return CheckResult(success=False, remaining=0, reset_time=reset_time)

            await self._client.rpush(key, str(now))
            await self._client.pexpire(key, self.config.window_ms)
        except Exception as exc:
            logger.error(
                "rate_limit.store_error",
                extra={
                    "key_prefix": self.config.key_prefix,
                    "identifier_hash": hash_for_logging(identifier),
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc),
                },
            )
            return self._open_result(now, identifier, "store_error")

        return CheckResult(
            success=True,
            remaining=self.config.max_requests - live_count - 1,
            reset_time=now + self.config.window_ms,
        )

    async def cleanup(self) -> None:
        """Delete every window record under this limiter's prefix.

        Best-effort: errors are logged and never raised.
        """
        if self._client is None:
            logger.debug("rate_limit.cleanup_skipped", extra={"key_prefix": self.config.key_prefix})
            return

        try:
            keys = await self._client.keys(f"{self.config.key_prefix}*")
            if keys:
                await self._client.delete(*keys)
            logger.info(
                "rate_limit.cleanup",
                extra={"key_prefix": self.config.key_prefix, "deleted_keys": len(keys)},
            )
        except Exception as exc:
            logger.error(
                "rate_limit.cleanup_error",
                extra={
                    "key_prefix": self.config.key_prefix,
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc),
                },
            )

    async def aclose(self) -> None:
        if self._client is None:
            return
        try:
            await self._client.aclose()
        except Exception as exc:
            logger.warning(
                "rate_limit.close_error",
                extra={"key_prefix": self.config.key_prefix, "error_type": type(exc).__name__},
            )
