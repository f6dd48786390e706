"""Rate limiter interfaces.

Routes depend on this abstraction (not the concrete Redis implementation) so
tests and alternative stores can be swapped in without touching the HTTP layer.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

DEFAULT_KEY_PREFIX = "rate-limit:"


@dataclass(frozen=True)
class RateLimitConfig:
    """Immutable configuration for one limiter instance.

    Attributes:
        max_requests: Admission ceiling within the window.
        window_ms: Window length in milliseconds.
        key_prefix: Namespace prepended to every identifier so limiters
            sharing one store never collide.
    """

    max_requests: int
    window_ms: int
    key_prefix: str = DEFAULT_KEY_PREFIX

    def __post_init__(self) -> None:
        if self.max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if self.window_ms < 1:
            raise ValueError("window_ms must be >= 1")

    def key_for(self, identifier: str) -> str:
        return f"{self.key_prefix}{identifier}"


@dataclass(frozen=True)
class CheckResult:
    """Outcome of a single admission check.

    Attributes:
        success: Whether the request is admitted.
        remaining: Requests still permitted in the current window.
        reset_time: Epoch milliseconds at which the oldest counted request
            leaves the window (``now + window_ms`` when admitted).
    """

    success: bool
    remaining: int
    reset_time: int


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    config: RateLimitConfig

    @abstractmethod
    async def check(self, identifier: str) -> CheckResult:
        """Decide whether a new event for ``identifier`` is admitted.

        Implementations record admitted events and never raise on store
        failures.
        """
        raise NotImplementedError

    @abstractmethod
    async def cleanup(self) -> None:
        """Remove every window record under this limiter's prefix."""
        raise NotImplementedError

    def now_ms(self) -> int:
        """Current epoch milliseconds on the clock this limiter decides with."""
        return int(time.time() * 1000)

    @property
    def client(self) -> Any:
        """Underlying store client, or None when the limiter has no store."""
        return None

    async def aclose(self) -> None:
        """Release any resources held by the limiter."""
        return None
