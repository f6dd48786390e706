"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before anything imports ``app.core.config`` so
the global settings object is built from test values and no .env file is
loaded.
"""

import fnmatch
import os

import pytest

# CRITICAL: Set these before any imports that might load settings
os.environ["TESTING"] = "true"
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("APP_API_KEY_REQUIRED", "true")
os.environ.setdefault("APP_API_KEYS", "test-api-key-123,test-api-key-456")
os.environ.setdefault("LOG_LEVEL", "WARNING")
# No store in tests: limiters built from settings run fail-open
os.environ.pop("REDIS_URL", None)
os.environ.pop("REDIS_TOKEN", None)


class FakeListStore:
    """In-memory stand-in for the Redis list commands used by the limiter.

    Records every call so tests can assert on the command sequence.
    """

    def __init__(self) -> None:
        self.lists: dict[str, list[str]] = {}
        self.expiries: dict[str, int] = {}
        self.calls: list[tuple] = []
        self.closed = False

    async def lrange(self, key: str, start: int, stop: int) -> list[str]:
        self.calls.append(("lrange", key, start, stop))
        items = self.lists.get(key, [])
        if stop < 0:
            stop = len(items) + stop
        return list(items[start : stop + 1])

    async def ltrim(self, key: str, start: int, stop: int) -> bool:
        self.calls.append(("ltrim", key, start, stop))
        items = self.lists.get(key, [])
        if stop < 0:
            stop = len(items) + stop
        trimmed = items[start : stop + 1]
        if trimmed:
            self.lists[key] = trimmed
        else:
            self.lists.pop(key, None)
        return True

    async def rpush(self, key: str, *values: str) -> int:
        self.calls.append(("rpush", key, *values))
        self.lists.setdefault(key, []).extend(values)
        return len(self.lists[key])

    async def pexpire(self, key: str, ms: int) -> bool:
        self.calls.append(("pexpire", key, ms))
        self.expiries[key] = ms
        return True

    async def keys(self, pattern: str) -> list[str]:
        self.calls.append(("keys", pattern))
        return [key for key in self.lists if fnmatch.fnmatchcase(key, pattern)]

    async def delete(self, *keys: str) -> int:
        self.calls.append(("delete", *keys))
        return sum(1 for key in keys if self.lists.pop(key, None) is not None)

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        self.closed = True

    def command_names(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def fake_store() -> FakeListStore:
    return FakeListStore()


@pytest.fixture
def valid_api_key_headers() -> dict[str, str]:
    """Headers carrying a configured admin API key."""
    return {"X-API-Key": "test-api-key-123"}
