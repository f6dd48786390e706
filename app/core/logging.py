"""Structured logging for the API.

Every record leaving the root handler is a single JSON object holding the
timestamp, level, logger name, message, the id of the request being served
and the record's ``extra`` fields. Fields that may carry credentials or
visitor PII are replaced with ``[REDACTED]`` at format time. Rate limit
identifiers (client IPs, action names) are only ever logged through
``hash_for_logging``.
"""

from __future__ import annotations

import hashlib
import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging import LogRecord
from typing import Any, Mapping

from app.core.config import LogSettings, settings

REDACTED = "[REDACTED]"

_current_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)

# Matched case-insensitively at any nesting depth of ``extra``
REDACTED_FIELDS = frozenset(
    {
        "api_key",
        "app_api_keys",
        "authorization",
        "cookie",
        "set-cookie",
        "x-api-key",
        "password",
        "secret",
        "token",
        "redis_token",
        "redis_url",
        "email",
        "identifier",
        "x-forwarded-for",
        "x-real-ip",
    }
)

# Attributes every LogRecord carries; anything else was passed via ``extra``
_BUILTIN_ATTRS = frozenset(vars(LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
    "taskName",
}


def set_request_id(request_id: str | None) -> None:
    _current_request_id.set(request_id)


def get_request_id() -> str | None:
    return _current_request_id.get()


def clear_request_id() -> None:
    _current_request_id.set(None)


def hash_for_logging(value: str) -> str:
    """Short, stable sha256 digest of a value that must not be logged raw."""

    return hashlib.sha256(value.encode()).hexdigest()[:16]


def redact(value: Any) -> Any:
    """Return ``value`` with every sensitive mapping key masked."""

    if isinstance(value, Mapping):
        return {
            key: REDACTED if str(key).lower() in REDACTED_FIELDS else redact(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return type(value)(redact(item) for item in value)
    return value


def record_extras(record: LogRecord) -> dict[str, Any]:
    """The redacted ``extra`` fields attached to ``record``."""

    extras = {
        key: value
        for key, value in vars(record).items()
        if key not in _BUILTIN_ATTRS and not key.startswith("_")
    }
    return redact(extras)


class RequestContextFilter(logging.Filter):
    """Stamp the current request id on records that do not carry one."""

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        if getattr(record, "request_id", None) is None:
            request_id = get_request_id()
            if request_id:
                record.request_id = request_id
        return True


class JsonFormatter(logging.Formatter):
    """Render a record as one line of JSON with sensitive fields masked."""

    def format(self, record: LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(record_extras(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(log_settings: LogSettings | None = None) -> None:
    """Install a single stdout handler on the root logger.

    Args:
        log_settings: Optional log settings; defaults to global settings.
    """

    cfg = log_settings or settings.log
    level = getattr(logging, cfg.level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestContextFilter())
    if cfg.format.lower() == "plain":
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    else:
        handler.setFormatter(JsonFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # The redis client logs connection chatter at DEBUG
    logging.getLogger("redis").setLevel(max(level, logging.INFO))
    logging.getLogger("uvicorn").propagate = False
    logging.getLogger("uvicorn.access").propagate = False
