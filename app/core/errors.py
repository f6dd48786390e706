"""Application-level exception types.

This module defines domain errors used across routes and adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    code: str
    message: str
    hint: str
    field: str
    max_length: int
    actual_length: int
    http_status: int
    retry_after: int
    channel: str
    request_id: str
    errors: list[dict[str, Any]]
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when request input fails validation."""


class AuthenticationAppError(AppError):
    """Raised when authentication/authorization fails."""


class NotFoundAppError(AppError):
    """Raised when a referenced resource does not exist."""


class DeliveryAppError(AppError):
    """Raised when a notification could not be handed to the delivery provider."""


class StoreConfigError(AppError):
    """Raised when the rate limit store cannot be configured.

    Only surfaces from the store client factory; limiters catch it and run
    fail-open.
    """
