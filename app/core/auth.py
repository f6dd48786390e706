"""Admin API key authentication.

Administrative endpoints (rate limit maintenance) are guarded by a static
API key sent in ``X-API-Key``. Keys come from a comma-separated environment
variable. Public endpoints are unauthenticated and protected only by rate
limits.
"""

from __future__ import annotations

import hmac
import logging
from typing import Annotated

from fastapi import Header

from app.core.config import settings
from app.core.errors import AuthenticationAppError
from app.core.logging import hash_for_logging

logger = logging.getLogger(__name__)


def parse_api_keys(keys_string: str | None) -> set[str]:
    """Parse comma-separated API keys into a set.

    Examples:
        >>> parse_api_keys("key1, key2 , key3 ")
        {'key1', 'key2', 'key3'}
        >>> parse_api_keys(None)
        set()
    """
    if not keys_string:
        return set()

    return {key.strip() for key in keys_string.split(",") if key.strip()}


def validate_api_key(provided_key: str) -> None:
    """Validate that the provided API key matches a configured admin key.

    Args:
        provided_key: API key to validate.

    Raises:
        AuthenticationAppError: If the key is invalid, or authentication is
            required but no keys are configured.
    """
    if not settings.app.api_key_required:
        return

    valid_keys = parse_api_keys(settings.app.api_keys)

    if not valid_keys:
        logger.error(
            "api_key_validation_failed",
            extra={"reason": "api_keys_not_configured"},
        )
        raise AuthenticationAppError(
            code="api_keys_not_configured",
            message="API key authentication is enabled but no valid keys are configured",
            details={"hint": "Set APP_API_KEYS or disable auth with APP_API_KEY_REQUIRED=false"},
        )

    if not any(hmac.compare_digest(provided_key, key) for key in valid_keys):
        logger.warning(
            "api_key_validation_failed",
            extra={
                "reason": "invalid_api_key",
                "api_key_hash": hash_for_logging(provided_key),
            },
        )
        raise AuthenticationAppError(
            code="invalid_api_key",
            message="Invalid or missing API key",
        )


async def verify_api_key(
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> None:
    """FastAPI dependency for admin API key authentication.

    Usage:
        @router.post("/admin/...", dependencies=[Depends(verify_api_key)])

    Raises:
        AuthenticationAppError: Rendered as 403 by the global handlers.
    """
    if not settings.app.api_key_required:
        logger.debug("auth.skipped", extra={"reason": "auth_required_false"})
        return

    if not x_api_key:
        logger.warning("auth.missing_key", extra={"api_key_present": False})
        raise AuthenticationAppError(
            code="missing_api_key",
            message="Missing API key. Provide X-API-Key header.",
        )

    validate_api_key(x_api_key)
    logger.info("auth.success", extra={"api_key_hash": hash_for_logging(x_api_key)})
