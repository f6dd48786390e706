"""Global exception handlers for consistent error responses.

Design:
- AppError subclasses → appropriate HTTP status (400, 403, 404, 502)
- Unexpected Exception → generic 500 (safety net)
- All responses include request_id for distributed tracing

Rate limit rejections are not errors: they are answered directly by
``with_rate_limit`` and never reach these handlers. Rate limited routes
render their own ``AppError``s with ``render_app_error`` so the response
still passes through the limiter and carries its headers.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from app.core.errors import AppError, AuthenticationAppError, DeliveryAppError, NotFoundAppError
from app.core.logging import get_request_id

logger = logging.getLogger(__name__)


def _status_for(exc: AppError) -> int:
    if isinstance(exc, AuthenticationAppError):
        return 403
    if isinstance(exc, NotFoundAppError):
        return 404
    if isinstance(exc, DeliveryAppError):
        return 502
    return 400


def render_app_error(exc: AppError) -> JSONResponse:
    """Build the JSON error response for a domain error.

    Routes domain errors to HTTP status codes:
    - ValidationAppError → 400 Bad Request (client fault)
    - AuthenticationAppError → 403 Forbidden
    - NotFoundAppError → 404 Not Found
    - DeliveryAppError → 502 Bad Gateway (upstream provider fault)

    Args:
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code and error details.
    """
    status_code = _status_for(exc)

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_id": get_request_id(),
        },
    )

    error_content = {
        "code": exc.code,
        "message": exc.message,
        "request_id": get_request_id(),
    }
    if exc.details:
        error_content["details"] = exc.details

    return JSONResponse(
        status_code=status_code,
        content={"error": error_content},
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain errors raised outside rate limited handlers."""
    return render_app_error(exc)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors.

    Logs the failure and returns a generic message; no stack traces or
    exception text are sent to the client.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": get_request_id(),
            }
        },
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
