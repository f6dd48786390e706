"""Request-scoped helpers shared by the route modules."""

from __future__ import annotations

import json
from typing import TypeVar

from fastapi import Request
from pydantic import BaseModel, ValidationError

from app.core.errors import ValidationAppError
from app.services.submission_service import SubmissionService

ModelT = TypeVar("ModelT", bound=BaseModel)


def get_submission_service(request: Request) -> SubmissionService:
    """Return a submission service bound to the notifier configured at startup."""
    return SubmissionService(request.app.state.notifier)


async def parse_json_body(request: Request, model: type[ModelT], *, code: str) -> ModelT:
    """Read the request body as JSON and validate it against ``model``.

    Bodies are parsed inside the rate-limited handler (not by FastAPI's
    signature binding) so malformed requests still consume budget.

    Raises:
        ValidationAppError: If the body is not a JSON object or fails validation.
    """

    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ValidationAppError(
            code="invalid_json",
            message="Request body must be valid JSON",
        ) from exc

    if not isinstance(payload, dict):
        raise ValidationAppError(
            code="invalid_json",
            message="Request body must be a JSON object",
        )

    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        errors = [
            {
                "field": ".".join(str(part) for part in error["loc"]),
                "message": error["msg"].removeprefix("Value error, "),
            }
            for error in exc.errors()
        ]
        raise ValidationAppError(
            code=code,
            message=errors[0]["message"] if errors else "Invalid request body",
            details={"errors": errors},
        ) from exc
