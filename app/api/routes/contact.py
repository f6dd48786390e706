from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from app.api.dependencies import get_submission_service, parse_json_body
from app.core.errors import AppError
from app.core.exception_handlers import render_app_error
from app.core.rate_limit import RateLimiters, get_rate_limiters, with_rate_limit
from app.schemas.contact import ContactResponse, ContactSubmission
from app.services.submission_service import SubmissionService

router = APIRouter(tags=["Contact"])

# One budget shared by every visitor of the contact form
CONTACT_FORM_IDENTIFIER = "contact-form"


@router.post(
    "/contact",
    response_model=ContactResponse,
    responses={400: {"description": "Invalid submission"}, 429: {"description": "Too many requests"}},
)
async def submit_contact(
    request: Request,
    limiters: Annotated[RateLimiters, Depends(get_rate_limiters)],
    service: Annotated[SubmissionService, Depends(get_submission_service)],
) -> Response:
    """Accept a contact form message.

    Body: ``{name, email, subject?, message}``. Name, email and message are
    required; email must look like an address. Invalid bodies answer 400 and
    still count against the contact form budget.
    """

    async def handle(req: Request) -> Response:
        try:
            submission = await parse_json_body(req, ContactSubmission, code="invalid_contact_submission")
        except AppError as exc:
            return render_app_error(exc)
        await service.submit_contact(submission)
        return JSONResponse(ContactResponse().model_dump())

    return await with_rate_limit(limiters.contact_form, CONTACT_FORM_IDENTIFIER, handle)(request)
