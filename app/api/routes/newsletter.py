from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from app.api.dependencies import get_submission_service, parse_json_body
from app.core.auth import verify_api_key
from app.core.errors import AppError
from app.core.exception_handlers import render_app_error
from app.core.rate_limit import RateLimiters, get_rate_limiters, with_rate_limit
from app.schemas.newsletter import (
    NewsletterSendRequest,
    NewsletterSendResponse,
    NewsletterSubscription,
    SubscribeResponse,
)
from app.services.submission_service import SubmissionService

router = APIRouter(tags=["Newsletter"])

# Both share the ``api`` limiter but keep separate budgets
NEWSLETTER_SUBSCRIBE_IDENTIFIER = "newsletter-subscribe"
NEWSLETTER_SEND_IDENTIFIER = "newsletter-send"


@router.post(
    "/newsletter/subscribe",
    response_model=SubscribeResponse,
    responses={400: {"description": "Invalid subscription"}, 429: {"description": "Too many requests"}},
)
async def subscribe(
    request: Request,
    limiters: Annotated[RateLimiters, Depends(get_rate_limiters)],
    service: Annotated[SubmissionService, Depends(get_submission_service)],
) -> Response:
    """Subscribe an address to the newsletter.

    Body: ``{email, name?, location?}``. Angle brackets are stripped from
    every field; names are limited to 100 characters.
    """

    async def handle(req: Request) -> Response:
        try:
            subscription = await parse_json_body(req, NewsletterSubscription, code="invalid_subscription")
        except AppError as exc:
            return render_app_error(exc)
        await service.subscribe(subscription)
        return JSONResponse(SubscribeResponse().model_dump())

    return await with_rate_limit(limiters.api, NEWSLETTER_SUBSCRIBE_IDENTIFIER, handle)(request)


@router.post(
    "/newsletters/send",
    response_model=NewsletterSendResponse,
    dependencies=[Depends(verify_api_key)],
    responses={
        400: {"description": "Missing newsletterId"},
        403: {"description": "Missing or invalid API key"},
        404: {"description": "Unknown newsletter"},
        429: {"description": "Too many requests"},
        502: {"description": "Delivery provider failure"},
    },
)
async def send_newsletter(
    request: Request,
    limiters: Annotated[RateLimiters, Depends(get_rate_limiters)],
    service: Annotated[SubmissionService, Depends(get_submission_service)],
) -> Response:
    """Send a newsletter issue to every subscriber.

    Body: ``{newsletterId}``.
    """

    async def handle(req: Request) -> Response:
        try:
            payload = await parse_json_body(req, NewsletterSendRequest, code="invalid_newsletter_send")
            recipients = await service.send_newsletter(payload.newsletter_id)
        except AppError as exc:
            return render_app_error(exc)
        return JSONResponse(NewsletterSendResponse(recipients=recipients).model_dump())

    return await with_rate_limit(limiters.api, NEWSLETTER_SEND_IDENTIFIER, handle)(request)
