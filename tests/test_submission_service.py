"""Tests for the submission service and the logging notifier."""

from unittest.mock import AsyncMock

import pytest

from app.adapters.notifications.base import AbstractNotifier
from app.adapters.notifications.logging_notifier import LoggingNotifier
from app.core.errors import DeliveryAppError, NotFoundAppError
from app.schemas.contact import ContactSubmission
from app.schemas.newsletter import NewsletterSubscription
from app.services.submission_service import SubmissionService


class TestLoggingNotifier:
    @pytest.mark.asyncio
    async def test_send_reaches_every_subscriber_once(self) -> None:
        notifier = LoggingNotifier({"issue-1": "October update"})
        for email in ("a@example.com", "b@example.com", "a@example.com"):
            await notifier.notify_subscription(NewsletterSubscription(email=email))

        assert await notifier.send_newsletter("issue-1") == 2

    @pytest.mark.asyncio
    async def test_unknown_issue_raises_not_found(self) -> None:
        with pytest.raises(NotFoundAppError) as exc_info:
            await LoggingNotifier().send_newsletter("issue-1")

        assert exc_info.value.code == "newsletter_not_found"


class TestSubmissionService:
    @pytest.mark.asyncio
    async def test_contact_delivery_failure_is_swallowed(self) -> None:
        notifier = AsyncMock(spec=AbstractNotifier)
        notifier.notify_contact.side_effect = DeliveryAppError(code="provider_unavailable", message="down")

        await SubmissionService(notifier).submit_contact(
            ContactSubmission(name="Ada", email="ada@example.com", message="Hi")
        )

        notifier.notify_contact.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_send_failure_propagates(self) -> None:
        notifier = AsyncMock(spec=AbstractNotifier)
        notifier.send_newsletter.side_effect = DeliveryAppError(code="provider_unavailable", message="down")

        with pytest.raises(DeliveryAppError):
            await SubmissionService(notifier).send_newsletter("issue-1")
