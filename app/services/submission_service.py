"""Handling of public visitor submissions.

Persistence and email delivery are external collaborators reached through the
notifier port. Delivery failures are logged and never fail the visitor's
request: the submission was accepted even if the email was not sent.
"""

from __future__ import annotations

import logging

from app.adapters.notifications.base import AbstractNotifier
from app.core.errors import DeliveryAppError
from app.schemas.contact import ContactSubmission
from app.schemas.newsletter import NewsletterSubscription

logger = logging.getLogger(__name__)


class SubmissionService:
    """Accepts contact messages and newsletter subscriptions, sends issues."""

    def __init__(self, notifier: AbstractNotifier) -> None:
        self._notifier = notifier

    async def submit_contact(self, submission: ContactSubmission) -> None:
        try:
            await self._notifier.notify_contact(submission)
        except DeliveryAppError as exc:
            logger.error(
                "contact.delivery_failed",
                extra={"error_code": exc.code, "error_message": exc.message},
            )
            return
        logger.info("contact.accepted", extra={"has_subject": submission.subject is not None})

    async def subscribe(self, subscription: NewsletterSubscription) -> None:
        try:
            await self._notifier.notify_subscription(subscription)
        except DeliveryAppError as exc:
            logger.error(
                "newsletter.delivery_failed",
                extra={"error_code": exc.code, "error_message": exc.message},
            )
            return
        logger.info("newsletter.subscribed", extra={"has_name": bool(subscription.name)})

    async def send_newsletter(self, newsletter_id: str) -> int:
        """Send an issue to every subscriber.

        Unlike visitor submissions, failures propagate: the caller asked for
        the send and must learn that it did not happen.

        Raises:
            NotFoundAppError: Unknown newsletter.
            DeliveryAppError: Provider failure.
        """
        recipients = await self._notifier.send_newsletter(newsletter_id)
        logger.info(
            "newsletter.sent",
            extra={"newsletter_id": newsletter_id, "recipients": recipients},
        )
        return recipients
