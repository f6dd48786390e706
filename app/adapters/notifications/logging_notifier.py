"""Notifier that records submissions in the structured log.

Used when no delivery provider is wired in (local development, tests). Email
addresses are logged under the ``email`` key, which the log formatter
redacts. Newsletter issues come from an in-process catalog and are "sent" to
the addresses subscribed through this notifier.
"""

from __future__ import annotations

import logging
from typing import Mapping

from app.adapters.notifications.base import AbstractNotifier
from app.core.errors import NotFoundAppError
from app.schemas.contact import ContactSubmission
from app.schemas.newsletter import NewsletterSubscription

logger = logging.getLogger(__name__)


class LoggingNotifier(AbstractNotifier):
    def __init__(self, newsletters: Mapping[str, str] | None = None) -> None:
        """Create a notifier with an optional catalog of newsletter issues.

        Args:
            newsletters: Known issues as ``{newsletter_id: subject}``.
        """
        self._newsletters = dict(newsletters or {})
        self._subscribers: set[str] = set()

    async def notify_contact(self, submission: ContactSubmission) -> None:
        logger.info(
            "notification.contact",
            extra={
                "email": submission.email,
                "has_subject": submission.subject is not None,
                "message_chars": len(submission.message),
            },
        )

    async def notify_subscription(self, subscription: NewsletterSubscription) -> None:
        self._subscribers.add(subscription.email)
        logger.info(
            "notification.subscription",
            extra={
                "email": subscription.email,
                "has_name": bool(subscription.name),
                "has_location": bool(subscription.location),
            },
        )

    async def send_newsletter(self, newsletter_id: str) -> int:
        subject = self._newsletters.get(newsletter_id)
        if subject is None:
            raise NotFoundAppError(code="newsletter_not_found", message="Newsletter not found")

        logger.info(
            "notification.newsletter",
            extra={
                "newsletter_id": newsletter_id,
                "subject": subject,
                "recipients": len(self._subscribers),
            },
        )
        return len(self._subscribers)
