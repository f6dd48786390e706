from __future__ import annotations

from abc import ABC, abstractmethod

from app.schemas.contact import ContactSubmission
from app.schemas.newsletter import NewsletterSubscription


class AbstractNotifier(ABC):
    """Interface for delivering visitor submissions (email, queue, ...)."""

    @abstractmethod
    async def notify_contact(self, submission: ContactSubmission) -> None:
        """Deliver a contact form submission to the site owner.

        Raises:
            DeliveryAppError: If the provider rejects or cannot accept it.
        """
        ...

    @abstractmethod
    async def notify_subscription(self, subscription: NewsletterSubscription) -> None:
        """Announce a new newsletter subscriber (welcome + owner notice).

        Raises:
            DeliveryAppError: If the provider rejects or cannot accept it.
        """
        ...

    @abstractmethod
    async def send_newsletter(self, newsletter_id: str) -> int:
        """Deliver a newsletter issue to every active subscriber.

        Returns:
            Number of subscribers the issue was handed to.

        Raises:
            NotFoundAppError: If no issue with ``newsletter_id`` exists.
            DeliveryAppError: If the provider cannot accept the batch.
        """
        ...
