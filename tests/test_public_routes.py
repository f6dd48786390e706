"""Tests for the rate-limited public routes (contact form, newsletter).

Limiters are built over an in-memory list store so the full admission path
runs without Redis; the notifier is an AsyncMock.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from app.adapters.notifications.base import AbstractNotifier
from app.core.app_factory import create_app
from app.core.config import AppSettings
from app.core.errors import DeliveryAppError, NotFoundAppError
from app.core.rate_limit import build_rate_limiters
from app.schemas.contact import ContactSubmission
from app.schemas.newsletter import NewsletterSubscription


@pytest.fixture
def notifier() -> AsyncMock:
    notifier = AsyncMock(spec=AbstractNotifier)
    notifier.send_newsletter.return_value = 12
    return notifier


@pytest.fixture
def client(fake_store, notifier):
    limits = AppSettings(
        contact_rate_limit_requests=2,
        api_rate_limit_requests=3,
    )
    app = create_app(
        limiters_factory=lambda: build_rate_limiters(limits, client_factory=lambda: fake_store),
        notifier=notifier,
    )
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def contact_payload() -> dict[str, str]:
    return {
        "name": "  Ada Lovelace ",
        "email": " Ada@Example.com ",
        "subject": "Project question",
        "message": "I'd like to hear more about your rate limiter.",
    }


class TestContactRoute:
    def test_accepts_valid_submission(self, client: TestClient, notifier: AsyncMock, contact_payload) -> None:
        response = client.post("/api/contact", json=contact_payload)

        assert response.status_code == 200
        assert response.json() == {"message": "Message sent successfully"}
        assert response.headers["X-RateLimit-Limit"] == "2"
        assert response.headers["X-RateLimit-Remaining"] == "1"
        assert int(response.headers["X-RateLimit-Reset"]) > 0

        notifier.notify_contact.assert_awaited_once()
        submission = notifier.notify_contact.await_args.args[0]
        assert isinstance(submission, ContactSubmission)
        assert submission.name == "Ada Lovelace"
        assert submission.email == "ada@example.com"

    def test_records_admission_under_contact_prefix(self, client: TestClient, fake_store, contact_payload) -> None:
        client.post("/api/contact", json=contact_payload)

        assert list(fake_store.lists) == ["contact-form:contact-form"]

    def test_empty_subject_becomes_none(self, client: TestClient, notifier: AsyncMock, contact_payload) -> None:
        contact_payload["subject"] = "   "

        client.post("/api/contact", json=contact_payload)

        assert notifier.notify_contact.await_args.args[0].subject is None

    def test_requires_name_email_and_message(self, client: TestClient, notifier: AsyncMock, contact_payload) -> None:
        contact_payload["message"] = "   "

        response = client.post("/api/contact", json=contact_payload)

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "invalid_contact_submission"
        assert error["message"] == "Name, email, and message are required"
        assert error["details"]["errors"][0]["field"] == "message"
        notifier.notify_contact.assert_not_awaited()

    def test_invalid_submission_still_reports_budget(self, client: TestClient, fake_store, contact_payload) -> None:
        contact_payload["email"] = "not-an-email"

        response = client.post("/api/contact", json=contact_payload)

        assert response.status_code == 400
        assert response.headers["X-RateLimit-Limit"] == "2"
        assert response.headers["X-RateLimit-Remaining"] == "1"
        assert "X-RateLimit-Reset" in response.headers
        assert len(fake_store.lists["contact-form:contact-form"]) == 1

    def test_rejects_invalid_email(self, client: TestClient, contact_payload) -> None:
        contact_payload["email"] = "not-an-email"

        response = client.post("/api/contact", json=contact_payload)

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Invalid email format"

    def test_rejects_malformed_json(self, client: TestClient) -> None:
        response = client.post(
            "/api/contact",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "invalid_json"

    def test_shared_budget_across_clients(self, client: TestClient, notifier: AsyncMock, contact_payload) -> None:
        first = client.post("/api/contact", json=contact_payload, headers={"X-Forwarded-For": "198.51.100.1"})
        second = client.post("/api/contact", json=contact_payload, headers={"X-Forwarded-For": "198.51.100.2"})
        third = client.post("/api/contact", json=contact_payload, headers={"X-Forwarded-For": "198.51.100.3"})

        assert first.status_code == 200
        assert second.status_code == 200
        assert second.headers["X-RateLimit-Remaining"] == "0"
        assert third.status_code == 429
        body = third.json()
        assert body["error"] == "Too many requests"
        assert isinstance(body["retryAfter"], int)
        assert body["retryAfter"] > 0
        assert third.headers["Retry-After"] == str(body["retryAfter"])
        assert notifier.notify_contact.await_count == 2

    def test_delivery_failure_does_not_fail_request(
        self, client: TestClient, notifier: AsyncMock, contact_payload
    ) -> None:
        notifier.notify_contact.side_effect = DeliveryAppError(
            code="provider_unavailable",
            message="Email provider unavailable",
        )

        response = client.post("/api/contact", json=contact_payload)

        assert response.status_code == 200


class TestNewsletterSubscribeRoute:
    def test_subscribes_and_sanitizes(self, client: TestClient, notifier: AsyncMock) -> None:
        response = client.post(
            "/api/newsletter/subscribe",
            json={"email": " Reader@Example.com ", "name": " Ada <script> ", "location": "Lagos"},
        )

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert response.headers["X-RateLimit-Limit"] == "3"
        assert response.headers["X-RateLimit-Remaining"] == "2"

        subscription = notifier.notify_subscription.await_args.args[0]
        assert isinstance(subscription, NewsletterSubscription)
        assert subscription.email == "reader@example.com"
        assert subscription.name == "Ada script"

    def test_optional_fields_default_to_empty(self, client: TestClient, notifier: AsyncMock) -> None:
        response = client.post("/api/newsletter/subscribe", json={"email": "reader@example.com", "name": None})

        assert response.status_code == 200
        subscription = notifier.notify_subscription.await_args.args[0]
        assert subscription.name == ""
        assert subscription.location == ""

    def test_rejects_invalid_email(self, client: TestClient, notifier: AsyncMock) -> None:
        response = client.post("/api/newsletter/subscribe", json={"email": "reader@"})

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "invalid_subscription"
        assert error["message"] == "Please provide a valid email address."
        notifier.notify_subscription.assert_not_awaited()

    def test_malformed_body_still_reports_budget(self, client: TestClient) -> None:
        response = client.post(
            "/api/newsletter/subscribe",
            content=b"[1, 2]",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "invalid_json"
        assert response.headers["X-RateLimit-Remaining"] == "2"

    def test_rejects_long_name(self, client: TestClient) -> None:
        response = client.post(
            "/api/newsletter/subscribe",
            json={"email": "reader@example.com", "name": "x" * 101},
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Name is too long."

    def test_rate_limited_after_budget(self, client: TestClient, fake_store) -> None:
        statuses = [
            client.post("/api/newsletter/subscribe", json={"email": f"r{i}@example.com"}).status_code
            for i in range(4)
        ]

        assert statuses == [200, 200, 200, 429]
        assert len(fake_store.lists["api:newsletter-subscribe"]) == 3

    def test_store_outage_does_not_block(self, notifier: AsyncMock) -> None:
        broken = AsyncMock()
        broken.lrange.side_effect = ConnectionError("store down")
        app = create_app(
            limiters_factory=lambda: build_rate_limiters(
                AppSettings(api_rate_limit_requests=1),
                client_factory=lambda: broken,
            ),
            notifier=notifier,
        )

        with TestClient(app) as test_client:
            statuses = [
                test_client.post("/api/newsletter/subscribe", json={"email": "r@example.com"}).status_code
                for _ in range(3)
            ]

        assert statuses == [200, 200, 200]
        assert notifier.notify_subscription.await_count == 3


class TestNewsletterSendRoute:
    def test_sends_issue(self, client: TestClient, notifier: AsyncMock, valid_api_key_headers) -> None:
        response = client.post("/api/newsletters/send", json={"newsletterId": " issue-7 "}, headers=valid_api_key_headers)

        assert response.status_code == 200
        assert response.json() == {"message": "Newsletter sent successfully", "recipients": 12}
        assert response.headers["X-RateLimit-Limit"] == "3"
        assert response.headers["X-RateLimit-Remaining"] == "2"
        notifier.send_newsletter.assert_awaited_once_with("issue-7")

    def test_numeric_id_is_accepted(self, client: TestClient, notifier: AsyncMock, valid_api_key_headers) -> None:
        client.post("/api/newsletters/send", json={"newsletterId": 42}, headers=valid_api_key_headers)

        notifier.send_newsletter.assert_awaited_once_with("42")

    @pytest.mark.parametrize("body", [{}, {"newsletterId": ""}, {"newsletterId": None}])
    def test_requires_newsletter_id(self, client: TestClient, notifier: AsyncMock, valid_api_key_headers, body) -> None:
        response = client.post("/api/newsletters/send", json=body, headers=valid_api_key_headers)

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "invalid_newsletter_send"
        assert error["message"] == "Newsletter ID is required"
        assert response.headers["X-RateLimit-Remaining"] == "2"
        notifier.send_newsletter.assert_not_awaited()

    def test_unknown_newsletter_is_404(self, client: TestClient, notifier: AsyncMock, valid_api_key_headers) -> None:
        notifier.send_newsletter.side_effect = NotFoundAppError(
            code="newsletter_not_found",
            message="Newsletter not found",
        )

        response = client.post("/api/newsletters/send", json={"newsletterId": "missing"}, headers=valid_api_key_headers)

        assert response.status_code == 404
        assert response.json()["error"]["message"] == "Newsletter not found"
        assert response.headers["X-RateLimit-Remaining"] == "2"

    def test_uses_api_limiter_with_own_budget(self, client: TestClient, fake_store, valid_api_key_headers) -> None:
        for i in range(3):
            client.post("/api/newsletter/subscribe", json={"email": f"r{i}@example.com"})

        statuses = [
            client.post("/api/newsletters/send", json={"newsletterId": "issue-1"}, headers=valid_api_key_headers).status_code
            for _ in range(4)
        ]

        assert statuses == [200, 200, 200, 429]
        assert len(fake_store.lists["api:newsletter-send"]) == 3
        assert len(fake_store.lists["api:newsletter-subscribe"]) == 3
