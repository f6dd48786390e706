"""Pydantic schemas for newsletter subscriptions."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.validators import EMAIL_PATTERN, strip_angle_brackets, strip_text

MAX_NAME_CHARS = 100


class NewsletterSubscription(BaseModel):
    """A subscription request from the public newsletter form."""

    email: str = Field(..., description="Subscriber address.")
    name: str = Field(default="", description="Optional display name.")
    location: str = Field(default="", max_length=200, description="Optional free-text location.")

    @field_validator("email", "name", "location", mode="before")
    @classmethod
    def _sanitize(cls, value: object) -> object:
        return strip_angle_brackets(value)

    @field_validator("email")
    @classmethod
    def _email_format(cls, value: str) -> str:
        if not value or not EMAIL_PATTERN.match(value):
            raise ValueError("Please provide a valid email address.")
        return value.lower()

    @field_validator("name")
    @classmethod
    def _name_length(cls, value: str) -> str:
        if len(value) > MAX_NAME_CHARS:
            raise ValueError("Name is too long.")
        return value


class SubscribeResponse(BaseModel):
    success: bool = True


class NewsletterSendRequest(BaseModel):
    """Request to deliver a stored newsletter issue to every subscriber."""

    model_config = ConfigDict(populate_by_name=True)

    newsletter_id: str = Field(
        default="",
        alias="newsletterId",
        validate_default=True,
        description="Identifier of the newsletter issue to send.",
    )

    @field_validator("newsletter_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        # Ids may arrive as JSON numbers
        if value is None:
            return ""
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return strip_text(value)

    @field_validator("newsletter_id")
    @classmethod
    def _required(cls, value: str) -> str:
        if not value:
            raise ValueError("Newsletter ID is required")
        return value


class NewsletterSendResponse(BaseModel):
    message: str = "Newsletter sent successfully"
    recipients: int = Field(..., description="Subscribers the issue was handed to.")
