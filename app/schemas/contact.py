"""Pydantic schemas for contact form submissions."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from app.schemas.validators import EMAIL_PATTERN, strip_text


class ContactSubmission(BaseModel):
    """A visitor message sent through the contact form."""

    name: str = Field(..., max_length=200, description="Sender's full name.")
    email: str = Field(..., max_length=320, description="Sender's reply-to address.")
    subject: str | None = Field(
        default=None,
        max_length=200,
        description="Optional subject line.",
    )
    message: str = Field(..., max_length=5000, description="Message body.")

    @field_validator("name", "email", "subject", "message", mode="before")
    @classmethod
    def _strip(cls, value: object) -> object:
        return strip_text(value)

    @field_validator("name", "email", "message")
    @classmethod
    def _required(cls, value: str) -> str:
        if not value:
            raise ValueError("Name, email, and message are required")
        return value

    @field_validator("email")
    @classmethod
    def _email_format(cls, value: str) -> str:
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Invalid email format")
        return value.lower()

    @field_validator("subject")
    @classmethod
    def _empty_subject_is_none(cls, value: str | None) -> str | None:
        return value or None


class ContactResponse(BaseModel):
    message: str = "Message sent successfully"
