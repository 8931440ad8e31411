"""Pydantic request models for the newsletter API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from devdigest.utils.validators import validate_email_address


class SubscriptionRequest(BaseModel):
    """Body of POST /subscribe and POST /unsubscribe."""

    model_config = ConfigDict(extra="ignore")

    email: str | None = Field(default=None, validate_default=True)

    @field_validator("email")
    @classmethod
    def _valid_email(cls, value: str | None) -> str:
        return validate_email_address(value)


class SendNewsletterRequest(BaseModel):
    """Body of POST /send-newsletter. The key may also come from the Authorization header."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    admin_key: str | None = Field(default=None, alias="adminKey")
