"""Schemas for the /users/me self-service endpoints."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import Field, model_validator

from src.schemas.common import CamelModel


class ProfileResponse(CamelModel):
    """Full profile of the current user."""

    id: UUID
    email: str
    name: Optional[str] = None
    phone: Optional[str] = None
    avatar: Optional[str] = None
    company: Optional[str] = None
    job_title: Optional[str] = None
    website: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    timezone: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    email_verified: bool
    two_factor_enabled: bool
    created_at: datetime
    last_login_at: Optional[datetime] = None


class UpdateProfileRequest(CamelModel):
    """Partial profile update; omitted fields stay unchanged."""

    name: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=20)
    company: Optional[str] = Field(default=None, max_length=100)
    job_title: Optional[str] = Field(default=None, max_length=100)
    website: Optional[str] = Field(default=None, max_length=255)
    bio: Optional[str] = Field(default=None, max_length=1000)
    location: Optional[str] = Field(default=None, max_length=100)
    timezone: Optional[str] = Field(default=None, max_length=64)
    address_line1: Optional[str] = Field(default=None, max_length=200)
    address_line2: Optional[str] = Field(default=None, max_length=200)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    zip_code: Optional[str] = Field(default=None, max_length=20)
    country: Optional[str] = Field(default=None, max_length=100)


class ChangePasswordRequest(CamelModel):
    """Password change with confirmation.

    Raises a validation error when ``confirmPassword`` differs from
    ``newPassword``.
    """

    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1, max_length=128)
    confirm_password: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def passwords_match(self) -> "ChangePasswordRequest":
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class DeleteAccountRequest(CamelModel):
    """Password confirmation; OAuth-only accounts may omit it."""

    password: Optional[str] = None


class NotificationPreferences(CamelModel):
    marketing_emails: bool
    product_updates: bool
    weekly_digest: bool
    security_alerts: bool
    negotiation_updates: bool
    payment_reminders: bool
    sms_notifications: bool
    push_notifications: bool


class UpdateNotificationPreferencesRequest(CamelModel):
    marketing_emails: Optional[bool] = None
    product_updates: Optional[bool] = None
    weekly_digest: Optional[bool] = None


class AvatarPayload(CamelModel):
    avatar: str


class ActivityEntry(CamelModel):
    """One audit log entry as shown in the activity feed."""

    id: UUID
    action: str
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    metadata: Optional[dict[str, Any]] = Field(default=None, validation_alias="context")
    created_at: datetime
