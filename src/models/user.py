"""User model for authentication, profile and notification preferences.

This module defines the User model which represents an application account.
An account may authenticate with a password, with one or more OAuth provider
identities, or both. The row also carries the account-security state machine:
lockout counters, email verification and password reset tokens, and the TOTP
two-factor secret.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, Integer, String, Text
from sqlmodel import Column, Field

from src.models.base import DebtRescueBase, UTCDateTime, utc_now


class User(DebtRescueBase, table=True):
    """Application user account.

    Attributes:
        email: Normalized (lower-cased, trimmed) unique email address.
        name: Display name.
        phone: E.164-style phone number.
        avatar: Public URL of the uploaded avatar.
        password_hash: Bcrypt hash; None for OAuth-only accounts.
        failed_login_attempts: Consecutive failed password attempts.
        locked_until: Login is rejected while this is in the future.
        email_verified: Whether the email address has been verified.
        email_verification_token: Pending verification token (unique).
        password_reset_token: Pending password reset token (unique).
        two_factor_enabled: Whether TOTP is required at login.
        two_factor_secret: Base32 TOTP secret (set before 2FA is enabled).
        google_id / microsoft_id / apple_id: Linked OAuth identities.
        is_active: False once the account is deleted.
        is_suspended: Administrative suspension flag.
        deleted_at: Soft delete timestamp.
    """

    __tablename__ = "users"

    # Identity
    email: str = Field(
        sa_column=Column(String(255), unique=True, index=True, nullable=False),
        description="Normalized email address (unique, used for login)",
    )
    name: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=20)
    avatar: Optional[str] = Field(default=None, max_length=500)

    # Profile details
    company: Optional[str] = Field(default=None, max_length=100)
    job_title: Optional[str] = Field(default=None, max_length=100)
    website: Optional[str] = Field(default=None, max_length=255)
    bio: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    location: Optional[str] = Field(default=None, max_length=100)
    timezone: Optional[str] = Field(default=None, max_length=64)
    address_line1: Optional[str] = Field(default=None, max_length=200)
    address_line2: Optional[str] = Field(default=None, max_length=200)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    zip_code: Optional[str] = Field(default=None, max_length=20)
    country: Optional[str] = Field(default=None, max_length=100)

    # Authentication
    password_hash: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Bcrypt hash of user's password",
    )

    # Account security
    failed_login_attempts: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, server_default="0"),
        description="Count of consecutive failed login attempts",
    )
    locked_until: Optional[datetime] = Field(
        default=None,
        sa_type=UTCDateTime,
        description="Timestamp until which account is locked",
    )

    # Email verification
    email_verified: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, server_default="false"),
    )
    email_verified_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    email_verification_token: Optional[str] = Field(
        default=None,
        sa_column=Column(String(128), unique=True, nullable=True),
    )
    email_verification_expires_at: Optional[datetime] = Field(
        default=None, sa_type=UTCDateTime
    )

    # Password reset
    password_reset_token: Optional[str] = Field(
        default=None,
        sa_column=Column(String(128), unique=True, nullable=True),
    )
    password_reset_expires_at: Optional[datetime] = Field(
        default=None, sa_type=UTCDateTime
    )

    # Two-factor authentication
    two_factor_enabled: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, server_default="false"),
    )
    two_factor_secret: Optional[str] = Field(
        default=None,
        sa_column=Column(String(64), nullable=True),
    )

    # OAuth identities
    google_id: Optional[str] = Field(
        default=None, sa_column=Column(String(255), unique=True, nullable=True)
    )
    microsoft_id: Optional[str] = Field(
        default=None, sa_column=Column(String(255), unique=True, nullable=True)
    )
    apple_id: Optional[str] = Field(
        default=None, sa_column=Column(String(255), unique=True, nullable=True)
    )

    # Account status
    is_active: bool = Field(default=True)
    is_suspended: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, server_default="false"),
    )
    suspension_reason: Optional[str] = Field(
        default=None, sa_column=Column(Text, nullable=True)
    )
    suspended_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    deleted_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)

    # Login tracking
    last_login_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    last_login_ip: Optional[str] = Field(default=None, max_length=45)

    # Notification preferences
    marketing_emails: bool = Field(default=True)
    product_updates: bool = Field(default=True)
    weekly_digest: bool = Field(default=False)

    @property
    def is_locked(self) -> bool:
        """Check if account is currently locked."""
        if not self.locked_until:
            return False
        return utc_now() < self.locked_until

    @property
    def is_deleted(self) -> bool:
        """Check if the account has been soft deleted."""
        return self.deleted_at is not None

    @property
    def can_authenticate(self) -> bool:
        """Active, not suspended and not deleted."""
        return self.is_active and not self.is_suspended and not self.is_deleted

    def soft_delete(self) -> None:
        """Anonymize and deactivate the account without removing the row.

        The email is replaced so the original address can register again.
        """
        self.email = f"deleted_{self.id}@deleted.com"
        self.is_active = False
        self.deleted_at = utc_now()
