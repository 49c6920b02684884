"""Authentication request/response Pydantic schemas.

Request bodies accept camelCase keys (``twoFactorCode``, ``providerId``) as
well as snake_case; responses are always serialized in camelCase.
Email format and password strength are validated by the service layer so the
error messages are identical no matter which surface calls it.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field

from src.schemas.common import CamelModel


class SignupRequest(CamelModel):
    """Request to create a password account.

    Attributes:
        email: Email address (normalized and validated server-side).
        password: Password (must meet strength requirements).
        name: Display name (optional).
        phone: Phone number (optional).
    """

    email: str = Field(..., min_length=1, max_length=320)
    password: str = Field(..., min_length=1, max_length=128)
    name: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=20)

    model_config = {
        "json_schema_extra": {
            "example": {
                "email": "alice@example.com",
                "password": "P@ssw0rd1",
                "name": "Alice",
            }
        }
    }


class LoginRequest(CamelModel):
    """Password login, optionally with a TOTP or backup code."""

    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    two_factor_code: Optional[str] = Field(default=None, max_length=16)


class OAuthLoginRequest(CamelModel):
    """Identity asserted by an OAuth provider after the frontend handshake."""

    provider_id: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=1)
    name: Optional[str] = Field(default=None, max_length=100)
    avatar: Optional[str] = Field(default=None, max_length=500)


class TokenRequest(CamelModel):
    token: str = Field(..., min_length=1)


class EmailRequest(CamelModel):
    email: str = Field(..., min_length=1)


class ResetPasswordRequest(CamelModel):
    """Reset token from the email link plus the new password."""

    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1, max_length=128)


class RefreshRequest(CamelModel):
    """Refresh token in the body, for clients that cannot send the cookie."""

    refresh_token: Optional[str] = None


class TwoFactorCodeRequest(CamelModel):
    code: str = Field(..., min_length=6, max_length=6)


class PasswordConfirmRequest(CamelModel):
    password: str = Field(..., min_length=1)


class AuthUserResponse(CamelModel):
    """Safe user snapshot returned by auth endpoints (no secrets)."""

    id: UUID
    email: str
    name: Optional[str] = None
    phone: Optional[str] = None
    avatar: Optional[str] = None
    email_verified: bool
    two_factor_enabled: bool
    created_at: datetime
    last_login_at: Optional[datetime] = None


class AuthPayload(CamelModel):
    """Data of a successful signup/login: user plus access token.

    The refresh token travels in the ``refreshToken`` cookie.
    """

    user: AuthUserResponse
    access_token: str
    is_new_user: Optional[bool] = None


class TwoFactorRequiredPayload(CamelModel):
    requires_two_factor: bool = True
    user_id: UUID


class AccessTokenPayload(CamelModel):
    access_token: str


class CurrentUserPayload(CamelModel):
    user: AuthUserResponse


class TwoFactorSetupPayload(CamelModel):
    """Secret and otpauth:// provisioning URI for the authenticator app."""

    secret: str
    qr_code_url: str


class BackupCodesPayload(CamelModel):
    backup_codes: list[str]


class SessionResponse(CamelModel):
    """One logged-in device."""

    id: UUID
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None
    created_at: datetime
    last_used_at: datetime
    expires_at: datetime
    is_current: bool = False


class SessionsPayload(CamelModel):
    sessions: list[SessionResponse]
