"""Request/response schemas for API endpoints.

All Pydantic models for HTTP request validation and response serialization.
Schemas are kept separate from database models (HTTP-layer concerns only)
and speak camelCase on the wire.

Usage:
    from src.schemas import ApiResponse, SignupRequest
"""

from src.schemas.auth import (
    AuthPayload,
    AuthUserResponse,
    LoginRequest,
    SessionResponse,
    SessionsPayload,
    SignupRequest,
    TwoFactorRequiredPayload,
)
from src.schemas.common import ApiResponse, CamelModel, HealthResponse, MessageResponse
from src.schemas.user import (
    ChangePasswordRequest,
    NotificationPreferences,
    ProfileResponse,
    UpdateProfileRequest,
)

__all__ = [
    # Envelope
    "ApiResponse",
    "CamelModel",
    "HealthResponse",
    "MessageResponse",
    # Auth
    "AuthPayload",
    "AuthUserResponse",
    "LoginRequest",
    "SessionResponse",
    "SessionsPayload",
    "SignupRequest",
    "TwoFactorRequiredPayload",
    # Users
    "ChangePasswordRequest",
    "NotificationPreferences",
    "ProfileResponse",
    "UpdateProfileRequest",
]
