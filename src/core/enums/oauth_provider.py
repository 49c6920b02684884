"""Supported OAuth identity providers.

Each provider maps to its own statically-known column on ``User``
(see ``UserRepository.oauth_id_column``) and its own audit action.
"""

from enum import Enum

from src.core.enums.audit_action import AuditAction


class OAuthProvider(str, Enum):
    """OAuth providers accepted by ``POST /auth/oauth/{provider}``."""

    GOOGLE = "google"
    MICROSOFT = "microsoft"
    APPLE = "apple"

    @property
    def login_action(self) -> AuditAction:
        """Audit action recorded for a login through this provider."""
        match self:
            case OAuthProvider.GOOGLE:
                return AuditAction.OAUTH_LOGIN_GOOGLE
            case OAuthProvider.MICROSOFT:
                return AuditAction.OAUTH_LOGIN_MICROSOFT
            case OAuthProvider.APPLE:
                return AuditAction.OAUTH_LOGIN_APPLE
        raise ValueError(f"Unsupported OAuth provider: {self}")
