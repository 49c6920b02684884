"""Audit action types recorded in the audit_logs table.

String enum so values serialize directly into the ``action`` column.
New actions can be added without schema changes; action-specific context
goes in the row's JSON metadata.

Usage:
    from src.core.enums import AuditAction

    await audit.record(
        action=AuditAction.LOGIN,
        user_id=user.id,
        entity_type="User",
        entity_id=str(user.id),
    )
"""

from enum import Enum


class AuditAction(str, Enum):
    """Security and account events worth an audit trail."""

    # Authentication
    SIGNUP = "signup"
    LOGIN = "login"
    LOGIN_FAILED = "login_failed"
    OAUTH_LOGIN_GOOGLE = "oauth_login_google"
    OAUTH_LOGIN_MICROSOFT = "oauth_login_microsoft"
    OAUTH_LOGIN_APPLE = "oauth_login_apple"
    LOGOUT = "logout"
    LOGOUT_ALL_DEVICES = "logout_all_devices"

    # Email and password lifecycle
    EMAIL_VERIFIED = "email_verified"
    PASSWORD_RESET_REQUESTED = "password_reset_requested"
    PASSWORD_RESET = "password_reset"
    PASSWORD_CHANGED = "password_changed"

    # Two-factor authentication
    TWO_FACTOR_ENABLED = "2fa_enabled"
    TWO_FACTOR_DISABLED = "2fa_disabled"

    # Profile and preferences
    PROFILE_UPDATED = "profile_updated"
    AVATAR_UPDATED = "avatar_updated"
    NOTIFICATION_PREFERENCES_UPDATED = "notification_preferences_updated"

    # Sessions and account lifecycle
    SESSION_REVOKED = "session_revoked"
    ALL_SESSIONS_REVOKED = "all_sessions_revoked"
    ACCOUNT_DELETED = "account_deleted"
