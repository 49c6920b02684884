"""Audit log model for security-relevant account events.

Append-only: rows are inserted by ``AuditService`` and never updated.

Typical actions:
    signup, login, login_failed, oauth_login_<provider>, logout,
    logout_all_devices, email_verified, password_reset_requested,
    password_reset, password_changed, 2fa_enabled, 2fa_disabled,
    profile_updated, avatar_updated, notification_preferences_updated,
    session_revoked, all_sessions_revoked, account_deleted
"""

from typing import Any, Optional
from uuid import UUID

from sqlalchemy import JSON, String, Text
from sqlmodel import Column, Field

from src.models.base import DebtRescueBase


class AuditLog(DebtRescueBase, table=True):
    """Audit record for one security event.

    Attributes:
        user_id: Actor (None when no account could be resolved).
        action: Event name.
        entity_type: Kind of entity the event refers to ("User", "Session").
        entity_id: Identifier of that entity.
        ip_address: Client IP address.
        user_agent: Client user agent.
        context: Free-form event metadata (stored in the ``metadata`` column).
    """

    __tablename__ = "audit_logs"

    user_id: Optional[UUID] = Field(
        default=None,
        foreign_key="users.id",
        index=True,
        ondelete="SET NULL",
    )
    action: str = Field(
        sa_column=Column(String(100), nullable=False, index=True),
    )
    entity_type: Optional[str] = Field(default=None, max_length=50)
    entity_id: Optional[str] = Field(default=None, max_length=64)
    ip_address: Optional[str] = Field(default=None, max_length=45)
    user_agent: Optional[str] = Field(
        default=None, sa_column=Column(Text, nullable=True)
    )
    context: Optional[dict[str, Any]] = Field(
        default=None,
        sa_column=Column("metadata", JSON, nullable=True),
    )
