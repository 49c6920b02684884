"""Session model - one logged-in device.

Each successful login, signup or OAuth login creates a new Session row that
owns the refresh token issued for that device. The row, not the token
signature, is authoritative: a refresh token whose row is gone can no longer
be used.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import String, Text
from sqlmodel import Column, Field

from src.models.base import DebtRescueBase, UTCDateTime, utc_now


class Session(DebtRescueBase, table=True):
    """User session (device/browser connection).

    Attributes:
        user_id: User who owns this session.
        refresh_token: Refresh token issued for the session (unique).
        user_agent: User agent string of the client.
        ip_address: IP address the session was created from.
        expires_at: Session expiration timestamp.
        last_used_at: Last time the refresh token was exchanged.
    """

    __tablename__ = "sessions"

    user_id: UUID = Field(
        foreign_key="users.id",
        nullable=False,
        index=True,
        ondelete="CASCADE",
        description="User who owns this session",
    )

    refresh_token: str = Field(
        sa_column=Column(String(1024), unique=True, index=True, nullable=False),
        description="Refresh token bound to this session",
    )

    user_agent: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
    )

    ip_address: Optional[str] = Field(default=None, max_length=45)

    expires_at: datetime = Field(
        sa_type=UTCDateTime,
        sa_column_kwargs={"nullable": False},
        description="Session expiration timestamp",
    )

    last_used_at: datetime = Field(
        default_factory=utc_now,
        sa_type=UTCDateTime,
        sa_column_kwargs={"nullable": False},
        description="Last refresh timestamp",
    )

    @property
    def is_expired(self) -> bool:
        """Check if the session has passed its expiry."""
        return self.expires_at < utc_now()
