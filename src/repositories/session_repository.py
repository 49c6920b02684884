"""SessionRepository - SQLAlchemy data access for Session rows.

This repository handles all session persistence operations including:
- Creating a session for each login
- Lookup by refresh token or by (id, owner)
- Bulk deletion (password reset, logout everywhere, account deletion)

Like ``UserRepository`` it never commits; services own the transaction.
"""

from datetime import datetime
from typing import Any, cast
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.base import utc_now
from src.models.session import Session


class SessionRepository:
    """Data access for refresh-token sessions.

    Attributes:
        session: SQLAlchemy async session for database operations.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(
        self,
        user_id: UUID,
        refresh_token: str,
        expires_at: datetime,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> Session:
        """Stage a new session row and flush it to obtain its id."""
        session_record = Session(
            user_id=user_id,
            refresh_token=refresh_token,
            user_agent=user_agent,
            ip_address=ip_address,
            expires_at=expires_at,
            last_used_at=utc_now(),
        )
        self.session.add(session_record)
        await self.session.flush()
        return session_record

    async def find_by_refresh_token(self, refresh_token: str) -> Session | None:
        """Find the session that owns a refresh token."""
        result = await self.session.execute(
            select(Session).where(Session.refresh_token == refresh_token)
        )
        return result.scalar_one_or_none()

    async def find_for_user(self, session_id: UUID, user_id: UUID) -> Session | None:
        """Find a session only if it belongs to ``user_id``."""
        result = await self.session.execute(
            select(Session).where(Session.id == session_id, Session.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def list_for_user(self, user_id: UUID) -> list[Session]:
        """All sessions of a user, most recently used first."""
        result = await self.session.execute(
            select(Session)
            .where(Session.user_id == user_id)
            .order_by(Session.last_used_at.desc())
        )
        return list(result.scalars().all())

    async def delete(self, session_id: UUID) -> bool:
        """Delete a session by id.

        Returns:
            True if deleted, False if not found.
        """
        stmt = (
            delete(Session)
            .where(Session.id == session_id)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return (cast(Any, result).rowcount or 0) > 0

    async def delete_all_for_user(
        self, user_id: UUID, *, except_session_id: UUID | None = None
    ) -> int:
        """Delete all sessions for a user, optionally keeping one.

        Args:
            user_id: User identifier.
            except_session_id: Session to keep (e.g., the caller's current one).

        Returns:
            Number of sessions deleted.
        """
        conditions = [Session.user_id == user_id]
        if except_session_id is not None:
            conditions.append(Session.id != except_session_id)

        stmt = (
            delete(Session)
            .where(*conditions)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return cast(Any, result).rowcount or 0
