"""Best-effort audit logging.

``AuditService.record`` follows a fire-and-forget contract: it writes the
entry in its own short-lived database session, commits immediately, and
never raises. A failing audit write is logged and swallowed so an audit
outage can never block authentication or roll back the caller's transaction.

Usage:
    audit = AuditService(get_session_maker())

    await audit.record(
        action=AuditAction.LOGIN,
        user_id=user.id,
        entity_type="User",
        entity_id=str(user.id),
        ip_address="192.168.1.1",
    )
"""

from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from src.core.enums import AuditAction
from src.models.audit_log import AuditLog

logger = structlog.get_logger(__name__)


class AuditService:
    """Append-only audit trail writer and reader.

    Attributes:
        session_maker: Factory for the independent sessions audit writes use.
    """

    def __init__(self, session_maker: async_sessionmaker) -> None:
        self.session_maker = session_maker

    async def record(
        self,
        *,
        action: AuditAction | str,
        user_id: UUID | None = None,
        entity_type: str | None = None,
        entity_id: UUID | str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> bool:
        """Record an audit entry; never raises.

        Args:
            action: What happened.
            user_id: Actor (None when no account is known).
            entity_type: Kind of entity affected ("User", "Session").
            entity_id: Identifier of the affected entity.
            ip_address: Client IP address.
            user_agent: Client user agent string.
            context: Additional event metadata (JSON).

        Returns:
            True if the entry was committed, False if the write failed.
        """
        action_value = action.value if isinstance(action, AuditAction) else action
        try:
            async with self.session_maker() as session:
                session.add(
                    AuditLog(
                        action=action_value,
                        user_id=user_id,
                        entity_type=entity_type,
                        entity_id=str(entity_id) if entity_id is not None else None,
                        ip_address=ip_address,
                        user_agent=user_agent,
                        context=context,
                    )
                )
                await session.commit()
            return True
        except Exception as e:
            logger.error(
                "audit_log_write_failed",
                action=action_value,
                user_id=str(user_id) if user_id else None,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return False

    async def list_for_user(self, user_id: UUID, limit: int = 20) -> list[AuditLog]:
        """Most recent audit entries for a user, newest first.

        Args:
            user_id: Actor to filter on.
            limit: Maximum entries (capped at 100).
        """
        limit = max(1, min(limit, 100))
        async with self.session_maker() as session:
            result = await session.execute(
                select(AuditLog)
                .where(AuditLog.user_id == user_id)
                .order_by(AuditLog.created_at.desc())
                .limit(limit)
            )
            return list(result.scalars().all())
