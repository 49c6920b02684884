"""User self-service operations for the /users/me surface.

Profile and notification preference updates, password change, avatar
assignment and the recent activity feed. Session listing and revocation live
on ``AuthService`` because they share its session repository.
"""

import asyncio
from typing import Any, Optional
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import Settings, get_settings
from src.core.enums import AuditAction
from src.core.errors import NotFoundError, UnauthorizedError, ValidationError
from src.core.validation import validate_phone
from src.models.audit_log import AuditLog
from src.models.user import User
from src.repositories.session_repository import SessionRepository
from src.repositories.user_repository import UserRepository
from src.services.audit_service import AuditService
from src.services.email_service import EmailService
from src.services.password_service import PasswordService

logger = structlog.get_logger(__name__)

PROFILE_FIELDS = (
    "name",
    "phone",
    "company",
    "job_title",
    "website",
    "bio",
    "location",
    "timezone",
    "address_line1",
    "address_line2",
    "city",
    "state",
    "zip_code",
    "country",
)

NOTIFICATION_FIELDS = ("marketing_emails", "product_updates", "weekly_digest")

# Channels users cannot currently toggle; reported with fixed values.
FIXED_NOTIFICATION_PREFERENCES = {
    "security_alerts": True,
    "negotiation_updates": True,
    "payment_reminders": True,
    "sms_notifications": False,
    "push_notifications": True,
}


class UserService:
    """Profile, preferences and password management for the current user."""

    def __init__(
        self,
        session: AsyncSession,
        audit: AuditService,
        email_service: Optional[EmailService] = None,
        password_service: Optional[PasswordService] = None,
        settings: Optional[Settings] = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.users = UserRepository(session)
        self.sessions = SessionRepository(session)
        self.audit = audit
        self.email_service = email_service or EmailService()
        self.password_service = password_service or PasswordService(
            self.settings.bcrypt_rounds
        )

    async def get_profile(self, user_id: UUID) -> User:
        """Load the user or raise NotFoundError."""
        user = await self.users.find_by_id(user_id)
        if user is None or user.is_deleted:
            raise NotFoundError("User not found")
        return user

    async def update_profile(
        self,
        user_id: UUID,
        changes: dict[str, Any],
        ip_address: Optional[str] = None,
    ) -> User:
        """Apply a partial profile update.

        Only keys present in ``changes`` are written; unknown keys are ignored.
        Empty strings clear a field.

        Raises:
            ValidationError: Invalid phone number.
        """
        user = await self.get_profile(user_id)

        updated = []
        for field_name in PROFILE_FIELDS:
            if field_name not in changes:
                continue
            value = changes[field_name]
            if isinstance(value, str):
                value = value.strip() or None
            if field_name == "phone" and value:
                validate_phone(value)
            setattr(user, field_name, value)
            updated.append(field_name)

        await self.session.commit()

        if updated:
            await self.audit.record(
                action=AuditAction.PROFILE_UPDATED,
                user_id=user.id,
                entity_type="User",
                entity_id=user.id,
                ip_address=ip_address,
                context={"fields": updated},
            )
        return user

    async def get_notification_preferences(self, user_id: UUID) -> dict[str, bool]:
        user = await self.get_profile(user_id)
        preferences = {name: getattr(user, name) for name in NOTIFICATION_FIELDS}
        preferences.update(FIXED_NOTIFICATION_PREFERENCES)
        return preferences

    async def update_notification_preferences(
        self,
        user_id: UUID,
        changes: dict[str, Optional[bool]],
        ip_address: Optional[str] = None,
    ) -> dict[str, bool]:
        """Update the toggleable email preferences; None means unchanged."""
        user = await self.get_profile(user_id)

        for field_name in NOTIFICATION_FIELDS:
            value = changes.get(field_name)
            if value is not None:
                setattr(user, field_name, value)
        await self.session.commit()

        await self.audit.record(
            action=AuditAction.NOTIFICATION_PREFERENCES_UPDATED,
            user_id=user.id,
            entity_type="User",
            entity_id=user.id,
            ip_address=ip_address,
        )
        return await self.get_notification_preferences(user_id)

    async def change_password(
        self,
        user_id: UUID,
        current_password: str,
        new_password: str,
        current_session_id: Optional[UUID] = None,
        ip_address: Optional[str] = None,
    ) -> int:
        """Change the password and sign out every other device.

        Returns:
            Number of other sessions revoked.

        Raises:
            ValidationError: OAuth-only account, or weak new password.
            UnauthorizedError: Current password is wrong.
        """
        user = await self.get_profile(user_id)

        if not user.password_hash:
            raise ValidationError("Cannot change password for OAuth-only accounts")

        is_valid = await asyncio.to_thread(
            self.password_service.verify_password, current_password, user.password_hash
        )
        if not is_valid:
            raise UnauthorizedError("Current password is incorrect")

        self.password_service.ensure_password_strength(new_password)

        user.password_hash = await asyncio.to_thread(
            self.password_service.hash_password, new_password
        )
        revoked = await self.sessions.delete_all_for_user(
            user.id, except_session_id=current_session_id
        )
        await self.session.commit()

        await self.audit.record(
            action=AuditAction.PASSWORD_CHANGED,
            user_id=user.id,
            entity_type="User",
            entity_id=user.id,
            ip_address=ip_address,
            context={"revokedSessions": revoked},
        )
        await self.email_service.send_password_changed_notification(user.email, user.name)
        logger.info("password_changed", user_id=str(user.id), revoked_sessions=revoked)

        return revoked

    async def set_avatar(
        self, user_id: UUID, avatar_url: str, ip_address: Optional[str] = None
    ) -> User:
        user = await self.get_profile(user_id)
        user.avatar = avatar_url
        await self.session.commit()

        await self.audit.record(
            action=AuditAction.AVATAR_UPDATED,
            user_id=user.id,
            entity_type="User",
            entity_id=user.id,
            ip_address=ip_address,
        )
        return user

    async def get_activity(self, user_id: UUID, limit: int = 20) -> list[AuditLog]:
        """Recent audit entries for the user, newest first."""
        return await self.audit.list_for_user(user_id, limit=limit)
