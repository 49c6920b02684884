"""UserRepository - SQLAlchemy data access for User and BackupCode rows.

Repositories never commit: the calling service owns the transaction so that
a multi-step operation (update user, create session) commits as one unit.

Counters and single-use codes are changed with single conditional statements
(``UPDATE ... RETURNING`` and ``DELETE ... WHERE``) instead of
read-modify-write, so concurrent requests cannot lose an increment or spend
the same backup code twice.
"""

from datetime import datetime
from typing import Any, cast
from uuid import UUID

from sqlalchemy import case, delete, literal, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.enums import OAuthProvider
from src.models.auth import BackupCode
from src.models.base import UTCDateTime
from src.models.user import User


class UserRepository:
    """Data access for users and their 2FA backup codes.

    Attributes:
        session: SQLAlchemy async session for database operations.

    Example:
        >>> repo = UserRepository(session)
        >>> user = await repo.find_by_email("user@example.com")
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def oauth_id_column(provider: OAuthProvider):
        """Column holding the external id for a provider."""
        match provider:
            case OAuthProvider.GOOGLE:
                return User.google_id
            case OAuthProvider.MICROSOFT:
                return User.microsoft_id
            case OAuthProvider.APPLE:
                return User.apple_id
        raise ValueError(f"Unsupported OAuth provider: {provider}")

    @staticmethod
    def get_oauth_id(user: User, provider: OAuthProvider) -> str | None:
        """Linked external id of ``user`` for a provider."""
        match provider:
            case OAuthProvider.GOOGLE:
                return user.google_id
            case OAuthProvider.MICROSOFT:
                return user.microsoft_id
            case OAuthProvider.APPLE:
                return user.apple_id
        raise ValueError(f"Unsupported OAuth provider: {provider}")

    @staticmethod
    def set_oauth_id(user: User, provider: OAuthProvider, provider_id: str) -> None:
        """Link an external id to ``user`` for a provider."""
        match provider:
            case OAuthProvider.GOOGLE:
                user.google_id = provider_id
            case OAuthProvider.MICROSOFT:
                user.microsoft_id = provider_id
            case OAuthProvider.APPLE:
                user.apple_id = provider_id

    async def find_by_id(self, user_id: UUID) -> User | None:
        """Find user by ID."""
        result = await self.session.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def find_by_email(self, email: str) -> User | None:
        """Find user by (already normalized) email address."""
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def find_by_verification_token(self, token: str) -> User | None:
        """Find the user holding an email verification token."""
        result = await self.session.execute(
            select(User).where(User.email_verification_token == token)
        )
        return result.scalar_one_or_none()

    async def find_by_valid_reset_token(self, token: str, now: datetime) -> User | None:
        """Find the user holding a password reset token that has not expired."""
        result = await self.session.execute(
            select(User).where(
                User.password_reset_token == token,
                User.password_reset_expires_at > now,
            )
        )
        return result.scalar_one_or_none()

    async def find_by_oauth_identity(
        self, provider: OAuthProvider, provider_id: str, email: str
    ) -> User | None:
        """Find a user by provider id or email, preferring the provider match.

        Args:
            provider: OAuth provider.
            provider_id: External account id asserted by the provider.
            email: Normalized email asserted by the provider.
        """
        column = self.oauth_id_column(provider)
        result = await self.session.execute(
            select(User).where(or_(column == provider_id, User.email == email))
        )
        users = list(result.scalars().all())
        for user in users:
            if self.get_oauth_id(user, provider) == provider_id:
                return user
        return users[0] if users else None

    async def add(self, user: User) -> User:
        """Stage a new user and flush so database defaults are assigned."""
        self.session.add(user)
        await self.session.flush()
        return user

    async def record_failed_login(
        self, user_id: UUID, max_attempts: int, lock_until: datetime
    ) -> tuple[int, datetime | None]:
        """Atomically increment the failed-login counter.

        The lock is applied in the same statement once the incremented
        counter reaches ``max_attempts``.

        Returns:
            Tuple of (new failed attempt count, locked_until after the update).
        """
        new_count = User.failed_login_attempts + 1
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(
                failed_login_attempts=new_count,
                locked_until=case(
                    (new_count >= max_attempts, literal(lock_until, UTCDateTime())),
                    else_=User.locked_until,
                ),
            )
            .returning(User.failed_login_attempts, User.locked_until)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        attempts, locked_until = result.one()
        return attempts, locked_until

    async def consume_backup_code(self, user_id: UUID, code_hash: str) -> bool:
        """Delete a matching backup code; True only for the request that removed it."""
        stmt = (
            delete(BackupCode)
            .where(BackupCode.user_id == user_id, BackupCode.code_hash == code_hash)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return (cast(Any, result).rowcount or 0) == 1

    async def replace_backup_codes(self, user_id: UUID, code_hashes: list[str]) -> None:
        """Swap the user's backup codes for a new set of hashes."""
        await self.delete_backup_codes(user_id)
        self.session.add_all(
            [BackupCode(user_id=user_id, code_hash=code_hash) for code_hash in code_hashes]
        )
        await self.session.flush()

    async def delete_backup_codes(self, user_id: UUID) -> int:
        """Remove every backup code for a user."""
        stmt = (
            delete(BackupCode)
            .where(BackupCode.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return cast(Any, result).rowcount or 0

    async def count_backup_codes(self, user_id: UUID) -> int:
        """Number of unused backup codes left."""
        result = await self.session.execute(
            select(BackupCode.id).where(BackupCode.user_id == user_id)
        )
        return len(result.scalars().all())
