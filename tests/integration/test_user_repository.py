"""Integration tests for UserRepository.

Tests cover:
- Lookup by email, verification token and unexpired reset token
- OAuth identity lookup preferring the provider id over the email
- Atomic failed-login counting and locking
- Backup code replacement and single-use consumption

Architecture:
- Integration tests with a REAL SQLite database (aiosqlite)
- Fresh tables per test (``database`` fixture)
"""

from datetime import timedelta

import pytest

from src.core.enums import OAuthProvider
from src.models.base import utc_now
from src.models.user import User
from src.repositories.user_repository import UserRepository
from src.services.totp_service import hash_backup_code


async def create_user(session, email="alice@example.com", **values) -> User:
    user = User(email=email, password_hash="hash", **values)
    await UserRepository(session).add(user)
    await session.commit()
    return user


@pytest.mark.integration
class TestLookups:
    async def test_find_by_email(self, db_session):
        user = await create_user(db_session)
        repo = UserRepository(db_session)

        assert (await repo.find_by_email("alice@example.com")).id == user.id
        assert await repo.find_by_email("bob@example.com") is None

    async def test_find_by_verification_token(self, db_session):
        user = await create_user(db_session, email_verification_token="verify-1")

        found = await UserRepository(db_session).find_by_verification_token("verify-1")

        assert found.id == user.id

    async def test_expired_reset_token_not_found(self, db_session):
        now = utc_now()
        await create_user(
            db_session,
            password_reset_token="reset-old",
            password_reset_expires_at=now - timedelta(minutes=1),
        )
        await create_user(
            db_session,
            email="bob@example.com",
            password_reset_token="reset-new",
            password_reset_expires_at=now + timedelta(hours=1),
        )
        repo = UserRepository(db_session)

        assert await repo.find_by_valid_reset_token("reset-old", now) is None
        assert (await repo.find_by_valid_reset_token("reset-new", now)).email == "bob@example.com"

    async def test_oauth_lookup_prefers_provider_match(self, db_session):
        by_provider = await create_user(db_session, email="linked@example.com", google_id="g-1")
        await create_user(db_session, email="alice@example.com")

        found = await UserRepository(db_session).find_by_oauth_identity(
            OAuthProvider.GOOGLE, "g-1", "alice@example.com"
        )

        assert found.id == by_provider.id

    async def test_oauth_lookup_falls_back_to_email(self, db_session):
        user = await create_user(db_session)

        found = await UserRepository(db_session).find_by_oauth_identity(
            OAuthProvider.APPLE, "apple-1", "alice@example.com"
        )

        assert found.id == user.id


@pytest.mark.integration
class TestFailedLogins:
    """Verifies that the counter increments atomically and locks at the threshold."""

    async def test_increments_without_locking_below_threshold(self, db_session):
        user = await create_user(db_session)
        repo = UserRepository(db_session)
        lock_until = utc_now() + timedelta(minutes=15)

        attempts, locked_until = await repo.record_failed_login(user.id, 5, lock_until)

        assert attempts == 1
        assert locked_until is None

    async def test_locks_when_threshold_reached(self, db_session):
        user = await create_user(db_session, failed_login_attempts=4)
        repo = UserRepository(db_session)
        lock_until = utc_now() + timedelta(minutes=15)

        attempts, locked_until = await repo.record_failed_login(user.id, 5, lock_until)
        await db_session.commit()

        assert attempts == 5
        assert abs(locked_until - lock_until) < timedelta(seconds=1)

    async def test_concurrent_style_increments_accumulate(self, session_maker):
        async with session_maker() as session:
            user = await create_user(session)

        lock_until = utc_now() + timedelta(minutes=15)
        for _ in range(3):
            async with session_maker() as session:
                await UserRepository(session).record_failed_login(user.id, 5, lock_until)
                await session.commit()

        async with session_maker() as session:
            reloaded = await UserRepository(session).find_by_id(user.id)
        assert reloaded.failed_login_attempts == 3
        assert reloaded.locked_until is None


@pytest.mark.integration
class TestBackupCodes:
    async def test_code_consumed_once(self, db_session):
        user = await create_user(db_session)
        repo = UserRepository(db_session)
        hashes = [hash_backup_code("AAAA-1111"), hash_backup_code("BBBB-2222")]
        await repo.replace_backup_codes(user.id, hashes)
        await db_session.commit()

        assert await repo.consume_backup_code(user.id, hashes[0]) is True
        assert await repo.consume_backup_code(user.id, hashes[0]) is False
        assert await repo.count_backup_codes(user.id) == 1

    async def test_code_of_other_user_not_consumed(self, db_session):
        alice = await create_user(db_session)
        bob = await create_user(db_session, email="bob@example.com")
        repo = UserRepository(db_session)
        await repo.replace_backup_codes(alice.id, [hash_backup_code("AAAA-1111")])

        assert await repo.consume_backup_code(bob.id, hash_backup_code("AAAA-1111")) is False

    async def test_replace_discards_previous_codes(self, db_session):
        user = await create_user(db_session)
        repo = UserRepository(db_session)
        await repo.replace_backup_codes(user.id, [hash_backup_code("AAAA-1111")])
        await repo.replace_backup_codes(user.id, [hash_backup_code("CCCC-3333")])

        assert await repo.consume_backup_code(user.id, hash_backup_code("AAAA-1111")) is False
        assert await repo.count_backup_codes(user.id) == 1
        assert await repo.delete_backup_codes(user.id) == 1
