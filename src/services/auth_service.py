"""Authentication service for account and session flows.

This service orchestrates all authentication-related operations including:
- Signup with email verification
- Password login with lockout and two-factor branching
- OAuth login (upsert by provider identity)
- Email verification and resend
- Password reset request and execution
- Two-factor enrollment (two steps) and disable
- Access token refresh, logout, logout everywhere, session management
- Account deletion

Each operation commits its primary writes in one transaction and only then
runs best-effort side effects (audit log, email), which never raise.

Note: This service is asynchronous (uses `async def`) because it performs
database I/O. bcrypt work runs in a worker thread via ``asyncio.to_thread``.
"""

import asyncio
import math
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import Settings, get_settings
from src.core.enums import AuditAction, OAuthProvider
from src.core.errors import (
    ConflictError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from src.core.validation import normalize_email, validate_email, validate_phone
from src.models.base import utc_now
from src.models.session import Session
from src.models.user import User
from src.repositories.session_repository import SessionRepository
from src.repositories.user_repository import UserRepository
from src.services.audit_service import AuditService
from src.services.email_service import EmailService
from src.services.jwt_service import REFRESH_TOKEN_TYPE, JWTService
from src.services.password_service import PasswordService
from src.services.totp_service import (
    TOTPService,
    generate_backup_codes,
    generate_secure_token,
    hash_backup_code,
)

logger = structlog.get_logger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
SIGNUP_MESSAGE = (
    "Account created successfully. Please check your email to verify your account."
)
RESEND_VERIFICATION_MESSAGE = "If an account exists, a verification email has been sent."
PASSWORD_RESET_REQUEST_MESSAGE = (
    "If an account with that email exists, a password reset link has been sent."
)
PASSWORD_RESET_MESSAGE = "Password reset successfully. Please log in with your new password."
TWO_FACTOR_REQUIRED_MESSAGE = "Two-factor authentication required"
TWO_FACTOR_SETUP_MESSAGE = (
    "Scan the QR code with your authenticator app (Google Authenticator, Authy, etc.)"
)
TWO_FACTOR_ENABLED_MESSAGE = (
    "Two-factor authentication enabled successfully. "
    "Save your backup codes in a safe place."
)


@dataclass
class AuthResult:
    """Successful authentication: the user plus a fresh token pair."""

    user: User
    access_token: str
    refresh_token: str
    session_id: UUID
    is_new_user: bool = False
    message: Optional[str] = None


@dataclass
class TwoFactorChallenge:
    """Password accepted but a second factor is required; no tokens issued."""

    user_id: UUID
    message: str = TWO_FACTOR_REQUIRED_MESSAGE
    requires_two_factor: bool = field(default=True, init=False)


@dataclass
class TwoFactorSetup:
    """First enrollment step: secret and provisioning URI for the app."""

    secret: str
    qr_code_url: str
    message: str = TWO_FACTOR_SETUP_MESSAGE


class AuthService:
    """Service for user authentication and session management.

    Attributes:
        session: Database session shared by the repositories
        users: User and backup-code repository
        sessions: Session repository
        audit: Best-effort audit trail writer
        email_service: Best-effort email sender
        password_service: bcrypt hashing and password policy (sync)
        jwt_service: Token issuing and validation (sync)
        totp_service: TOTP verification (sync)
    """

    def __init__(
        self,
        session: AsyncSession,
        audit: AuditService,
        email_service: Optional[EmailService] = None,
        password_service: Optional[PasswordService] = None,
        jwt_service: Optional[JWTService] = None,
        totp_service: Optional[TOTPService] = None,
        settings: Optional[Settings] = None,
    ):
        """Initialize auth service with dependencies.

        Args:
            session: Async database session
            audit: Audit service (writes in its own session)
            email_service: Email sender (defaults to settings-driven EmailService)
            password_service: Password hashing service
            jwt_service: JWT service
            totp_service: TOTP service
            settings: Settings override (tests)
        """
        self.session = session
        self.settings = settings or get_settings()
        self.users = UserRepository(session)
        self.sessions = SessionRepository(session)
        self.audit = audit
        self.email_service = email_service or EmailService()
        self.password_service = password_service or PasswordService(
            self.settings.bcrypt_rounds
        )
        self.jwt_service = jwt_service or JWTService()
        self.totp_service = totp_service or TOTPService(self.settings.totp_issuer)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _hash_password(self, password: str) -> str:
        return await asyncio.to_thread(self.password_service.hash_password, password)

    async def _verify_password(self, password: str, password_hash: str) -> bool:
        return await asyncio.to_thread(
            self.password_service.verify_password, password, password_hash
        )

    async def _start_session(
        self,
        user: User,
        user_agent: Optional[str],
        ip_address: Optional[str],
    ) -> tuple[str, str, Session]:
        """Issue a token pair and stage the Session that owns the refresh token."""
        refresh_token = self.jwt_service.create_refresh_token(user.id, user.email)
        session_record = await self.sessions.create(
            user_id=user.id,
            refresh_token=refresh_token,
            expires_at=utc_now() + timedelta(days=self.settings.session_expire_days),
            user_agent=user_agent,
            ip_address=ip_address,
        )
        access_token = self.jwt_service.create_access_token(
            user.id, user.email, session_id=session_record.id
        )
        return access_token, refresh_token, session_record

    async def get_user(self, user_id: UUID) -> User:
        """Load a user by id.

        Raises:
            NotFoundError: If the user does not exist.
        """
        user = await self.users.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    # ------------------------------------------------------------------
    # Signup and login
    # ------------------------------------------------------------------

    async def signup(
        self,
        email: str,
        password: str,
        name: Optional[str] = None,
        phone: Optional[str] = None,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> AuthResult:
        """Create a password account and log it in.

        Args:
            email: Email address (normalized and validated here)
            password: Plain text password (must pass the strength policy)
            name: Display name (optional)
            phone: Phone number (optional)
            user_agent: Client user agent for the new session
            ip_address: Client IP for the new session

        Returns:
            AuthResult with the new user and token pair.

        Raises:
            ValidationError: Invalid email, phone or weak password.
            ConflictError: Email already registered.

        Example:
            >>> result = await service.signup("alice@example.com", "P@ssw0rd1")
            >>> result.user.email_verified
            False
        """
        email = validate_email(normalize_email(email))

        if await self.users.find_by_email(email) is not None:
            raise ConflictError("An account with this email already exists")

        if phone:
            validate_phone(phone)

        self.password_service.ensure_password_strength(password)
        password_hash = await self._hash_password(password)

        verification_token = generate_secure_token()
        user = User(
            email=email,
            name=name,
            phone=phone or None,
            password_hash=password_hash,
            email_verification_token=verification_token,
            email_verification_expires_at=utc_now()
            + timedelta(hours=self.settings.email_verification_expire_hours),
        )

        try:
            await self.users.add(user)
            access_token, refresh_token, session_record = await self._start_session(
                user, user_agent, ip_address
            )
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ConflictError("An account with this email already exists")

        await self.audit.record(
            action=AuditAction.SIGNUP,
            user_id=user.id,
            entity_type="User",
            entity_id=user.id,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        await self.email_service.send_verification_email(
            user.email, verification_token, user.name
        )

        logger.info("user_signed_up", user_id=str(user.id))

        return AuthResult(
            user=user,
            access_token=access_token,
            refresh_token=refresh_token,
            session_id=session_record.id,
            is_new_user=True,
            message=SIGNUP_MESSAGE,
        )

    async def login(
        self,
        email: str,
        password: str,
        two_factor_code: Optional[str] = None,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> AuthResult | TwoFactorChallenge:
        """Authenticate with email and password (and a second factor if enabled).

        Returns:
            AuthResult on success, or TwoFactorChallenge when 2FA is enabled
            and no code was supplied.

        Raises:
            UnauthorizedError: Unknown account, wrong password, suspended or
                locked account, or invalid second factor. Unknown accounts and
                wrong passwords share one message.
        """
        user = await self.users.find_by_email(normalize_email(email))

        if user is None or not user.password_hash or user.is_deleted or not user.is_active:
            raise UnauthorizedError(INVALID_CREDENTIALS_MESSAGE)

        if user.is_suspended:
            reason = user.suspension_reason or "Contact support"
            raise UnauthorizedError(f"Account suspended. Reason: {reason}")

        if user.is_locked:
            remaining = math.ceil((user.locked_until - utc_now()).total_seconds() / 60)
            raise UnauthorizedError(
                "Account locked due to too many failed login attempts. "
                f"Try again in {remaining} minutes."
            )

        if not await self._verify_password(password, user.password_hash):
            await self._record_failed_password(user, user_agent, ip_address)

        if user.two_factor_enabled:
            if not two_factor_code:
                return TwoFactorChallenge(user_id=user.id)

            if not await self._verify_second_factor(user, two_factor_code):
                await self.session.commit()
                await self.audit.record(
                    action=AuditAction.LOGIN_FAILED,
                    user_id=user.id,
                    entity_type="User",
                    entity_id=user.id,
                    ip_address=ip_address,
                    user_agent=user_agent,
                    context={"reason": "invalid_2fa"},
                )
                raise UnauthorizedError("Invalid two-factor authentication code")

        user.failed_login_attempts = 0
        user.locked_until = None
        user.last_login_at = utc_now()
        user.last_login_ip = ip_address

        if self.password_service.needs_rehash(user.password_hash):
            user.password_hash = await self._hash_password(password)

        access_token, refresh_token, session_record = await self._start_session(
            user, user_agent, ip_address
        )
        await self.session.commit()

        await self.audit.record(
            action=AuditAction.LOGIN,
            user_id=user.id,
            entity_type="User",
            entity_id=user.id,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        logger.info("user_logged_in", user_id=str(user.id), session_id=str(session_record.id))

        return AuthResult(
            user=user,
            access_token=access_token,
            refresh_token=refresh_token,
            session_id=session_record.id,
        )

    async def _record_failed_password(
        self, user: User, user_agent: Optional[str], ip_address: Optional[str]
    ) -> None:
        """Count a wrong password, lock at the threshold, and raise."""
        max_attempts = self.settings.max_login_attempts
        attempts, _ = await self.users.record_failed_login(
            user.id,
            max_attempts=max_attempts,
            lock_until=utc_now() + timedelta(minutes=self.settings.lockout_minutes),
        )
        await self.session.commit()

        await self.audit.record(
            action=AuditAction.LOGIN_FAILED,
            user_id=user.id,
            entity_type="User",
            entity_id=user.id,
            ip_address=ip_address,
            user_agent=user_agent,
            context={"reason": "invalid_password", "failedAttempts": attempts},
        )
        logger.warning("login_failed", user_id=str(user.id), failed_attempts=attempts)

        if attempts >= max_attempts:
            raise UnauthorizedError(
                "Too many failed login attempts. "
                f"Account locked for {self.settings.lockout_minutes} minutes."
            )
        raise UnauthorizedError(INVALID_CREDENTIALS_MESSAGE)

    async def _verify_second_factor(self, user: User, code: str) -> bool:
        """Accept a TOTP code, or consume a matching backup code."""
        if self.totp_service.verify_code(user.two_factor_secret, code):
            return True

        if await self.users.consume_backup_code(user.id, hash_backup_code(code)):
            logger.info("backup_code_used", user_id=str(user.id))
            return True

        return False

    async def oauth_login(
        self,
        provider: OAuthProvider,
        provider_id: str,
        email: str,
        name: Optional[str] = None,
        avatar: Optional[str] = None,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> AuthResult:
        """Log in (or sign up) with an identity asserted by an OAuth provider.

        The provider identity is trusted as-is: accounts created here start
        with a verified email and no password.

        Raises:
            ValidationError: Missing provider id or invalid email.
            UnauthorizedError: The matched account is suspended or deleted.
        """
        if not provider_id:
            raise ValidationError("Provider ID and email are required")
        email = validate_email(normalize_email(email))

        user = await self.users.find_by_oauth_identity(provider, provider_id, email)
        now = utc_now()

        if user is not None:
            if user.is_suspended:
                reason = user.suspension_reason or "Contact support"
                raise UnauthorizedError(f"Account suspended. Reason: {reason}")
            if user.is_deleted or not user.is_active:
                raise UnauthorizedError("Account is no longer active")

            is_new_user = user.last_login_at is None
            if not self.users.get_oauth_id(user, provider):
                self.users.set_oauth_id(user, provider, provider_id)
            if not user.name and name:
                user.name = name
            if not user.avatar and avatar:
                user.avatar = avatar
        else:
            is_new_user = True
            user = User(
                email=email,
                name=name,
                avatar=avatar,
                email_verified=True,
                email_verified_at=now,
            )
            self.users.set_oauth_id(user, provider, provider_id)
            await self.users.add(user)

        user.last_login_at = now
        user.last_login_ip = ip_address

        access_token, refresh_token, session_record = await self._start_session(
            user, user_agent, ip_address
        )
        await self.session.commit()

        await self.audit.record(
            action=provider.login_action,
            user_id=user.id,
            entity_type="User",
            entity_id=user.id,
            ip_address=ip_address,
            user_agent=user_agent,
            context={"provider": provider.value, "isNewUser": is_new_user},
        )
        logger.info("oauth_login", user_id=str(user.id), provider=provider.value)

        return AuthResult(
            user=user,
            access_token=access_token,
            refresh_token=refresh_token,
            session_id=session_record.id,
            is_new_user=is_new_user,
        )

    # ------------------------------------------------------------------
    # Email verification
    # ------------------------------------------------------------------

    async def verify_email(self, token: str) -> str:
        """Consume an email verification token.

        Raises:
            ValidationError: Unknown or expired token, or already verified.
        """
        user = await self.users.find_by_verification_token(token)

        if user is None:
            raise ValidationError("Invalid or expired verification token")

        if user.email_verified:
            raise ValidationError("Email already verified")

        expires_at = user.email_verification_expires_at
        if expires_at is None or expires_at < utc_now():
            raise ValidationError("Invalid or expired verification token")

        user.email_verified = True
        user.email_verified_at = utc_now()
        user.email_verification_token = None
        user.email_verification_expires_at = None
        await self.session.commit()

        await self.audit.record(
            action=AuditAction.EMAIL_VERIFIED,
            user_id=user.id,
            entity_type="User",
            entity_id=user.id,
        )
        logger.info("email_verified", user_id=str(user.id))

        return "Email verified successfully"

    async def resend_verification_email(self, email: str) -> str:
        """Issue a fresh verification token; same answer whether or not the account exists."""
        user = await self.users.find_by_email(normalize_email(email))

        if user is not None and not user.email_verified and user.can_authenticate:
            token = generate_secure_token()
            user.email_verification_token = token
            user.email_verification_expires_at = utc_now() + timedelta(
                hours=self.settings.email_verification_expire_hours
            )
            await self.session.commit()
            await self.email_service.send_verification_email(user.email, token, user.name)

        return RESEND_VERIFICATION_MESSAGE

    # ------------------------------------------------------------------
    # Password reset
    # ------------------------------------------------------------------

    async def request_password_reset(
        self, email: str, ip_address: Optional[str] = None
    ) -> str:
        """Issue a 1-hour reset token; same answer whether or not the account exists."""
        user = await self.users.find_by_email(normalize_email(email))

        if user is None or not user.can_authenticate:
            return PASSWORD_RESET_REQUEST_MESSAGE

        token = generate_secure_token()
        user.password_reset_token = token
        user.password_reset_expires_at = utc_now() + timedelta(
            hours=self.settings.password_reset_expire_hours
        )
        await self.session.commit()

        await self.audit.record(
            action=AuditAction.PASSWORD_RESET_REQUESTED,
            user_id=user.id,
            entity_type="User",
            entity_id=user.id,
            ip_address=ip_address,
        )
        await self.email_service.send_password_reset_email(user.email, token, user.name)

        return PASSWORD_RESET_REQUEST_MESSAGE

    async def reset_password(
        self, token: str, new_password: str, ip_address: Optional[str] = None
    ) -> str:
        """Set a new password from a reset token and sign out every device.

        Raises:
            ValidationError: Unknown, used or expired token, or weak password.
        """
        user = await self.users.find_by_valid_reset_token(token, utc_now())
        if user is None:
            raise ValidationError("Invalid or expired reset token")

        self.password_service.ensure_password_strength(new_password)

        user.password_hash = await self._hash_password(new_password)
        user.password_reset_token = None
        user.password_reset_expires_at = None
        user.failed_login_attempts = 0
        user.locked_until = None
        revoked = await self.sessions.delete_all_for_user(user.id)
        await self.session.commit()

        await self.audit.record(
            action=AuditAction.PASSWORD_RESET,
            user_id=user.id,
            entity_type="User",
            entity_id=user.id,
            ip_address=ip_address,
            context={"revokedSessions": revoked},
        )
        await self.email_service.send_password_changed_notification(user.email, user.name)
        logger.info("password_reset", user_id=str(user.id), revoked_sessions=revoked)

        return PASSWORD_RESET_MESSAGE

    # ------------------------------------------------------------------
    # Two-factor authentication
    # ------------------------------------------------------------------

    async def enable_2fa_init(self, user_id: UUID) -> TwoFactorSetup:
        """Step 1: store a new (inactive) TOTP secret and return its URI.

        Raises:
            NotFoundError: Unknown user.
            ValidationError: 2FA already enabled.
        """
        user = await self.get_user(user_id)

        if user.two_factor_enabled:
            raise ValidationError("Two-factor authentication is already enabled")

        secret = self.totp_service.generate_secret()
        user.two_factor_secret = secret
        await self.session.commit()

        return TwoFactorSetup(
            secret=secret,
            qr_code_url=self.totp_service.get_provisioning_uri(secret, user.email),
        )

    async def enable_2fa_verify(
        self, user_id: UUID, code: str, ip_address: Optional[str] = None
    ) -> list[str]:
        """Step 2: confirm a TOTP code, enable 2FA and return plaintext backup codes.

        The plaintext codes are returned exactly once; only hashes are stored.

        Raises:
            NotFoundError: Unknown user, or setup was never initiated.
            ValidationError: Already enabled, or invalid code.
        """
        user = await self.get_user(user_id)

        if user.two_factor_enabled:
            raise ValidationError("Two-factor authentication is already enabled")

        if not user.two_factor_secret:
            raise NotFoundError(
                "Two-factor setup not initiated. Please start the setup process first."
            )

        if not self.totp_service.verify_code(user.two_factor_secret, code):
            raise ValidationError("Invalid verification code")

        backup_codes = generate_backup_codes(self.settings.backup_code_count)
        await self.users.replace_backup_codes(
            user.id, [hash_backup_code(backup_code) for backup_code in backup_codes]
        )
        user.two_factor_enabled = True
        await self.session.commit()

        await self.audit.record(
            action=AuditAction.TWO_FACTOR_ENABLED,
            user_id=user.id,
            entity_type="User",
            entity_id=user.id,
            ip_address=ip_address,
        )
        logger.info("two_factor_enabled", user_id=str(user.id))

        return backup_codes

    async def disable_2fa(
        self, user_id: UUID, password: str, ip_address: Optional[str] = None
    ) -> str:
        """Turn 2FA off after confirming the account password.

        Raises:
            ValidationError: 2FA not enabled, or OAuth-only account.
            UnauthorizedError: Wrong password.
        """
        user = await self.get_user(user_id)

        if not user.two_factor_enabled:
            raise ValidationError("Two-factor authentication is not enabled")

        if not user.password_hash:
            raise ValidationError("Cannot disable 2FA for OAuth-only accounts")

        if not await self._verify_password(password, user.password_hash):
            raise UnauthorizedError("Invalid password")

        user.two_factor_enabled = False
        user.two_factor_secret = None
        await self.users.delete_backup_codes(user.id)
        await self.session.commit()

        await self.audit.record(
            action=AuditAction.TWO_FACTOR_DISABLED,
            user_id=user.id,
            entity_type="User",
            entity_id=user.id,
            ip_address=ip_address,
        )
        logger.info("two_factor_disabled", user_id=str(user.id))

        return "Two-factor authentication disabled"

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def refresh_access_token(self, refresh_token: str) -> str:
        """Exchange a refresh token for a new access token.

        The session row is authoritative; the refresh token itself is not rotated.

        Raises:
            UnauthorizedError: Unknown, expired or malformed refresh token, or
                the owning account is no longer active.
        """
        session_record = await self.sessions.find_by_refresh_token(refresh_token)
        if session_record is None:
            raise UnauthorizedError("Invalid refresh token")

        if session_record.is_expired:
            await self.sessions.delete(session_record.id)
            await self.session.commit()
            raise UnauthorizedError("Refresh token expired")

        try:
            self.jwt_service.verify_token_type(refresh_token, REFRESH_TOKEN_TYPE)
        except UnauthorizedError:
            raise UnauthorizedError("Invalid refresh token")

        user = await self.users.find_by_id(session_record.user_id)
        if user is None or not user.can_authenticate:
            raise UnauthorizedError("Account is no longer active")

        access_token = self.jwt_service.create_access_token(
            user.id, user.email, session_id=session_record.id
        )
        session_record.last_used_at = utc_now()
        await self.session.commit()

        return access_token

    async def logout(self, refresh_token: str, ip_address: Optional[str] = None) -> bool:
        """Delete the session owning ``refresh_token``; no error if it is gone.

        Returns:
            True if a session was deleted.
        """
        session_record = await self.sessions.find_by_refresh_token(refresh_token)
        if session_record is None:
            return False

        await self.sessions.delete(session_record.id)
        await self.session.commit()

        await self.audit.record(
            action=AuditAction.LOGOUT,
            user_id=session_record.user_id,
            entity_type="Session",
            entity_id=session_record.id,
            ip_address=ip_address,
        )
        logger.info("user_logged_out", user_id=str(session_record.user_id))
        return True

    async def logout_all_devices(
        self, user_id: UUID, ip_address: Optional[str] = None
    ) -> int:
        """Delete every session of a user.

        Returns:
            Number of sessions deleted.
        """
        revoked = await self.sessions.delete_all_for_user(user_id)
        await self.session.commit()

        await self.audit.record(
            action=AuditAction.LOGOUT_ALL_DEVICES,
            user_id=user_id,
            entity_type="User",
            entity_id=user_id,
            ip_address=ip_address,
            context={"revokedSessions": revoked},
        )
        logger.info("user_logged_out_everywhere", user_id=str(user_id), revoked=revoked)
        return revoked

    async def list_sessions(self, user_id: UUID) -> list[Session]:
        """Sessions of a user, most recently used first."""
        return await self.sessions.list_for_user(user_id)

    async def delete_session(
        self, user_id: UUID, session_id: UUID, ip_address: Optional[str] = None
    ) -> None:
        """Revoke one of the user's sessions.

        Raises:
            NotFoundError: The session does not exist or belongs to someone else.
        """
        session_record = await self.sessions.find_for_user(session_id, user_id)
        if session_record is None:
            raise NotFoundError("Session not found")

        await self.sessions.delete(session_record.id)
        await self.session.commit()

        await self.audit.record(
            action=AuditAction.SESSION_REVOKED,
            user_id=user_id,
            entity_type="Session",
            entity_id=session_id,
            ip_address=ip_address,
        )

    async def revoke_other_sessions(
        self,
        user_id: UUID,
        current_session_id: Optional[UUID],
        ip_address: Optional[str] = None,
    ) -> int:
        """Revoke every session except the caller's current one."""
        revoked = await self.sessions.delete_all_for_user(
            user_id, except_session_id=current_session_id
        )
        await self.session.commit()

        await self.audit.record(
            action=AuditAction.ALL_SESSIONS_REVOKED,
            user_id=user_id,
            entity_type="User",
            entity_id=user_id,
            ip_address=ip_address,
            context={"revokedCount": revoked},
        )
        return revoked

    # ------------------------------------------------------------------
    # Account lifecycle
    # ------------------------------------------------------------------

    async def delete_account(
        self, user_id: UUID, password: Optional[str], ip_address: Optional[str] = None
    ) -> None:
        """Soft-delete the account and revoke all of its sessions.

        Password-capable accounts must confirm with their password;
        OAuth-only accounts skip the check.

        Raises:
            NotFoundError: Unknown user.
            UnauthorizedError: Wrong password.
        """
        user = await self.get_user(user_id)

        if user.password_hash:
            if not password or not await self._verify_password(password, user.password_hash):
                raise UnauthorizedError("Password is incorrect")

        user.soft_delete()
        user.two_factor_enabled = False
        user.two_factor_secret = None
        await self.users.delete_backup_codes(user.id)
        revoked = await self.sessions.delete_all_for_user(user.id)
        await self.session.commit()

        await self.audit.record(
            action=AuditAction.ACCOUNT_DELETED,
            user_id=user.id,
            entity_type="User",
            entity_id=user.id,
            ip_address=ip_address,
            context={"deletedAt": user.deleted_at.isoformat(), "revokedSessions": revoked},
        )
        logger.info("account_deleted", user_id=str(user.id))
