"""JWT token service.

Issues and validates the two signed token kinds used by the API:

- **access** tokens: short-lived (15 min), sent as ``Authorization: Bearer``.
- **refresh** tokens: long-lived (30 days), delivered in an httpOnly cookie and
  persisted on a Session row. The Session row is authoritative; a valid
  signature alone never authorizes a refresh.

The ``type`` claim keeps the two kinds distinguishable so one can never be
used in place of the other.

Security:
    - HMAC-SHA256 (HS256) algorithm
    - 256-bit secret key minimum
    - Unique JWT ID (jti) per token, so two tokens issued in the same second
      for the same user never collide on the sessions.refresh_token index
"""

from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError
from uuid_extensions import uuid7

from src.core.config import get_settings
from src.core.errors import UnauthorizedError

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class JWTService:
    """JWT token generation and validation service.

    Usage:
        service = JWTService()
        token = service.create_access_token(user_id=user.id, email=user.email)
        payload = service.verify_token_type(token, "access")
    """

    def __init__(
        self,
        secret_key: str | None = None,
        algorithm: str | None = None,
        access_token_expire_minutes: int | None = None,
        refresh_token_expire_days: int | None = None,
    ) -> None:
        """Initialize JWT service.

        Args:
            secret_key: HMAC signing key, at least 32 bytes. Defaults to
                ``settings.secret_key``.
            algorithm: Signing algorithm (default ``settings.algorithm``).
            access_token_expire_minutes: Access token lifetime.
            refresh_token_expire_days: Refresh token lifetime.

        Raises:
            ValueError: If secret_key is too short (< 32 bytes).
        """
        settings = get_settings()
        secret_key = secret_key or settings.secret_key

        if len(secret_key) < 32:
            msg = "JWT secret key must be at least 32 bytes (256 bits)"
            raise ValueError(msg)

        self._secret_key = secret_key
        self._algorithm = algorithm or settings.algorithm
        self.access_token_expire_minutes = (
            access_token_expire_minutes or settings.access_token_expire_minutes
        )
        self.refresh_token_expire_days = (
            refresh_token_expire_days or settings.refresh_token_expire_days
        )

    def _encode(
        self,
        user_id: UUID,
        email: str,
        token_type: str,
        expires_delta: timedelta,
        extra: dict[str, Any] | None = None,
    ) -> str:
        now = datetime.now(UTC)
        payload: dict[str, Any] = {
            "sub": str(user_id),
            "email": email,
            "type": token_type,
            "iat": int(now.timestamp()),
            "exp": int((now + expires_delta).timestamp()),
            "jti": str(uuid7()),
        }
        if extra:
            payload.update(extra)

        token: str = jwt.encode(payload, self._secret_key, algorithm=self._algorithm)
        return token

    def create_access_token(
        self, user_id: UUID, email: str, session_id: UUID | None = None
    ) -> str:
        """Generate an access token.

        Args:
            user_id: User's unique identifier (``sub`` claim).
            email: User's email address.
            session_id: Session the token was issued for (``sid`` claim).

        Returns:
            Encoded JWT string.
        """
        extra = {"sid": str(session_id)} if session_id is not None else None
        return self._encode(
            user_id,
            email,
            ACCESS_TOKEN_TYPE,
            timedelta(minutes=self.access_token_expire_minutes),
            extra,
        )

    def create_refresh_token(self, user_id: UUID, email: str) -> str:
        """Generate a refresh token (30 days by default)."""
        return self._encode(
            user_id,
            email,
            REFRESH_TOKEN_TYPE,
            timedelta(days=self.refresh_token_expire_days),
        )

    def decode_token(self, token: str) -> dict[str, Any]:
        """Decode and validate a token's signature and expiry.

        Raises:
            UnauthorizedError: Token expired, tampered with or malformed.
        """
        try:
            payload: dict[str, Any] = jwt.decode(
                token, self._secret_key, algorithms=[self._algorithm]
            )
        except ExpiredSignatureError:
            raise UnauthorizedError("Token expired")
        except InvalidTokenError:
            raise UnauthorizedError("Invalid token")
        return payload

    def verify_token_type(self, token: str, expected_type: str) -> dict[str, Any]:
        """Decode a token and require a specific ``type`` claim.

        Args:
            token: Encoded JWT.
            expected_type: "access" or "refresh".

        Returns:
            Decoded payload.

        Raises:
            UnauthorizedError: Invalid token or wrong token type.
        """
        payload = self.decode_token(token)
        if payload.get("type") != expected_type:
            raise UnauthorizedError("Invalid token type")
        return payload

    @staticmethod
    def get_user_id(payload: dict[str, Any]) -> UUID:
        """Extract the user id from a decoded payload.

        Raises:
            UnauthorizedError: ``sub`` missing or not a UUID.
        """
        try:
            return UUID(str(payload["sub"]))
        except (KeyError, ValueError):
            raise UnauthorizedError("Invalid token")

    @staticmethod
    def get_session_id(payload: dict[str, Any]) -> UUID | None:
        """Extract the optional session id (``sid``) from a decoded payload."""
        sid = payload.get("sid")
        if not sid:
            return None
        try:
            return UUID(str(sid))
        except ValueError:
            return None
