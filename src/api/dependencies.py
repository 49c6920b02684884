"""FastAPI dependencies for authentication and service wiring.

This module provides reusable dependencies for:
- Access token validation and current user resolution
- Request metadata extraction (client IP, user agent)
- Service construction on top of the request-scoped database session
"""

from typing import Optional
from uuid import UUID

import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_session, get_session_maker
from src.core.errors import ForbiddenError, UnauthorizedError
from src.models.user import User
from src.repositories.user_repository import UserRepository
from src.services.audit_service import AuditService
from src.services.auth_service import AuthService
from src.services.email_service import EmailService
from src.services.jwt_service import ACCESS_TOKEN_TYPE, JWTService
from src.services.upload_service import UploadService
from src.services.user_service import UserService

logger = structlog.get_logger(__name__)

# auto_error=False so a missing header surfaces as our own UnauthorizedError
security = HTTPBearer(auto_error=False)


def get_jwt_service() -> JWTService:
    return JWTService()


def get_audit_service() -> AuditService:
    """Audit writer bound to the global session factory."""
    return AuditService(get_session_maker())


def get_email_service() -> EmailService:
    return EmailService()


def get_upload_service() -> UploadService:
    return UploadService()


def get_auth_service(
    session: AsyncSession = Depends(get_session),
    audit: AuditService = Depends(get_audit_service),
    email_service: EmailService = Depends(get_email_service),
    jwt_service: JWTService = Depends(get_jwt_service),
) -> AuthService:
    """Get AuthService for the current request."""
    return AuthService(
        session, audit, email_service=email_service, jwt_service=jwt_service
    )


def get_user_service(
    session: AsyncSession = Depends(get_session),
    audit: AuditService = Depends(get_audit_service),
    email_service: EmailService = Depends(get_email_service),
) -> UserService:
    return UserService(session, audit, email_service=email_service)


async def _resolve_user(
    token: str, session: AsyncSession, jwt_service: JWTService
) -> tuple[User, Optional[UUID]]:
    """Validate an access token and load its still-eligible owner.

    Raises:
        UnauthorizedError: Bad token, or the user is gone, inactive,
            suspended or deleted.
    """
    payload = jwt_service.verify_token_type(token, ACCESS_TOKEN_TYPE)
    user_id = jwt_service.get_user_id(payload)

    user = await UserRepository(session).find_by_id(user_id)
    if user is None or not user.can_authenticate:
        raise UnauthorizedError("User not found or inactive")

    return user, jwt_service.get_session_id(payload)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    session: AsyncSession = Depends(get_session),
    jwt_service: JWTService = Depends(get_jwt_service),
) -> User:
    """Get the currently authenticated user from the Bearer access token.

    Also stores ``request.state.user_id`` and ``request.state.session_id``
    (the ``sid`` claim) for downstream handlers.

    Raises:
        UnauthorizedError: Missing, malformed, expired or non-access token,
            or the account can no longer authenticate.

    Example:
        @router.get("/protected")
        async def protected_endpoint(
            current_user: User = Depends(get_current_user)
        ):
            return {"user_id": current_user.id}
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Authentication required")

    try:
        user, session_id = await _resolve_user(
            credentials.credentials, session, jwt_service
        )
    except UnauthorizedError as e:
        logger.warning("access_token_rejected", reason=e.message, path=request.url.path)
        raise

    request.state.user_id = user.id
    request.state.session_id = session_id
    return user


async def get_optional_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    session: AsyncSession = Depends(get_session),
    jwt_service: JWTService = Depends(get_jwt_service),
) -> Optional[User]:
    """Get current user if authenticated, None otherwise."""
    if credentials is None or not credentials.credentials:
        return None

    try:
        user, session_id = await _resolve_user(
            credentials.credentials, session, jwt_service
        )
    except UnauthorizedError:
        return None

    request.state.user_id = user.id
    request.state.session_id = session_id
    return user


async def get_current_verified_user(
    current_user: User = Depends(get_current_user),
) -> User:
    """Get current user and ensure email is verified.

    Raises:
        ForbiddenError: Email not verified.
    """
    if not current_user.email_verified:
        raise ForbiddenError("Email verification required")
    return current_user


def get_current_session_id(request: Request) -> Optional[UUID]:
    """Session id of the access token used for this request (after auth)."""
    return getattr(request.state, "session_id", None)


def get_client_ip(request: Request) -> Optional[str]:
    """Extract client IP address from request.

    Prefers the first ``X-Forwarded-For`` hop, then ``X-Real-IP``, then the
    socket peer.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    if request.client:
        return request.client.host

    return None


def get_user_agent(request: Request) -> Optional[str]:
    return request.headers.get("User-Agent")
