"""Authentication API endpoints.

This module implements account authentication including:
- Signup and password login (with two-factor challenge)
- OAuth login for Google, Microsoft and Apple identities
- Email verification and resend
- Password reset request and execution
- Access token refresh from the ``refreshToken`` cookie
- Logout, logout everywhere and session management
- Two-factor enrollment and disable

Services raise ``AppError`` subclasses; the global exception handlers turn
them into the error envelope, so endpoints contain no try/except.
"""

from typing import Optional, Union
from uuid import UUID

import structlog
from fastapi import APIRouter, Cookie, Depends, Request, Response, status

from src.api.dependencies import (
    get_auth_service,
    get_client_ip,
    get_current_session_id,
    get_current_user,
    get_user_agent,
)
from src.core.config import settings
from src.core.enums import OAuthProvider
from src.core.errors import UnauthorizedError, ValidationError
from src.models.session import Session
from src.models.user import User
from src.schemas.auth import (
    AccessTokenPayload,
    AuthPayload,
    AuthUserResponse,
    BackupCodesPayload,
    CurrentUserPayload,
    EmailRequest,
    LoginRequest,
    OAuthLoginRequest,
    PasswordConfirmRequest,
    RefreshRequest,
    ResetPasswordRequest,
    SessionResponse,
    SessionsPayload,
    SignupRequest,
    TokenRequest,
    TwoFactorCodeRequest,
    TwoFactorRequiredPayload,
    TwoFactorSetupPayload,
)
from src.schemas.common import ApiResponse, MessageResponse
from src.services.auth_service import (
    TWO_FACTOR_ENABLED_MESSAGE,
    AuthResult,
    AuthService,
    TwoFactorChallenge,
)

logger = structlog.get_logger(__name__)

router = APIRouter()

REFRESH_COOKIE_NAME = "refreshToken"


def set_refresh_cookie(response: Response, refresh_token: str) -> None:
    """Attach the refresh token as an httpOnly cookie."""
    response.set_cookie(
        key=REFRESH_COOKIE_NAME,
        value=refresh_token,
        max_age=settings.refresh_token_expire_days * 24 * 60 * 60,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )


def clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(
        key=REFRESH_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )


def build_session_list(
    sessions: list[Session], current_session_id: Optional[UUID]
) -> SessionsPayload:
    """Serialize sessions, flagging the one behind the current access token."""
    return SessionsPayload(
        sessions=[
            SessionResponse(
                id=item.id,
                user_agent=item.user_agent,
                ip_address=item.ip_address,
                created_at=item.created_at,
                last_used_at=item.last_used_at,
                expires_at=item.expires_at,
                is_current=item.id == current_session_id,
            )
            for item in sessions
        ]
    )


def _auth_response(
    result: AuthResult, response: Response, include_new_user: bool = False
) -> ApiResponse[AuthPayload]:
    set_refresh_cookie(response, result.refresh_token)
    return ApiResponse(
        data=AuthPayload(
            user=AuthUserResponse.model_validate(result.user),
            access_token=result.access_token,
            is_new_user=result.is_new_user if include_new_user else None,
        ),
        message=result.message,
    )


@router.post(
    "/signup",
    response_model=ApiResponse[AuthPayload],
    status_code=status.HTTP_201_CREATED,
)
async def signup(
    payload: SignupRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
    ip_address: Optional[str] = Depends(get_client_ip),
    user_agent: Optional[str] = Depends(get_user_agent),
):
    """Create a password account and log it in.

    The access token is returned in the body and the refresh token is set as
    the ``refreshToken`` cookie. A verification email is sent best-effort.
    """
    result = await auth_service.signup(
        email=payload.email,
        password=payload.password,
        name=payload.name,
        phone=payload.phone,
        user_agent=user_agent,
        ip_address=ip_address,
    )
    return _auth_response(result, response)


@router.post(
    "/login",
    response_model=ApiResponse[Union[AuthPayload, TwoFactorRequiredPayload]],
)
async def login(
    payload: LoginRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
    ip_address: Optional[str] = Depends(get_client_ip),
    user_agent: Optional[str] = Depends(get_user_agent),
):
    """Log in with email and password.

    When two-factor authentication is enabled and no code was sent, the
    response carries ``requiresTwoFactor`` and no tokens.
    """
    result = await auth_service.login(
        email=payload.email,
        password=payload.password,
        two_factor_code=payload.two_factor_code,
        user_agent=user_agent,
        ip_address=ip_address,
    )

    if isinstance(result, TwoFactorChallenge):
        return ApiResponse(
            data=TwoFactorRequiredPayload(user_id=result.user_id),
            message=result.message,
        )

    return _auth_response(result, response)


@router.post("/oauth/{provider}", response_model=ApiResponse[AuthPayload])
async def oauth_login(
    provider: str,
    payload: OAuthLoginRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
    ip_address: Optional[str] = Depends(get_client_ip),
    user_agent: Optional[str] = Depends(get_user_agent),
):
    """Log in (or sign up) with an identity from Google, Microsoft or Apple."""
    try:
        oauth_provider = OAuthProvider(provider.lower())
    except ValueError:
        raise ValidationError("Invalid OAuth provider")

    result = await auth_service.oauth_login(
        provider=oauth_provider,
        provider_id=payload.provider_id,
        email=payload.email,
        name=payload.name,
        avatar=payload.avatar,
        user_agent=user_agent,
        ip_address=ip_address,
    )
    return _auth_response(result, response, include_new_user=True)


@router.post("/verify-email", response_model=MessageResponse)
async def verify_email(
    payload: TokenRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    message = await auth_service.verify_email(payload.token)
    return MessageResponse(message=message)


@router.post("/resend-verification", response_model=MessageResponse)
async def resend_verification(
    payload: EmailRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    message = await auth_service.resend_verification_email(payload.email)
    return MessageResponse(message=message)


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    payload: EmailRequest,
    auth_service: AuthService = Depends(get_auth_service),
    ip_address: Optional[str] = Depends(get_client_ip),
):
    """Request a password reset link.

    Answers identically whether or not the account exists.
    """
    message = await auth_service.request_password_reset(payload.email, ip_address)
    return MessageResponse(message=message)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    payload: ResetPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service),
    ip_address: Optional[str] = Depends(get_client_ip),
):
    message = await auth_service.reset_password(
        payload.token, payload.password, ip_address
    )
    return MessageResponse(message=message)


@router.post("/refresh", response_model=ApiResponse[AccessTokenPayload])
async def refresh(
    payload: Optional[RefreshRequest] = None,
    refresh_cookie: Optional[str] = Cookie(default=None, alias=REFRESH_COOKIE_NAME),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Exchange the refresh token (cookie, or body) for a new access token."""
    refresh_token = refresh_cookie or (payload.refresh_token if payload else None)
    if not refresh_token:
        raise UnauthorizedError("Refresh token not found")

    access_token = await auth_service.refresh_access_token(refresh_token)
    return ApiResponse(data=AccessTokenPayload(access_token=access_token))


@router.get("/me", response_model=ApiResponse[CurrentUserPayload])
async def get_me(current_user: User = Depends(get_current_user)):
    return ApiResponse(
        data=CurrentUserPayload(user=AuthUserResponse.model_validate(current_user))
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    refresh_cookie: Optional[str] = Cookie(default=None, alias=REFRESH_COOKIE_NAME),
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
    ip_address: Optional[str] = Depends(get_client_ip),
):
    """Delete the session behind the refresh cookie and clear the cookie."""
    if refresh_cookie:
        await auth_service.logout(refresh_cookie, ip_address)
    clear_refresh_cookie(response)
    return MessageResponse(message="Logged out successfully")


@router.post("/logout-all", response_model=MessageResponse)
async def logout_all(
    response: Response,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
    ip_address: Optional[str] = Depends(get_client_ip),
):
    await auth_service.logout_all_devices(current_user.id, ip_address)
    clear_refresh_cookie(response)
    return MessageResponse(message="Logged out from all devices successfully")


@router.post("/2fa/setup", response_model=ApiResponse[TwoFactorSetupPayload])
async def setup_two_factor(
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Start enrollment: returns the TOTP secret and provisioning URI."""
    setup = await auth_service.enable_2fa_init(current_user.id)
    return ApiResponse(
        data=TwoFactorSetupPayload(secret=setup.secret, qr_code_url=setup.qr_code_url),
        message=setup.message,
    )


@router.post("/2fa/verify", response_model=ApiResponse[BackupCodesPayload])
async def verify_two_factor(
    payload: TwoFactorCodeRequest,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
    ip_address: Optional[str] = Depends(get_client_ip),
):
    """Finish enrollment; the plaintext backup codes are only ever shown here."""
    backup_codes = await auth_service.enable_2fa_verify(
        current_user.id, payload.code, ip_address
    )
    return ApiResponse(
        data=BackupCodesPayload(backup_codes=backup_codes),
        message=TWO_FACTOR_ENABLED_MESSAGE,
    )


@router.post("/2fa/disable", response_model=MessageResponse)
async def disable_two_factor(
    payload: PasswordConfirmRequest,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
    ip_address: Optional[str] = Depends(get_client_ip),
):
    message = await auth_service.disable_2fa(current_user.id, payload.password, ip_address)
    return MessageResponse(message=message)


@router.get("/sessions", response_model=ApiResponse[SessionsPayload])
async def list_sessions(
    request: Request,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    sessions = await auth_service.list_sessions(current_user.id)
    return ApiResponse(
        data=build_session_list(sessions, get_current_session_id(request))
    )


@router.delete("/sessions/{session_id}", response_model=MessageResponse)
async def delete_session(
    session_id: UUID,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
    ip_address: Optional[str] = Depends(get_client_ip),
):
    await auth_service.delete_session(current_user.id, session_id, ip_address)
    return MessageResponse(message="Session deleted successfully")
