"""Current-user self-service endpoints (/users/me).

Profile, avatar, password change, notification preferences, activity feed,
session management and account deletion. Every route requires a valid
access token.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, Request, Response, UploadFile

from src.api.dependencies import (
    get_auth_service,
    get_client_ip,
    get_current_session_id,
    get_current_user,
    get_upload_service,
    get_user_service,
)
from src.api.v1.auth import build_session_list, clear_refresh_cookie
from src.core.errors import ValidationError
from src.models.user import User
from src.schemas.auth import SessionsPayload
from src.schemas.common import ApiResponse, MessageResponse
from src.schemas.user import (
    ActivityEntry,
    AvatarPayload,
    ChangePasswordRequest,
    DeleteAccountRequest,
    NotificationPreferences,
    ProfileResponse,
    UpdateNotificationPreferencesRequest,
    UpdateProfileRequest,
)
from src.services.auth_service import AuthService
from src.services.upload_service import UploadService
from src.services.user_service import UserService

router = APIRouter()


@router.get("", response_model=ApiResponse[ProfileResponse])
async def get_profile(
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
):
    user = await user_service.get_profile(current_user.id)
    return ApiResponse(data=ProfileResponse.model_validate(user))


@router.put("", response_model=ApiResponse[ProfileResponse])
async def update_profile(
    payload: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
    ip_address: Optional[str] = Depends(get_client_ip),
):
    """Partial update; only the fields present in the body are changed."""
    user = await user_service.update_profile(
        current_user.id, payload.model_dump(exclude_unset=True), ip_address
    )
    return ApiResponse(
        data=ProfileResponse.model_validate(user),
        message="Profile updated successfully",
    )


@router.delete("", response_model=MessageResponse)
async def delete_account(
    response: Response,
    payload: Optional[DeleteAccountRequest] = None,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
    ip_address: Optional[str] = Depends(get_client_ip),
):
    """Soft-delete the account and sign out every device."""
    password = payload.password if payload else None
    await auth_service.delete_account(current_user.id, password, ip_address)
    clear_refresh_cookie(response)
    return MessageResponse(message="Account deleted successfully")


@router.post("/avatar", response_model=ApiResponse[AvatarPayload])
async def upload_avatar(
    avatar: Optional[UploadFile] = File(default=None),
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
    upload_service: UploadService = Depends(get_upload_service),
    ip_address: Optional[str] = Depends(get_client_ip),
):
    """Upload a JPEG, PNG or WebP avatar of at most 5 MB."""
    if avatar is None:
        raise ValidationError("No file uploaded")

    upload_service.validate_avatar(avatar.content_type, avatar.size or 0)
    content = await avatar.read()
    avatar_url = await upload_service.save_avatar(
        current_user.id, content, avatar.content_type
    )
    await user_service.set_avatar(current_user.id, avatar_url, ip_address)

    return ApiResponse(
        data=AvatarPayload(avatar=avatar_url),
        message="Avatar uploaded successfully",
    )


@router.put("/password", response_model=MessageResponse)
async def change_password(
    request: Request,
    payload: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
    ip_address: Optional[str] = Depends(get_client_ip),
):
    """Change the password; every other session is signed out."""
    await user_service.change_password(
        current_user.id,
        payload.current_password,
        payload.new_password,
        current_session_id=get_current_session_id(request),
        ip_address=ip_address,
    )
    return MessageResponse(
        message="Password updated successfully. Please log in again with your new password."
    )


@router.get("/notifications", response_model=ApiResponse[NotificationPreferences])
async def get_notification_preferences(
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
):
    preferences = await user_service.get_notification_preferences(current_user.id)
    return ApiResponse(data=NotificationPreferences(**preferences))


@router.put("/notifications", response_model=ApiResponse[NotificationPreferences])
async def update_notification_preferences(
    payload: UpdateNotificationPreferencesRequest,
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
    ip_address: Optional[str] = Depends(get_client_ip),
):
    preferences = await user_service.update_notification_preferences(
        current_user.id, payload.model_dump(), ip_address
    )
    return ApiResponse(
        data=NotificationPreferences(**preferences),
        message="Notification preferences updated successfully",
    )


@router.get("/activity", response_model=ApiResponse[list[ActivityEntry]])
async def get_activity(
    limit: int = Query(default=20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
):
    entries = await user_service.get_activity(current_user.id, limit=limit)
    return ApiResponse(data=[ActivityEntry.model_validate(entry) for entry in entries])


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
async def revoke_session(
    session_id: UUID,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
    ip_address: Optional[str] = Depends(get_client_ip),
):
    await auth_service.delete_session(current_user.id, session_id, ip_address)
    return MessageResponse(message="Session revoked successfully")


@router.delete("/sessions", response_model=MessageResponse)
async def revoke_other_sessions(
    request: Request,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
    ip_address: Optional[str] = Depends(get_client_ip),
):
    """Sign out every device except the one making this request."""
    await auth_service.revoke_other_sessions(
        current_user.id, get_current_session_id(request), ip_address
    )
    return MessageResponse(message="All other sessions have been revoked")
