"""Unit tests for the FastAPI auth and request-metadata dependencies."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock, patch
from uuid import uuid4

import pytest
from fastapi.security import HTTPAuthorizationCredentials

from src.api.dependencies import (
    get_client_ip,
    get_current_user,
    get_current_verified_user,
    get_optional_current_user,
)
from src.core.errors import ForbiddenError, UnauthorizedError
from src.models.user import User
from src.services.jwt_service import JWTService


def make_request(headers=None, client_host="10.0.0.9"):
    request = Mock()
    request.headers = headers or {}
    request.client = SimpleNamespace(host=client_host) if client_host else None
    request.state = SimpleNamespace()
    request.url.path = "/api/v1/auth/me"
    return request


def bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


@pytest.fixture
def jwt_service():
    return JWTService()


@pytest.fixture
def user():
    return User(id=uuid4(), email="alice@example.com", password_hash="hash")


@pytest.mark.unit
class TestGetCurrentUser:
    async def test_resolves_user_and_session(self, jwt_service, user):
        session_id = uuid4()
        token = jwt_service.create_access_token(user.id, user.email, session_id=session_id)
        request = make_request()

        with patch("src.api.dependencies.UserRepository") as repo_cls:
            repo_cls.return_value.find_by_id = AsyncMock(return_value=user)
            resolved = await get_current_user(request, bearer(token), AsyncMock(), jwt_service)

        assert resolved is user
        assert request.state.user_id == user.id
        assert request.state.session_id == session_id

    async def test_missing_credentials(self, jwt_service):
        with pytest.raises(UnauthorizedError) as exc_info:
            await get_current_user(make_request(), None, AsyncMock(), jwt_service)

        assert exc_info.value.message == "Authentication required"

    async def test_refresh_token_rejected(self, jwt_service, user):
        token = jwt_service.create_refresh_token(user.id, user.email)

        with pytest.raises(UnauthorizedError):
            await get_current_user(make_request(), bearer(token), AsyncMock(), jwt_service)

    async def test_deleted_user_rejected(self, jwt_service, user):
        user.soft_delete()
        token = jwt_service.create_access_token(user.id, "alice@example.com")

        with patch("src.api.dependencies.UserRepository") as repo_cls:
            repo_cls.return_value.find_by_id = AsyncMock(return_value=user)
            with pytest.raises(UnauthorizedError) as exc_info:
                await get_current_user(make_request(), bearer(token), AsyncMock(), jwt_service)

        assert exc_info.value.message == "User not found or inactive"


@pytest.mark.unit
class TestOptionalAndVerifiedUser:
    async def test_optional_returns_none_for_bad_token(self, jwt_service):
        result = await get_optional_current_user(
            make_request(), bearer("garbage"), AsyncMock(), jwt_service
        )

        assert result is None

    async def test_optional_returns_none_without_header(self, jwt_service):
        assert await get_optional_current_user(make_request(), None, AsyncMock(), jwt_service) is None

    async def test_optional_returns_user(self, jwt_service, user):
        token = jwt_service.create_access_token(user.id, user.email)

        with patch("src.api.dependencies.UserRepository") as repo_cls:
            repo_cls.return_value.find_by_id = AsyncMock(return_value=user)
            result = await get_optional_current_user(
                make_request(), bearer(token), AsyncMock(), jwt_service
            )

        assert result is user

    async def test_unverified_user_forbidden(self, user):
        with pytest.raises(ForbiddenError) as exc_info:
            await get_current_verified_user(user)

        assert exc_info.value.status_code == 403

    async def test_verified_user_passes(self, user):
        user.email_verified = True

        assert await get_current_verified_user(user) is user


@pytest.mark.unit
class TestGetClientIp:
    def test_forwarded_for_first_hop(self):
        request = make_request({"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})

        assert get_client_ip(request) == "203.0.113.7"

    def test_real_ip_header(self):
        assert get_client_ip(make_request({"X-Real-IP": "198.51.100.2"})) == "198.51.100.2"

    def test_socket_peer(self):
        assert get_client_ip(make_request()) == "10.0.0.9"

    def test_no_client(self):
        assert get_client_ip(make_request(client_host=None)) is None
