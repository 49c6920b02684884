"""API tests for the /auth endpoints.

Covers signup, login lockout, email verification, password reset,
refresh-cookie handling, logout, session listing and OAuth login through the
real application stack (FastAPI + SQLite).
"""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session as DBSession
from sqlmodel import select

from src.models.base import utc_now
from src.models.session import Session
from src.services.jwt_service import ACCESS_TOKEN_TYPE, JWTService
from tests.utils.utils import (
    API,
    NEW_STRONG_PASSWORD,
    auth_headers,
    count_sessions,
    load_user,
    login,
    random_email,
    signup,
    signup_and_get_token,
    update_user,
)

LOCKOUT_MESSAGE = "Too many failed login attempts. Account locked for 15 minutes."
LOCKED_MESSAGE = (
    "Account locked due to too many failed login attempts. Try again in 15 minutes."
)


@pytest.mark.api
class TestSignup:
    def test_signup_returns_token_for_created_user(self, client: TestClient, database):
        response = signup(client, "New.User@Example.com", name="New User")

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"]["user"]["email"] == "new.user@example.com"
        assert body["data"]["user"]["emailVerified"] is False
        assert "passwordHash" not in body["data"]["user"]
        assert body["message"].startswith("Account created successfully")

        user = load_user(database, "new.user@example.com")
        jwt_service = JWTService()
        payload = jwt_service.verify_token_type(body["data"]["accessToken"], ACCESS_TOKEN_TYPE)
        assert jwt_service.get_user_id(payload) == user.id
        assert count_sessions(database, user.id) == 1
        assert response.cookies.get("refreshToken")

    def test_signup_stores_verification_token(self, client: TestClient, database):
        signup(client, "verify@example.com")

        user = load_user(database, "verify@example.com")
        assert user.email_verification_token
        remaining = user.email_verification_expires_at - utc_now()
        assert timedelta(hours=23) < remaining <= timedelta(hours=24)

    def test_duplicate_email_conflicts(self, client: TestClient):
        signup(client, "dup@example.com")

        response = signup(client, "DUP@example.com")

        assert response.status_code == 409
        assert response.json()["error"] == {
            "code": "CONFLICT",
            "message": "An account with this email already exists",
        }

    def test_weak_password_rejected(self, client: TestClient):
        response = signup(client, "weak@example.com", password="password")

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_invalid_email_rejected(self, client: TestClient):
        response = signup(client, "not-an-email")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_missing_password_rejected(self, client: TestClient):
        response = client.post(f"{API}/auth/signup", json={"email": "a@example.com"})

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "password is required"


@pytest.mark.api
class TestLogin:
    def test_login_success(self, client: TestClient, database):
        email = random_email()
        signup(client, email)

        response = login(client, email)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["user"]["email"] == email
        assert data["accessToken"]
        user = load_user(database, email)
        assert user.last_login_at is not None
        assert count_sessions(database, user.id) == 2

    def test_unknown_account_and_wrong_password_share_message(self, client: TestClient):
        signup(client, "known@example.com")

        unknown = login(client, "nobody@example.com")
        wrong = login(client, "known@example.com", password="Wr0ng!Password")

        assert unknown.status_code == wrong.status_code == 401
        assert unknown.json()["error"] == wrong.json()["error"] == {
            "code": "UNAUTHORIZED",
            "message": "Invalid email or password",
        }

    def test_five_failures_lock_account(self, client: TestClient, database):
        email = "locked@example.com"
        signup(client, email)

        for _ in range(4):
            response = login(client, email, password="Wr0ng!Password")
            assert response.json()["error"]["message"] == "Invalid email or password"

        fifth = login(client, email, password="Wr0ng!Password")
        assert fifth.status_code == 401
        assert fifth.json()["error"]["message"] == LOCKOUT_MESSAGE

        sixth = login(client, email)
        assert sixth.status_code == 401
        assert sixth.json()["error"]["message"] == LOCKED_MESSAGE

        user = load_user(database, email)
        assert user.failed_login_attempts == 5
        assert user.locked_until > utc_now() + timedelta(minutes=14)

    def test_expired_lock_allows_login(self, client: TestClient, database):
        email = "unlock@example.com"
        signup(client, email)
        update_user(
            database,
            email,
            failed_login_attempts=5,
            locked_until=utc_now() - timedelta(minutes=1),
        )

        response = login(client, email)

        assert response.status_code == 200
        user = load_user(database, email)
        assert user.failed_login_attempts == 0
        assert user.locked_until is None

    def test_success_resets_failed_attempts(self, client: TestClient, database):
        email = "reset-counter@example.com"
        signup(client, email)
        login(client, email, password="Wr0ng!Password")
        login(client, email, password="Wr0ng!Password")
        assert load_user(database, email).failed_login_attempts == 2

        response = login(client, email)

        assert response.status_code == 200
        assert load_user(database, email).failed_login_attempts == 0

    def test_suspended_account_rejected(self, client: TestClient, database):
        email = "suspended@example.com"
        signup(client, email)
        update_user(database, email, is_suspended=True, suspension_reason="Chargeback")

        response = login(client, email)

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Account suspended. Reason: Chargeback"


@pytest.mark.api
class TestEmailVerification:
    def test_verify_twice(self, client: TestClient, database):
        signup(client, "verify-twice@example.com")
        token = load_user(database, "verify-twice@example.com").email_verification_token

        first = client.post(f"{API}/auth/verify-email", json={"token": token})
        second = client.post(f"{API}/auth/verify-email", json={"token": token})

        assert first.status_code == 200
        assert first.json()["success"] is True
        assert load_user(database, "verify-twice@example.com").email_verified is True
        assert second.status_code == 400
        assert second.json()["error"]["message"] == "Invalid or expired verification token"

    def test_new_token_for_verified_user_rejected(self, client: TestClient, database):
        email = "already@example.com"
        signup(client, email)
        update_user(
            database,
            email,
            email_verified=True,
            email_verification_token="stale-token",
            email_verification_expires_at=utc_now() + timedelta(hours=1),
        )

        response = client.post(f"{API}/auth/verify-email", json={"token": "stale-token"})

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Email already verified"

    def test_expired_token_rejected(self, client: TestClient, database):
        email = "expired@example.com"
        signup(client, email)
        token = load_user(database, email).email_verification_token
        update_user(database, email, email_verification_expires_at=utc_now() - timedelta(seconds=1))

        response = client.post(f"{API}/auth/verify-email", json={"token": token})

        assert response.status_code == 400
        assert load_user(database, email).email_verified is False

    def test_resend_message_does_not_reveal_account(self, client: TestClient, database):
        signup(client, "exists@example.com")
        old_token = load_user(database, "exists@example.com").email_verification_token

        existing = client.post(
            f"{API}/auth/resend-verification", json={"email": "exists@example.com"}
        )
        missing = client.post(
            f"{API}/auth/resend-verification", json={"email": "ghost@example.com"}
        )

        assert existing.status_code == missing.status_code == 200
        assert existing.content == missing.content
        assert load_user(database, "exists@example.com").email_verification_token != old_token


@pytest.mark.api
class TestPasswordReset:
    def test_request_message_does_not_reveal_account(self, client: TestClient, database):
        signup(client, "real@example.com")

        existing = client.post(f"{API}/auth/forgot-password", json={"email": "real@example.com"})
        missing = client.post(f"{API}/auth/forgot-password", json={"email": "fake@example.com"})

        assert existing.status_code == missing.status_code == 200
        assert existing.content == missing.content
        user = load_user(database, "real@example.com")
        assert user.password_reset_token
        remaining = user.password_reset_expires_at - utc_now()
        assert timedelta(minutes=59) < remaining <= timedelta(hours=1)

    def test_reset_token_single_use_and_sessions_revoked(self, client: TestClient, database):
        email = "single-use@example.com"
        signup(client, email)
        login(client, email)
        client.post(f"{API}/auth/forgot-password", json={"email": email})
        user = load_user(database, email)
        assert count_sessions(database, user.id) == 2

        first = client.post(
            f"{API}/auth/reset-password",
            json={"token": user.password_reset_token, "password": NEW_STRONG_PASSWORD},
        )
        second = client.post(
            f"{API}/auth/reset-password",
            json={"token": user.password_reset_token, "password": NEW_STRONG_PASSWORD},
        )

        assert first.status_code == 200
        assert second.status_code == 400
        assert second.json()["error"]["message"] == "Invalid or expired reset token"
        assert count_sessions(database, user.id) == 0
        assert login(client, email).status_code == 401
        assert login(client, email, password=NEW_STRONG_PASSWORD).status_code == 200

    def test_reset_clears_lockout(self, client: TestClient, database):
        email = "locked-reset@example.com"
        signup(client, email)
        update_user(
            database,
            email,
            failed_login_attempts=5,
            locked_until=utc_now() + timedelta(minutes=10),
            password_reset_token="reset-me",
            password_reset_expires_at=utc_now() + timedelta(minutes=30),
        )

        response = client.post(
            f"{API}/auth/reset-password",
            json={"token": "reset-me", "password": NEW_STRONG_PASSWORD},
        )

        assert response.status_code == 200
        user = load_user(database, email)
        assert user.failed_login_attempts == 0
        assert user.locked_until is None

    def test_expired_reset_token_rejected(self, client: TestClient, database):
        email = "late@example.com"
        signup(client, email)
        update_user(
            database,
            email,
            password_reset_token="too-late",
            password_reset_expires_at=utc_now() - timedelta(seconds=1),
        )

        response = client.post(
            f"{API}/auth/reset-password",
            json={"token": "too-late", "password": NEW_STRONG_PASSWORD},
        )

        assert response.status_code == 400

    def test_weak_new_password_keeps_token(self, client: TestClient, database):
        email = "weak-reset@example.com"
        signup(client, email)
        client.post(f"{API}/auth/forgot-password", json={"email": email})
        token = load_user(database, email).password_reset_token

        response = client.post(
            f"{API}/auth/reset-password", json={"token": token, "password": "short"}
        )

        assert response.status_code == 400
        assert load_user(database, email).password_reset_token == token


@pytest.mark.api
class TestRefreshAndLogout:
    def test_refresh_from_cookie(self, client: TestClient):
        signup(client, "cookie@example.com")

        response = client.post(f"{API}/auth/refresh")

        assert response.status_code == 200
        access_token = response.json()["data"]["accessToken"]
        me = client.get(f"{API}/auth/me", headers=auth_headers(access_token))
        assert me.json()["data"]["user"]["email"] == "cookie@example.com"

    def test_refresh_from_body(self, client: TestClient):
        refresh_token = signup(client, "body@example.com").cookies.get("refreshToken")
        client.cookies.clear()

        response = client.post(f"{API}/auth/refresh", json={"refreshToken": refresh_token})

        assert response.status_code == 200

    def test_refresh_without_token(self, client: TestClient):
        response = client.post(f"{API}/auth/refresh")

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Refresh token not found"

    def test_refresh_with_unknown_token(self, client: TestClient):
        response = client.post(f"{API}/auth/refresh", json={"refreshToken": "not-a-session"})

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid refresh token"

    def test_expired_session_rejected_and_removed(self, client: TestClient, database):
        refresh_token = signup(client, "stale@example.com").cookies.get("refreshToken")
        user = load_user(database, "stale@example.com")
        with DBSession(database) as db:
            record = db.exec(select(Session).where(Session.user_id == user.id)).one()
            record.expires_at = utc_now() - timedelta(minutes=1)
            db.add(record)
            db.commit()
        client.cookies.clear()

        response = client.post(f"{API}/auth/refresh", json={"refreshToken": refresh_token})

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Refresh token expired"
        assert count_sessions(database, user.id) == 0

    def test_access_token_is_not_a_refresh_token(self, client: TestClient):
        access_token = signup_and_get_token(client, "swap@example.com")
        client.cookies.clear()

        response = client.post(f"{API}/auth/refresh", json={"refreshToken": access_token})

        assert response.status_code == 401

    def test_logout_deletes_session_and_clears_cookie(self, client: TestClient, database):
        access_token = signup_and_get_token(client, "bye@example.com")
        user = load_user(database, "bye@example.com")

        response = client.post(f"{API}/auth/logout", headers=auth_headers(access_token))

        assert response.status_code == 200
        assert count_sessions(database, user.id) == 0
        assert client.post(f"{API}/auth/refresh").status_code == 401

    def test_logout_all_devices(self, client: TestClient, database):
        email = "everywhere@example.com"
        access_token = signup_and_get_token(client, email)
        login(client, email)
        login(client, email)
        user = load_user(database, email)
        assert count_sessions(database, user.id) == 3

        response = client.post(f"{API}/auth/logout-all", headers=auth_headers(access_token))

        assert response.status_code == 200
        assert count_sessions(database, user.id) == 0

    def test_me_requires_token(self, client: TestClient):
        response = client.get(f"{API}/auth/me")

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Authentication required"

    def test_me_rejects_garbage_token(self, client: TestClient):
        response = client.get(f"{API}/auth/me", headers=auth_headers("garbage"))

        assert response.status_code == 401


@pytest.mark.api
class TestSessions:
    def test_list_marks_current_session(self, client: TestClient):
        email = "devices@example.com"
        signup(client, email)
        access_token = login(client, email).json()["data"]["accessToken"]

        response = client.get(f"{API}/auth/sessions", headers=auth_headers(access_token))

        sessions = response.json()["data"]["sessions"]
        assert len(sessions) == 2
        assert [item["isCurrent"] for item in sessions].count(True) == 1
        assert sessions[0]["userAgent"] == "testclient"

    def test_delete_other_users_session_not_found(self, client: TestClient):
        alice_token = signup_and_get_token(client, "owner@example.com")
        bob_token = signup_and_get_token(client, "intruder@example.com")
        session_id = client.get(
            f"{API}/auth/sessions", headers=auth_headers(alice_token)
        ).json()["data"]["sessions"][0]["id"]

        response = client.delete(
            f"{API}/auth/sessions/{session_id}", headers=auth_headers(bob_token)
        )

        assert response.status_code == 404
        assert response.json()["error"]["message"] == "Session not found"

    def test_delete_own_session(self, client: TestClient, database):
        access_token = signup_and_get_token(client, "mine@example.com")
        user = load_user(database, "mine@example.com")
        session_id = client.get(
            f"{API}/auth/sessions", headers=auth_headers(access_token)
        ).json()["data"]["sessions"][0]["id"]

        response = client.delete(
            f"{API}/auth/sessions/{session_id}", headers=auth_headers(access_token)
        )

        assert response.status_code == 200
        assert count_sessions(database, user.id) == 0


@pytest.mark.api
class TestOAuthLogin:
    def test_new_user_created_verified(self, client: TestClient, database):
        response = client.post(
            f"{API}/auth/oauth/google",
            json={"providerId": "g-123", "email": "Oauth@Example.com", "name": "O Auth"},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["isNewUser"] is True
        assert data["user"]["emailVerified"] is True
        user = load_user(database, "oauth@example.com")
        assert user.google_id == "g-123"
        assert user.password_hash is None

    def test_existing_password_account_is_linked(self, client: TestClient, database):
        signup(client, "link@example.com")
        login(client, "link@example.com")

        response = client.post(
            f"{API}/auth/oauth/microsoft",
            json={"providerId": "ms-9", "email": "link@example.com"},
        )

        assert response.status_code == 200
        assert response.json()["data"]["isNewUser"] is False
        assert load_user(database, "link@example.com").microsoft_id == "ms-9"

    def test_unknown_provider_rejected(self, client: TestClient):
        response = client.post(
            f"{API}/auth/oauth/github",
            json={"providerId": "gh-1", "email": "gh@example.com"},
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Invalid OAuth provider"


@pytest.mark.api
def test_signup_me_reset_end_to_end(client: TestClient, database):
    """Signup, inspect /me, reset the password and lose the old refresh token."""
    signup_response = signup(client, "alice@example.com", password="P@ssw0rd1")
    assert signup_response.status_code == 201
    access_token = signup_response.json()["data"]["accessToken"]
    old_refresh_token = signup_response.cookies.get("refreshToken")

    me = client.get(f"{API}/auth/me", headers=auth_headers(access_token))
    assert me.status_code == 200
    assert me.json()["data"]["user"]["email"] == "alice@example.com"
    assert me.json()["data"]["user"]["emailVerified"] is False

    client.post(f"{API}/auth/forgot-password", json={"email": "alice@example.com"})
    reset_token = load_user(database, "alice@example.com").password_reset_token
    reset = client.post(
        f"{API}/auth/reset-password",
        json={"token": reset_token, "password": NEW_STRONG_PASSWORD},
    )
    assert reset.status_code == 200

    client.cookies.clear()
    refresh = client.post(f"{API}/auth/refresh", json={"refreshToken": old_refresh_token})
    assert refresh.status_code == 401
    assert refresh.json()["success"] is False
