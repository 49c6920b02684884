"""Utility functions for testing.

Provides helpers for generating test data, calling the auth endpoints and
reading or writing rows directly in the test database.
"""

import random
import string
from typing import Any, Dict

from fastapi.testclient import TestClient
from sqlalchemy import func
from sqlmodel import Session as DBSession
from sqlmodel import select

from src.models.auth import BackupCode
from src.models.session import Session
from src.models.user import User

API = "/api/v1"

STRONG_PASSWORD = "Sup3r$ecret!"
NEW_STRONG_PASSWORD = "N3w!Secret#42"


def random_lower_string(length: int = 32) -> str:
    """Generate a random lowercase string.

    Args:
        length: Length of the string to generate

    Returns:
        Random lowercase string
    """
    return "".join(random.choices(string.ascii_lowercase, k=length))


def random_email() -> str:
    """Generate a random email address for testing.

    Returns:
        Random email in format: random@example.com
    """
    return f"{random_lower_string(10)}@example.com"


def signup(
    client: TestClient,
    email: str = "alice@example.com",
    password: str = STRONG_PASSWORD,
    **extra: Any,
):
    """POST /auth/signup and return the response."""
    return client.post(
        f"{API}/auth/signup", json={"email": email, "password": password, **extra}
    )


def login(client: TestClient, email: str, password: str = STRONG_PASSWORD, **extra: Any):
    return client.post(
        f"{API}/auth/login", json={"email": email, "password": password, **extra}
    )


def signup_and_get_token(client: TestClient, email: str = "alice@example.com") -> str:
    """Sign up a fresh account and return its access token."""
    response = signup(client, email)
    assert response.status_code == 201, response.text
    return response.json()["data"]["accessToken"]


def auth_headers(access_token: str) -> Dict[str, str]:
    """Authorization header for a Bearer access token."""
    return {"Authorization": f"Bearer {access_token}"}


def load_user(engine, email: str) -> User:
    """Read a user row straight from the database."""
    with DBSession(engine) as session:
        user = session.exec(select(User).where(User.email == email)).one()
        session.expunge(user)
        return user


def update_user(engine, email: str, **values: Any) -> None:
    """Write columns of a user row straight to the database."""
    with DBSession(engine) as session:
        user = session.exec(select(User).where(User.email == email)).one()
        for key, value in values.items():
            setattr(user, key, value)
        session.add(user)
        session.commit()


def count_sessions(engine, user_id) -> int:
    with DBSession(engine) as session:
        return session.exec(
            select(func.count()).select_from(Session).where(Session.user_id == user_id)
        ).one()


def count_backup_codes(engine, user_id) -> int:
    with DBSession(engine) as session:
        return session.exec(
            select(func.count()).select_from(BackupCode).where(BackupCode.user_id == user_id)
        ).one()
