"""Repositories: SQLAlchemy data access used by the services."""

from src.repositories.session_repository import SessionRepository
from src.repositories.user_repository import UserRepository

__all__ = ["SessionRepository", "UserRepository"]
