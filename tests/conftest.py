"""Pytest configuration and shared fixtures.

This configuration ensures:
1. Settings are pointed at a throwaway SQLite database before ``src`` is imported
2. Every test that needs a database gets freshly created tables
3. API tests run the real application (lifespan included) through TestClient
4. Test types are selectable with the ``unit``, ``integration`` and ``api`` markers
"""

import inspect
import os
import tempfile
from pathlib import Path

_TEST_DIR = Path(tempfile.mkdtemp(prefix="debtrescue-tests-"))
_DB_PATH = _TEST_DIR / "test.db"

os.environ["ENVIRONMENT"] = "testing"
os.environ["SECRET_KEY"] = "test-secret-key-that-is-at-least-32-characters-long"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_PATH}"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["EMAIL_DEVELOPMENT_MODE"] = "true"
os.environ["UPLOAD_DIR"] = str(_TEST_DIR / "uploads")
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

import src.models  # noqa: E402,F401

# Configure pytest-asyncio
pytest_plugins = ("pytest_asyncio",)

SYNC_DATABASE_URL = f"sqlite:///{_DB_PATH}"
ASYNC_DATABASE_URL = f"sqlite+aiosqlite:///{_DB_PATH}"


@pytest.fixture
def database():
    """Recreate all tables and yield a sync engine for direct inspection.

    Tests use the engine to read values the API never returns (reset tokens,
    hashed backup codes) the way a harness reads them from the store.
    """
    engine = create_engine(SYNC_DATABASE_URL)
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def client(database):
    """TestClient running the real app; lifespan disposes the engine on exit."""
    from src.main import app

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def session_maker(database):
    """Async session factory bound to the test database (no pooling)."""
    engine = create_async_engine(ASYNC_DATABASE_URL, poolclass=NullPool)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_maker):
    async with session_maker() as session:
        yield session


# Pytest markers for different test types
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests with mocked dependencies")
    config.addinivalue_line(
        "markers", "integration: Integration tests with real database"
    )
    config.addinivalue_line("markers", "api: HTTP endpoint tests through TestClient")


def pytest_collection_modifyitems(config, items):
    """Automatically add asyncio marker to async test functions.

    This ensures all async tests are properly marked even if
    the developer forgets to add @pytest.mark.asyncio.
    """
    for item in items:
        if inspect.iscoroutinefunction(getattr(item, "function", None)):
            item.add_marker(pytest.mark.asyncio)
