"""
Main FastAPI application entry point.

This module initializes the FastAPI application instance and wires logging,
rate limiting, CORS, the global exception handlers, the v1 routers, static
avatar files and the health check.

Run locally with:
    uvicorn src.main:app --reload --port 4000
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from src.api.error_handlers import register_exception_handlers
from src.api.middleware import RateLimitMiddleware
from src.api.v1 import api_router
from src.core.cache import close_redis
from src.core.config import settings
from src.core.database import check_db_connection, close_db, init_db
from src.core.logging import configure_logging
from src.schemas.common import HealthResponse

configure_logging(settings)
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan context manager.

    Handles startup and shutdown events:
    - Startup: create missing tables (outside testing, where fixtures own the schema)
    - Shutdown: dispose the database engine and close Redis

    Args:
        app: FastAPI application instance.

    Yields:
        None during application lifetime.
    """
    logger.info(
        "application_starting",
        environment=settings.environment.value,
        version=settings.app_version,
    )
    if not settings.is_testing:
        await init_db()

    yield

    await close_db()
    await close_redis()
    logger.info("application_stopped")


# Initialize FastAPI application with settings and lifespan
app = FastAPI(
    title=settings.app_name,
    description="Account, session and two-factor authentication API for DebtRescue.AI",
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    debug=settings.debug,
    lifespan=lifespan,
)

# Must stay inside CORS so 429 responses carry CORS headers
app.add_middleware(RateLimitMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register global exception handlers (success/error envelope)
register_exception_handlers(app)

app.include_router(api_router, prefix=settings.api_v1_prefix)

# Uploaded avatars
upload_dir = Path(settings.upload_dir)
upload_dir.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=upload_dir), name="uploads")


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """
    Health check endpoint for monitoring and load balancers.

    Returns:
        HealthResponse: ``healthy`` when the database answers, else ``degraded``.
    """
    database_ok = await check_db_connection()
    return HealthResponse(
        status="healthy" if database_ok else "degraded",
        version=settings.app_version,
        database="connected" if database_ok else "disconnected",
    )
