"""API v1 router aggregation.

This module combines all v1 API routers into a single router
that can be mounted on the main application.
"""

from fastapi import APIRouter

from src.api.v1.auth import router as auth_router
from src.api.v1.users import router as users_router

# Create main API router
api_router = APIRouter()

# Account authentication, tokens, 2FA and sessions
api_router.include_router(auth_router, prefix="/auth", tags=["authentication"])

# Current user profile and preferences
api_router.include_router(users_router, prefix="/users/me", tags=["users"])
