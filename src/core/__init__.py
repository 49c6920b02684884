"""Core shared kernel.

Foundational pieces used across the application:
- Settings (environment-driven configuration)
- Application error hierarchy
- Database engine and session management
"""

from src.core.errors import (
    AppError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    TooManyRequestsError,
    UnauthorizedError,
    ValidationError,
)
from src.core.enums import Environment, ErrorCode

__all__ = [
    "AppError",
    "ConflictError",
    "Environment",
    "ErrorCode",
    "ForbiddenError",
    "NotFoundError",
    "TooManyRequestsError",
    "UnauthorizedError",
    "ValidationError",
]
