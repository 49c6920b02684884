"""Application error hierarchy.

Services raise these exceptions for business-rule violations; they propagate
untouched to the HTTP layer where a single set of exception handlers
(``src.api.error_handlers``) translates them into the JSON error envelope.

Error Hierarchy:
    AppError (base - carries status code and machine-readable code)
    ├── ValidationError (400 - malformed or policy-violating input)
    ├── UnauthorizedError (401 - missing/invalid credential, locked account)
    ├── ForbiddenError (403 - authenticated but not allowed)
    ├── NotFoundError (404 - referenced resource absent)
    ├── ConflictError (409 - duplicate resource)
    └── TooManyRequestsError (429 - rate limit exceeded)
"""

from src.core.enums import ErrorCode


class AppError(Exception):
    """Base application error.

    Attributes:
        message: Human-readable error message (safe to show to clients).
        status_code: HTTP status code the error maps to.
        code: Machine-readable error code.
    """

    status_code: int = 500
    code: ErrorCode = ErrorCode.APP_ERROR

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: ErrorCode | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code

    def __str__(self) -> str:
        return self.message


class ValidationError(AppError):
    """Input failed validation or a password/email policy."""

    status_code = 400
    code = ErrorCode.VALIDATION_ERROR


class UnauthorizedError(AppError):
    """Credential or token missing, invalid or expired; account locked or suspended."""

    status_code = 401
    code = ErrorCode.UNAUTHORIZED


class ForbiddenError(AppError):
    """Authenticated user is not allowed to perform the action."""

    status_code = 403
    code = ErrorCode.FORBIDDEN


class NotFoundError(AppError):
    """Referenced resource does not exist (or is not owned by the caller)."""

    status_code = 404
    code = ErrorCode.NOT_FOUND


class ConflictError(AppError):
    """Resource already exists."""

    status_code = 409
    code = ErrorCode.CONFLICT


class TooManyRequestsError(AppError):
    """Client exceeded a request rate limit."""

    status_code = 429
    code = ErrorCode.TOO_MANY_REQUESTS
