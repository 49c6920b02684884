"""Global exception handlers producing the standard error envelope.

    {"success": false, "error": {"code": "...", "message": "..."}}

Exports:
    register_exception_handlers: Wire all handlers onto a FastAPI app.
"""

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.core.config import settings
from src.core.enums import ErrorCode
from src.core.errors import AppError

logger = structlog.get_logger(__name__)


def error_response(status_code: int, code: str, message: str) -> JSONResponse:
    """Build an error envelope response."""
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": {"code": code, "message": message}},
    )


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Validation error"
    first = errors[0]
    message = str(first.get("msg", "Validation error"))
    # Pydantic prefixes messages raised from validators
    message = message.removeprefix("Value error, ")
    location = [str(part) for part in first.get("loc", ()) if part != "body"]
    if first.get("type") == "missing" and location:
        return f"{location[-1]} is required"
    return message


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.info(
        "request_failed",
        path=request.url.path,
        method=request.method,
        status_code=exc.status_code,
        code=exc.code.value,
        message=exc.message,
    )
    return error_response(exc.status_code, exc.code.value, exc.message)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    message = _validation_message(exc)
    logger.info(
        "request_validation_failed",
        path=request.url.path,
        method=request.method,
        message=message,
    )
    return error_response(
        status.HTTP_400_BAD_REQUEST, ErrorCode.VALIDATION_ERROR.value, message
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    logger.info(
        "http_error",
        path=request.url.path,
        method=request.method,
        status_code=exc.status_code,
    )
    response = error_response(exc.status_code, ErrorCode.HTTP_ERROR.value, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning(
        "integrity_error",
        path=request.url.path,
        method=request.method,
        error=str(exc.orig),
    )
    return error_response(
        status.HTTP_409_CONFLICT,
        ErrorCode.DUPLICATE_ENTRY.value,
        "A record with this value already exists",
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error_type=type(exc).__name__,
    )
    message = "Internal server error" if settings.is_production else str(exc)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorCode.INTERNAL_ERROR.value, message
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers with the FastAPI app.

    Example:
        >>> app = FastAPI()
        >>> register_exception_handlers(app)
    """
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_exception_handler)
