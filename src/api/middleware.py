"""Rate limit middleware for FastAPI.

Applies the per-IP limits from ``src.core.rate_limit`` to every ``/api``
request and answers with the standard error envelope and HTTP 429 when a
limit is exceeded.

Fail-open: if Redis cannot be reached the request is let through and the
failure is logged.

Usage:
    from src.api.middleware import RateLimitMiddleware

    app.add_middleware(RateLimitMiddleware)
"""

from typing import Awaitable, Callable

import structlog
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from src.api.dependencies import get_client_ip
from src.api.error_handlers import error_response
from src.core.cache import get_redis_client
from src.core.config import settings
from src.core.errors import TooManyRequestsError
from src.core.rate_limit import (
    FixedWindowRateLimiter,
    RateLimitResult,
    RateLimitRule,
    rules_for_request,
)

logger = structlog.get_logger(__name__)


def _rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    return {
        "RateLimit-Limit": str(result.limit),
        "RateLimit-Remaining": str(result.remaining),
        "RateLimit-Reset": str(result.reset_seconds),
    }


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Starlette middleware enforcing the per-IP request limits.

    Every applicable rule is counted before the endpoint runs; the first rule
    over its limit short-circuits with 429. Rules with ``skip_successful``
    are refunded once the endpoint answers below 400.

    Response Headers:
        - RateLimit-Limit / RateLimit-Remaining / RateLimit-Reset: the most
          specific rule that applied
        - Retry-After: seconds until the window resets (429 only)
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if not settings.rate_limit_enabled:
            return await call_next(request)

        rules = rules_for_request(request.method, request.url.path)
        if not rules:
            return await call_next(request)

        identifier = get_client_ip(request) or "unknown"
        limiter = FixedWindowRateLimiter(get_redis_client())

        try:
            result = None
            for rule in rules:
                result = await limiter.hit(rule, identifier)
                if not result.allowed:
                    return self._too_many_requests(request, rule, result, identifier)
        except RedisError as e:
            logger.warning(
                "rate_limit_fail_open",
                path=request.url.path,
                identifier=identifier,
                error=str(e),
            )
            return await call_next(request)

        response = await call_next(request)

        if response.status_code < 400:
            await self._refund_successful(limiter, rules, identifier)

        response.headers.update(_rate_limit_headers(result))
        return response

    async def _refund_successful(
        self,
        limiter: FixedWindowRateLimiter,
        rules: list[RateLimitRule],
        identifier: str,
    ) -> None:
        try:
            for rule in rules:
                if rule.skip_successful:
                    await limiter.refund(rule, identifier)
        except RedisError as e:
            logger.warning("rate_limit_refund_failed", identifier=identifier, error=str(e))

    def _too_many_requests(
        self,
        request: Request,
        rule: RateLimitRule,
        result: RateLimitResult,
        identifier: str,
    ) -> JSONResponse:
        error = TooManyRequestsError(rule.message)
        logger.warning(
            "rate_limit_exceeded",
            path=request.url.path,
            method=request.method,
            rule=rule.name,
            identifier=identifier,
        )
        response = error_response(error.status_code, error.code.value, error.message)
        response.headers.update(_rate_limit_headers(result))
        response.headers["Retry-After"] = str(result.reset_seconds)
        return response
