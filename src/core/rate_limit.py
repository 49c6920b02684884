"""Per-IP request rate limits backed by Redis fixed-window counters.

Three limits apply to the versioned API:

- ``api``: every request under ``/api`` (100 per 15 minutes)
- ``auth``: signup, login, OAuth login and resend-verification share one
  counter (5 per 15 minutes). Requests that succeed are refunded, so only
  failed attempts count.
- ``password_reset``: forgot-password (3 per hour)

Each counter key is ``rate_limit:<rule>:<client ip>``. The key is created with
the window as its TTL on the first hit of a window and incremented on every
request, including rejected ones.

Usage:
    from src.core.rate_limit import FixedWindowRateLimiter, rules_for_request

    limiter = FixedWindowRateLimiter(get_redis_client())
    for rule in rules_for_request("POST", "/api/v1/auth/login"):
        result = await limiter.hit(rule, "203.0.113.7")
"""

from dataclasses import dataclass

from redis.asyncio import Redis

from src.core.config import settings


@dataclass(frozen=True, slots=True)
class RateLimitRule:
    """One named limit.

    Attributes:
        name: Counter namespace; routes sharing a rule share a counter.
        max_requests: Requests allowed per window.
        window_seconds: Window length.
        message: Error message returned with the 429 response.
        skip_successful: Refund the hit when the response status is below 400.
    """

    name: str
    max_requests: int
    window_seconds: int
    message: str
    skip_successful: bool = False


@dataclass(frozen=True, slots=True)
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_seconds: int


API_LIMIT = RateLimitRule(
    name="api",
    max_requests=100,
    window_seconds=15 * 60,
    message="Too many requests, please try again later",
)

AUTH_LIMIT = RateLimitRule(
    name="auth",
    max_requests=5,
    window_seconds=15 * 60,
    message="Too many authentication attempts, please try again in 15 minutes",
    skip_successful=True,
)

PASSWORD_RESET_LIMIT = RateLimitRule(
    name="password_reset",
    max_requests=3,
    window_seconds=60 * 60,
    message="Too many password reset requests, please try again in 1 hour",
)

# Paths relative to the v1 prefix
AUTH_LIMITED_PATHS = frozenset(
    {"/auth/signup", "/auth/login", "/auth/resend-verification"}
)
PASSWORD_RESET_PATH = "/auth/forgot-password"


def rules_for_request(method: str, path: str) -> list[RateLimitRule]:
    """Rules that apply to a request, general API limit first."""
    if path != "/api" and not path.startswith("/api/"):
        return []

    rules = [API_LIMIT]
    if method != "POST":
        return rules

    route = path.removeprefix(settings.api_v1_prefix)
    if route in AUTH_LIMITED_PATHS or route.startswith("/auth/oauth/"):
        rules.append(AUTH_LIMIT)
    elif route == PASSWORD_RESET_PATH:
        rules.append(PASSWORD_RESET_LIMIT)
    return rules


class FixedWindowRateLimiter:
    """Fixed-window counters in Redis.

    Args:
        redis_client: Async Redis client (``decode_responses=True``).
    """

    def __init__(self, redis_client: Redis) -> None:
        self._redis = redis_client

    @staticmethod
    def _key(rule: RateLimitRule, identifier: str) -> str:
        return f"rate_limit:{rule.name}:{identifier}"

    async def hit(self, rule: RateLimitRule, identifier: str) -> RateLimitResult:
        """Count one request and report whether it is within the limit.

        Raises:
            redis.exceptions.RedisError: Redis is unreachable or failed.
        """
        key = self._key(rule, identifier)
        async with self._redis.pipeline(transaction=True) as pipe:
            # SET NX starts a window; INCR keeps the TTL it set
            pipe.set(key, 0, ex=rule.window_seconds, nx=True)
            pipe.incr(key)
            pipe.ttl(key)
            _, count, ttl = await pipe.execute()

        count = int(count)
        return RateLimitResult(
            allowed=count <= rule.max_requests,
            limit=rule.max_requests,
            remaining=max(rule.max_requests - count, 0),
            reset_seconds=int(ttl) if ttl and int(ttl) > 0 else rule.window_seconds,
        )

    async def refund(self, rule: RateLimitRule, identifier: str) -> None:
        """Give back one hit in the current window, if the window is still open."""
        key = self._key(rule, identifier)
        if await self._redis.exists(key):
            await self._redis.decr(key)
