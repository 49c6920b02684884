"""Redis client management.

A single ``redis.asyncio`` client backed by a connection pool is created
lazily on first use and closed on application shutdown. Only the rate limit
counters live in Redis; everything durable stays in the database.

Example:
    >>> from src.core.cache import get_redis_client
    >>> redis = get_redis_client()
    >>> await redis.incr("counter")
"""

import structlog
from redis.asyncio import ConnectionPool, Redis

from src.core.config import settings

logger = structlog.get_logger(__name__)

_redis_client: Redis | None = None


def get_redis_client() -> Redis:
    """Get or create the global async Redis client."""
    global _redis_client

    if _redis_client is None:
        pool = ConnectionPool.from_url(
            settings.redis_url,
            max_connections=50,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        _redis_client = Redis(connection_pool=pool)

    return _redis_client


async def close_redis() -> None:
    """Close the Redis client and its pool (called on application shutdown)."""
    global _redis_client

    if _redis_client is not None:
        await _redis_client.aclose(close_connection_pool=True)
        _redis_client = None
        logger.info("redis_connection_closed")
