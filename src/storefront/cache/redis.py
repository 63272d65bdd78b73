"""Redis connection handle for the storefront cache.

One client per process, created on first use and closed at shutdown.
Uses the redis-py async client and its connection pool.
"""

from __future__ import annotations

from collections.abc import Awaitable
from typing import TYPE_CHECKING, cast

import redis.asyncio as redis
from redis.exceptions import RedisError

from storefront.config import settings

if TYPE_CHECKING:
    from redis.asyncio import Redis

# Module-level connection pool
_redis_client: Redis | None = None


def create_redis(url: str | None = None) -> Redis:
    """Create a Redis client with the configured timeouts.

    Short timeouts keep a dead cache from stalling requests: the coordinator
    falls back to the database as soon as a call fails.
    """
    return redis.from_url(  # type: ignore[no-untyped-call]
        url or settings.redis_url,
        decode_responses=False,  # Payloads are orjson bytes
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_connect_timeout,
        max_connections=settings.redis_max_connections,
    )


async def get_redis() -> Redis:
    """Get or create the process-wide Redis client."""
    global _redis_client
    if _redis_client is None:
        _redis_client = create_redis()
    return _redis_client


async def close_redis() -> None:
    """Close Redis connections."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


async def health_check(client: Redis) -> bool:
    """Check Redis connectivity."""
    try:
        await cast(Awaitable[bool], client.ping())
        return True
    except (RedisError, OSError):
        return False
