"""Short-lived Redis lock guarding the refill of one cache key.

The lock is a plain key, lock:{cache_key}, holding a random token:

1. Acquire with SET NX EX so only one holder can create it
2. The expiration is a fixed ceiling that frees the lock if a holder dies
3. Release deletes the key only if it still holds our token (Lua script)

Step 3 matters once the ceiling has passed: by then another holder may own
the key, and a plain DEL would remove their lock.

Example:
    lock = CacheLock(redis, "storefront:products:all")
    if await lock.acquire():
        try:
            await refill()
        finally:
            await lock.release()
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import TYPE_CHECKING, Awaitable, cast
from uuid import uuid4

from storefront.cache.keys import CacheKeys
from storefront.config import settings

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = logging.getLogger(__name__)

# Compare-and-delete, atomic on the Redis server
RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


def _generate_token() -> str:
    """Generate a token unique to one acquisition attempt."""
    return uuid4().hex


class CacheLock:
    """Redis lock for a single cache key.

    Redis errors are not handled here; callers decide how to degrade.

    Args:
        client: Redis client
        key: Cache key being refilled (the lock key is derived from it)
        ttl: Lock expiration in seconds
        token: Holder token (random if None)
    """

    def __init__(
        self,
        client: Redis,
        key: str,
        ttl: int | None = None,
        token: str | None = None,
    ):
        self.client = client
        self.key = key
        self.ttl = ttl or settings.cache_lock_ttl
        self.token = token or _generate_token()
        self._lock_key = CacheKeys.lock(key)
        self._held = False

    @property
    def lock_key(self) -> str:
        """The Redis key used for the lock."""
        return self._lock_key

    @property
    def held(self) -> bool:
        """Whether this holder acquired the lock and has not released it."""
        return self._held

    async def acquire(self) -> bool:
        """Try once to acquire the lock."""
        acquired = await self.client.set(
            self._lock_key,
            self.token,
            nx=True,  # Only set if not exists
            ex=self.ttl,
        )
        self._held = bool(acquired)
        if self._held:
            logger.debug(f"Acquired cache lock {self._lock_key}")
        return self._held

    async def release(self) -> bool:
        """Release the lock if we still own it.

        Returns False when the lock expired or now belongs to someone else;
        that case is not an error.
        """
        result = await cast(
            Awaitable[int],
            self.client.eval(RELEASE_SCRIPT, 1, self._lock_key, self.token),
        )
        self._held = False
        if result:
            logger.debug(f"Released cache lock {self._lock_key}")
            return True
        logger.debug(f"Cache lock {self._lock_key} no longer ours, nothing released")
        return False

    async def owner(self) -> str | None:
        """Get the token of the current holder."""
        value = await self.client.get(self._lock_key)
        if value is None:
            return None
        return value.decode() if isinstance(value, bytes) else value

    async def __aenter__(self) -> "CacheLock":
        await self.acquire()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._held:
            await self.release()
