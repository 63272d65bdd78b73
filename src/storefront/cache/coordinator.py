"""Read-through cache coordinator for hot storefront reads.

Serves product listings, product details and admin listings from Redis in
front of the database, using stale-while-revalidate with a distributed lock:

- Fresh entry (age < ttl): returned as is
- Stale entry (age < ttl + stale_time): returned at once, refreshed in a
  background task the caller never awaits
- Missing or expired: one holder takes lock:{key}, fetches and refills;
  others back off once, re-read, and fetch directly if still empty

Redis is advisory. Any backend failure is logged and the caller gets the
fetcher's result; only the fetcher's own exceptions reach the caller.

Example:
    coordinator = CacheCoordinator(await get_redis())

    products = await coordinator.get_cached_data(
        CacheKeys.products_all(),
        60,
        lambda: repo.list_products(),
        stale_time=10,
    )

    # After a write
    await coordinator.invalidate_cache(CacheKeys.products_pattern())
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, Awaitable, Callable, TypeVar

from redis.exceptions import RedisError

from storefront.cache.entry import CacheEntry, Freshness
from storefront.cache.errors import CacheBackendError
from storefront.cache.keys import CacheKeys
from storefront.cache.lock import CacheLock
from storefront.cache.redis import close_redis, get_redis
from storefront.config import settings
from storefront.observability.logging import Timer, log_cache_operation, log_error
from storefront.observability.metrics import (
    record_backend_error,
    record_invalidated,
    record_lookup,
    record_refresh,
)

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = logging.getLogger(__name__)

T = TypeVar("T")
Fetcher = Callable[[], Awaitable[T]]

# Exceptions that mean "the cache is unavailable", never "the data is wrong"
BACKEND_ERRORS: tuple[type[BaseException], ...] = (RedisError, OSError, asyncio.TimeoutError)


def _validate_request(key: str, ttl: int, stale_time: int) -> None:
    if not key:
        raise ValueError("Cache key must be a non-empty string")
    if CacheKeys.is_lock_key(key):
        raise ValueError(f"Cache key must not use the '{CacheKeys.LOCK_PREFIX}' namespace: {key}")
    if ttl <= 0:
        raise ValueError(f"ttl must be positive, got {ttl}")
    if stale_time < 0:
        raise ValueError(f"stale_time must not be negative, got {stale_time}")


class CacheCoordinator:
    """Stale-while-revalidate cache with stampede prevention.

    Args:
        client: Redis client shared by the process
        lock_ttl: Lock expiration ceiling in seconds
        lock_backoff: Seconds a contended reader waits before re-reading
        batch_size: SCAN count hint and maximum keys per DEL
        default_stale_time: stale_time used when a call does not pass one
        clock: Wall clock in seconds since the epoch
    """

    def __init__(
        self,
        client: Redis,
        *,
        lock_ttl: int | None = None,
        lock_backoff: float | None = None,
        batch_size: int | None = None,
        default_stale_time: int | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.client = client
        self.lock_ttl = lock_ttl or settings.cache_lock_ttl
        self.lock_backoff = (
            lock_backoff if lock_backoff is not None else settings.cache_lock_backoff_ms / 1000
        )
        self.batch_size = batch_size or settings.cache_invalidate_batch_size
        self.default_stale_time = (
            default_stale_time
            if default_stale_time is not None
            else settings.cache_default_stale_time
        )
        self.clock = clock
        self._refresh_tasks: set[asyncio.Task[None]] = set()

    @property
    def pending_refreshes(self) -> int:
        """Number of background refreshes still running."""
        return len(self._refresh_tasks)

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    # -------------------------------------------------------------------------
    # Read-through
    # -------------------------------------------------------------------------

    async def get_cached_data(
        self,
        key: str,
        ttl: int,
        fetcher: Fetcher[T],
        stale_time: int | None = None,
    ) -> T:
        """Return the value for key, fetching it only when needed.

        Args:
            key: Cache key, outside the lock: namespace
            ttl: Seconds an entry is fully fresh
            fetcher: Zero-argument coroutine function reading the database
            stale_time: Extra seconds a stale entry may be served while it
                is refreshed in the background

        Returns:
            The cached or freshly fetched value.

        Raises:
            ValueError: Invalid key, ttl or stale_time
            Exception: Whatever the fetcher raises, unchanged
        """
        stale_time = self.default_stale_time if stale_time is None else stale_time
        _validate_request(key, ttl, stale_time)

        timer = Timer("cache.get", key=key)
        try:
            value, outcome = await self._get(key, ttl, fetcher, stale_time)
        except BaseException:
            timer.end(outcome="error")
            raise

        record_lookup(outcome)
        timer.end(outcome=outcome)
        return value

    async def _get(
        self, key: str, ttl: int, fetcher: Fetcher[T], stale_time: int
    ) -> tuple[T, str]:
        try:
            entry = await self._read(key)
        except CacheBackendError as e:
            self._report(e)
            return await fetcher(), "fallback"

        if entry is not None:
            state = entry.freshness(self._now_ms(), ttl, stale_time)

            if state is Freshness.FRESH:
                log_cache_operation("hit", key)
                return entry.value, "fresh"

            if state is Freshness.STALE:
                log_cache_operation("stale", key)
                self._schedule_refresh(key, ttl, stale_time, fetcher)
                return entry.value, "stale"

        log_cache_operation("miss", key)
        return await self._fill(key, ttl, stale_time, fetcher)

    async def _fill(
        self, key: str, ttl: int, stale_time: int, fetcher: Fetcher[T]
    ) -> tuple[T, str]:
        """Refill a missing or expired key under lock:{key}."""
        lock = CacheLock(self.client, key, ttl=self.lock_ttl)

        try:
            acquired = await self._call("lock", key, lock.acquire())
        except CacheBackendError as e:
            self._report(e)
            return await fetcher(), "fallback"

        if acquired:
            log_cache_operation("lock", key, ttl=self.lock_ttl)
            try:
                value = await fetcher()
                try:
                    await self._write(key, value, ttl, stale_time)
                except CacheBackendError as e:
                    self._report(e)
                return value, "miss"
            finally:
                await self._release(lock)

        # Another holder is fetching; give it one backoff interval
        await asyncio.sleep(self.lock_backoff)
        try:
            entry = await self._read(key)
        except CacheBackendError as e:
            self._report(e)
            entry = None

        if entry is not None:
            return entry.value, "contended_hit"

        # Still empty: fetch without caching rather than wait longer
        return await fetcher(), "contended_fetch"

    # -------------------------------------------------------------------------
    # Background refresh
    # -------------------------------------------------------------------------

    def _schedule_refresh(
        self, key: str, ttl: int, stale_time: int, fetcher: Fetcher[Any]
    ) -> None:
        task = asyncio.create_task(
            self._refresh(key, ttl, stale_time, fetcher),
            name=f"cache-refresh:{key}",
        )
        # The event loop only keeps weak references to tasks
        self._refresh_tasks.add(task)
        task.add_done_callback(self._refresh_tasks.discard)

    async def _refresh(self, key: str, ttl: int, stale_time: int, fetcher: Fetcher[Any]) -> None:
        """Fetch and overwrite a stale entry. Never raises."""
        try:
            value = await fetcher()
            await self._write(key, value, ttl, stale_time)
        except CacheBackendError as e:
            self._report(e, context="background_revalidation")
            record_refresh(False)
        except Exception as e:
            log_error(e, "background_revalidation", key=key)
            record_refresh(False)
        else:
            record_refresh(True)

    async def drain(self) -> None:
        """Wait until all pending background refreshes have finished."""
        while self._refresh_tasks:
            await asyncio.gather(*list(self._refresh_tasks), return_exceptions=True)

    # -------------------------------------------------------------------------
    # Invalidation
    # -------------------------------------------------------------------------

    async def invalidate_cache(self, pattern: str) -> int:
        """Delete every key matching a glob pattern.

        Keys are collected with a cursor SCAN, then deleted in batches of at
        most batch_size. Failures are logged, never raised: a missed
        invalidation only leaves a stale read behind.

        Args:
            pattern: Redis glob pattern, e.g. "storefront:products:*"

        Returns:
            Number of keys deleted.
        """
        if not pattern:
            raise ValueError("Invalidation pattern must be a non-empty string")

        timer = Timer("cache.invalidate", pattern=pattern)
        deleted = 0
        failed = False

        try:
            keys = await self._scan(pattern)
            for start in range(0, len(keys), self.batch_size):
                batch = keys[start : start + self.batch_size]
                deleted += int(await self._call("delete", pattern, self.client.delete(*batch)))
            if keys:
                log_cache_operation("invalidate", pattern)
        except CacheBackendError as e:
            self._report(e, context="cache_invalidation")
            failed = True

        record_invalidated(deleted)
        timer.end(keys_deleted=deleted, error=failed)
        return deleted

    async def _scan(self, pattern: str) -> list[bytes]:
        # SCAN may return a key more than once
        found: dict[bytes, None] = {}
        cursor = 0
        while True:
            cursor, keys = await self._call(
                "scan",
                pattern,
                self.client.scan(cursor=cursor, match=pattern, count=self.batch_size),
            )
            found.update(dict.fromkeys(keys))
            if cursor == 0:
                break
        return list(found)

    # -------------------------------------------------------------------------
    # Backend access
    # -------------------------------------------------------------------------

    async def _call(self, operation: str, key: str, awaitable: Awaitable[Any]) -> Any:
        """Await a Redis call, translating transport errors."""
        try:
            return await awaitable
        except BACKEND_ERRORS as e:
            raise CacheBackendError(operation, key, f"{operation} failed for '{key}': {e}") from e

    async def _read(self, key: str) -> CacheEntry | None:
        data = await self._call("read", key, self.client.get(key))
        if data is None:
            return None
        return CacheEntry.from_bytes(key, data)

    async def _write(self, key: str, value: Any, ttl: int, stale_time: int) -> None:
        # Timestamp is the fetch time, taken after the fetcher returned
        entry = CacheEntry(value=value, timestamp=self._now_ms())
        expire = ttl + stale_time
        await self._call("write", key, self.client.setex(key, expire, entry.to_bytes(key)))
        log_cache_operation("set", key, ttl=expire)

    async def _release(self, lock: CacheLock) -> None:
        try:
            await self._call("unlock", lock.lock_key, lock.release())
        except CacheBackendError as e:
            # The lock expires on its own after lock_ttl
            self._report(e)

    def _report(self, error: CacheBackendError, context: str = "cache_operation") -> None:
        record_backend_error(error.operation)
        log_error(error, context, key=error.key, operation=error.operation)


# Process-wide coordinator bound to the shared Redis client
_coordinator: CacheCoordinator | None = None


async def get_coordinator() -> CacheCoordinator:
    """Get or create the process-wide coordinator."""
    global _coordinator
    if _coordinator is None:
        _coordinator = CacheCoordinator(await get_redis())
    return _coordinator


async def close_coordinator() -> None:
    """Drain background refreshes and close the Redis client."""
    global _coordinator
    if _coordinator is not None:
        await _coordinator.drain()
        _coordinator = None
    await close_redis()


@asynccontextmanager
async def cache_lifespan() -> AsyncIterator[CacheCoordinator]:
    """Tie the coordinator to application startup and shutdown.

    Usage:
        @asynccontextmanager
        async def lifespan(app):
            async with cache_lifespan():
                yield
    """
    coordinator = await get_coordinator()
    logger.info("Cache coordinator started")
    try:
        yield coordinator
    finally:
        await close_coordinator()
        logger.info("Cache coordinator stopped")


async def get_cached_data(
    key: str,
    ttl: int,
    fetcher: Fetcher[T],
    stale_time: int | None = None,
) -> T:
    """Read through the process-wide coordinator."""
    coordinator = await get_coordinator()
    return await coordinator.get_cached_data(key, ttl, fetcher, stale_time)


async def invalidate_cache(pattern: str) -> int:
    """Invalidate through the process-wide coordinator."""
    coordinator = await get_coordinator()
    return await coordinator.invalidate_cache(pattern)
