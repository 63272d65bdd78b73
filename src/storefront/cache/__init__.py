"""Cache layer for the storefront.

Provides a Redis read-through cache in front of the database:
- Stale-while-revalidate reads with background refresh
- Distributed lock preventing cache stampedes on misses
- Cursor-based, batched pattern invalidation after writes
- Graceful fallback to the database when Redis is unavailable
"""

from storefront.cache.catalog import (
    cache_admin_user,
    cache_admin_users,
    cache_product_by_id,
    cache_products_list,
    invalidate_admin_user_caches,
    invalidate_after_order,
    invalidate_product_caches,
)
from storefront.cache.coordinator import (
    CacheCoordinator,
    cache_lifespan,
    close_coordinator,
    get_cached_data,
    get_coordinator,
    invalidate_cache,
)
from storefront.cache.entry import CacheEntry, Freshness
from storefront.cache.errors import CacheBackendError, CacheError, CachePayloadError
from storefront.cache.keys import CacheKeys
from storefront.cache.lock import CacheLock
from storefront.cache.redis import close_redis, get_redis

__all__ = [
    # Core cache
    "CacheCoordinator",
    "CacheEntry",
    "CacheKeys",
    "CacheLock",
    "Freshness",
    "get_cached_data",
    "invalidate_cache",
    "get_coordinator",
    "close_coordinator",
    "cache_lifespan",
    "get_redis",
    "close_redis",
    # Errors
    "CacheError",
    "CacheBackendError",
    "CachePayloadError",
    # Catalog helpers
    "cache_products_list",
    "cache_product_by_id",
    "cache_admin_users",
    "cache_admin_user",
    "invalidate_product_caches",
    "invalidate_admin_user_caches",
    "invalidate_after_order",
]
