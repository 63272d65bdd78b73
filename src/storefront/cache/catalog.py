"""Cache helpers for the storefront's hot read paths.

Route handlers call these with a closure that queries the database; key
names, TTLs and the invalidation fan-out after writes live here so every
handler caches the same resource the same way.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TypeVar

from storefront.cache.coordinator import Fetcher, invalidate_cache
from storefront.cache.coordinator import get_cached_data as _get_cached_data
from storefront.cache.keys import CacheKeys
from storefront.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def cache_products_list(fetcher: Fetcher[T]) -> T:
    """Cache the public product listing."""
    return await _get_cached_data(
        CacheKeys.products_all(),
        settings.products_list_ttl,
        fetcher,
        settings.catalog_stale_time,
    )


async def cache_product_by_id(product_id: str, fetcher: Fetcher[T]) -> T:
    """Cache one product detail."""
    return await _get_cached_data(
        CacheKeys.product(product_id),
        settings.product_detail_ttl,
        fetcher,
        settings.catalog_stale_time,
    )


async def cache_admin_users(fetcher: Fetcher[T]) -> T:
    """Cache the admin user listing."""
    return await _get_cached_data(
        CacheKeys.admin_users_all(),
        settings.admin_list_ttl,
        fetcher,
        settings.catalog_stale_time,
    )


async def cache_admin_user(user_id: str, fetcher: Fetcher[T]) -> T:
    """Cache one user in the admin view."""
    return await _get_cached_data(
        CacheKeys.admin_user(user_id),
        settings.admin_list_ttl,
        fetcher,
        settings.catalog_stale_time,
    )


async def invalidate_product_caches(product_id: str | None = None) -> int:
    """Invalidate product listings and, if given, one product detail.

    Called after product create/update/delete. Returns keys deleted.
    """
    deleted = await invalidate_cache(CacheKeys.products_pattern())
    if product_id:
        deleted += await invalidate_cache(CacheKeys.product_pattern(product_id))

    logger.debug(f"Invalidated product caches (product={product_id or '*'}): {deleted} keys")
    return deleted


async def invalidate_admin_user_caches(user_id: str | None = None) -> int:
    """Invalidate admin user listings and, if given, one user view."""
    deleted = await invalidate_cache(CacheKeys.admin_users_pattern())
    if user_id:
        deleted += await invalidate_cache(CacheKeys.admin_user(user_id))
    return deleted


async def invalidate_after_order(product_ids: Iterable[str]) -> int:
    """Invalidate what a placed order changes.

    Stock moves for every ordered product, so product listings, each
    product detail and the admin order listings are dropped.
    """
    deleted = await invalidate_cache(CacheKeys.products_pattern())
    for product_id in dict.fromkeys(product_ids):
        deleted += await invalidate_cache(CacheKeys.product_pattern(product_id))
    deleted += await invalidate_cache(CacheKeys.admin_orders_pattern())
    return deleted
