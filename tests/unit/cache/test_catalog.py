"""Tests for the storefront catalog cache helpers."""

from __future__ import annotations

from unittest.mock import AsyncMock, call, patch

import pytest

from storefront.cache import catalog
from storefront.cache.keys import CacheKeys


@pytest.fixture
def mock_get_cached_data():
    with patch.object(catalog, "_get_cached_data", new_callable=AsyncMock) as mock:
        mock.return_value = ["cached"]
        yield mock


@pytest.fixture
def mock_invalidate():
    with patch.object(catalog, "invalidate_cache", new_callable=AsyncMock) as mock:
        mock.return_value = 1
        yield mock


class TestCatalogReads:
    """Helpers pass the right key, TTL and stale time."""

    @pytest.mark.asyncio
    async def test_products_list(self, mock_get_cached_data: AsyncMock) -> None:
        fetcher = AsyncMock()

        assert await catalog.cache_products_list(fetcher) == ["cached"]

        mock_get_cached_data.assert_awaited_once_with(
            "storefront:products:all", 60, fetcher, 10
        )

    @pytest.mark.asyncio
    async def test_product_by_id(self, mock_get_cached_data: AsyncMock) -> None:
        fetcher = AsyncMock()

        await catalog.cache_product_by_id("42", fetcher)

        mock_get_cached_data.assert_awaited_once_with("storefront:product:42", 60, fetcher, 10)

    @pytest.mark.asyncio
    async def test_admin_users(self, mock_get_cached_data: AsyncMock) -> None:
        fetcher = AsyncMock()

        await catalog.cache_admin_users(fetcher)

        mock_get_cached_data.assert_awaited_once_with(
            "storefront:admin:users:all", 300, fetcher, 10
        )

    @pytest.mark.asyncio
    async def test_admin_user(self, mock_get_cached_data: AsyncMock) -> None:
        fetcher = AsyncMock()

        await catalog.cache_admin_user("u1", fetcher)

        mock_get_cached_data.assert_awaited_once_with(
            "storefront:admin:user:u1", 300, fetcher, 10
        )


class TestCatalogInvalidation:
    """Writes fan out to the right patterns."""

    @pytest.mark.asyncio
    async def test_product_caches_without_id(self, mock_invalidate: AsyncMock) -> None:
        assert await catalog.invalidate_product_caches() == 1
        mock_invalidate.assert_awaited_once_with(CacheKeys.products_pattern())

    @pytest.mark.asyncio
    async def test_product_caches_with_id(self, mock_invalidate: AsyncMock) -> None:
        assert await catalog.invalidate_product_caches("42") == 2
        assert mock_invalidate.await_args_list == [
            call("storefront:products:*"),
            call("storefront:product:42"),
        ]

    @pytest.mark.asyncio
    async def test_admin_user_caches(self, mock_invalidate: AsyncMock) -> None:
        await catalog.invalidate_admin_user_caches("u1")
        assert mock_invalidate.await_args_list == [
            call("storefront:admin:users:*"),
            call("storefront:admin:user:u1"),
        ]

    @pytest.mark.asyncio
    async def test_after_order(self, mock_invalidate: AsyncMock) -> None:
        """Each ordered product is invalidated once, plus listings."""
        deleted = await catalog.invalidate_after_order(["1", "2", "1"])

        assert deleted == 4
        assert mock_invalidate.await_args_list == [
            call("storefront:products:*"),
            call("storefront:product:1"),
            call("storefront:product:2"),
            call("storefront:admin:orders:*"),
        ]
