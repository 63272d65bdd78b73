"""Integration test fixtures using Docker.

Provides a containerized Redis so the lock script, SCAN and expiry run
against the real server.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator, Iterator

import pytest
import pytest_asyncio
from redis.asyncio import Redis

from storefront.cache.coordinator import CacheCoordinator
from tests.integration.docker_utils import RedisService, get_docker_client, run_redis


def pytest_collection_modifyitems(items):
    """Mark everything under tests/integration."""
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


@pytest.fixture(scope="session")
def docker_client():
    """Create a Docker client or skip if Docker is unavailable."""
    try:
        client = get_docker_client()
        client.ping()
    except Exception as exc:
        pytest.skip(f"Docker not available: {exc}")
    yield client
    client.close()


@pytest.fixture(scope="session")
def redis_container(docker_client) -> Iterator[RedisService]:
    """Start Redis container for the test session."""
    with run_redis(docker_client) as redis:
        yield redis


@pytest.fixture(scope="session")
def redis_url(redis_container: RedisService) -> str:
    """Get the Redis URL for the test container."""
    return redis_container.url()


@pytest_asyncio.fixture
async def redis_client(redis_url: str) -> AsyncIterator[Redis]:
    """Create a Redis client for tests."""
    import redis.asyncio as redis

    client = redis.from_url(redis_url)
    await _wait_for_redis(client)
    yield client
    await client.flushdb()  # Clean up after each test
    await client.aclose()


@pytest_asyncio.fixture
async def live_coordinator(redis_client: Redis) -> AsyncIterator[CacheCoordinator]:
    """Coordinator over the container's Redis."""
    coordinator = CacheCoordinator(redis_client, lock_ttl=10, lock_backoff=0.1)
    yield coordinator
    await coordinator.drain()


async def _wait_for_redis(client: Redis, timeout: float = 30.0) -> None:
    """Wait for Redis to accept connections."""
    deadline = time.monotonic() + timeout
    while True:
        try:
            await client.ping()
            return
        except Exception:
            if time.monotonic() >= deadline:
                raise
            await asyncio.sleep(0.5)
