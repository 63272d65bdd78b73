"""Global pytest configuration and fixtures."""

from __future__ import annotations

import pytest

from storefront.cache.coordinator import CacheCoordinator
from tests.fakes import FakeClock, FakeRedis


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: test needs a real Redis started through Docker"
    )


@pytest.fixture
def clock() -> FakeClock:
    """Manually advanced clock shared by the fake Redis and the coordinator."""
    return FakeClock()


@pytest.fixture
def fake_redis(clock: FakeClock) -> FakeRedis:
    """In-memory Redis double."""
    return FakeRedis(clock=clock)


@pytest.fixture
def coordinator(fake_redis: FakeRedis, clock: FakeClock) -> CacheCoordinator:
    """Coordinator over the fake Redis with a short lock backoff."""
    return CacheCoordinator(
        fake_redis,  # type: ignore[arg-type]
        lock_ttl=10,
        lock_backoff=0.05,
        batch_size=100,
        default_stale_time=5,
        clock=clock,
    )
