"""Prometheus metrics for the storefront cache layer.

Provides metrics collection and exposure:
- Lookup outcomes (fresh, stale, miss, lock contention, fallback)
- Cache backend errors by operation
- Background refresh results
- Invalidated key counts and operation latency

Usage:
    from storefront.observability.metrics import get_metrics

    metrics = get_metrics()
    metrics.cache_lookups_total.labels(outcome="fresh").inc()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from prometheus_client import REGISTRY, Counter, Histogram
from prometheus_client import generate_latest as prometheus_generate_latest

from storefront.config import settings

logger = logging.getLogger(__name__)


@dataclass
class MetricsRegistry:
    """Registry for Prometheus metrics."""

    cache_lookups_total: Any = None
    cache_backend_errors_total: Any = None
    cache_refresh_total: Any = None
    cache_invalidated_keys_total: Any = None
    cache_operation_duration_seconds: Any = None

    # Internal state
    _initialized: bool = field(default=False, repr=False)
    _registry: Any = field(default=None, repr=False)

    def initialize(self) -> None:
        """Initialize Prometheus metrics."""
        if self._initialized:
            return

        if not settings.enable_metrics:
            logger.info("Metrics are disabled")
            self._initialized = True
            return

        self._registry = REGISTRY

        self.cache_lookups_total = Counter(
            "storefront_cache_lookups_total",
            "Read-through cache lookups by outcome",
            ["outcome"],
        )

        self.cache_backend_errors_total = Counter(
            "storefront_cache_backend_errors_total",
            "Cache backend failures absorbed by falling back to the fetcher",
            ["operation"],
        )

        self.cache_refresh_total = Counter(
            "storefront_cache_refresh_total",
            "Background stale-while-revalidate refreshes",
            ["result"],
        )

        self.cache_invalidated_keys_total = Counter(
            "storefront_cache_invalidated_keys_total",
            "Keys deleted by pattern invalidation",
        )

        self.cache_operation_duration_seconds = Histogram(
            "storefront_cache_operation_duration_seconds",
            "Cache operation latency in seconds",
            ["operation"],
            buckets=(0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
        )

        self._initialized = True
        logger.info("Prometheus metrics initialized")

    def generate_latest(self) -> bytes:
        """Generate Prometheus metrics in exposition format."""
        if not settings.enable_metrics or self._registry is None:
            return b"# Metrics disabled\n"
        return prometheus_generate_latest(self._registry)


# Global metrics registry
metrics_registry = MetricsRegistry()


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry.

    Initializes metrics on first access.
    """
    if not metrics_registry._initialized:
        metrics_registry.initialize()
    return metrics_registry


def record_lookup(outcome: str) -> None:
    """Record how a get_cached_data call was served."""
    metrics = get_metrics()
    if metrics.cache_lookups_total:
        metrics.cache_lookups_total.labels(outcome=outcome).inc()


def record_backend_error(operation: str) -> None:
    """Record a cache backend failure.

    Args:
        operation: Failing operation (read, write, lock, unlock, scan, delete)
    """
    metrics = get_metrics()
    if metrics.cache_backend_errors_total:
        metrics.cache_backend_errors_total.labels(operation=operation).inc()


def record_refresh(success: bool) -> None:
    """Record the result of a background refresh."""
    metrics = get_metrics()
    if metrics.cache_refresh_total:
        metrics.cache_refresh_total.labels(result="success" if success else "failure").inc()


def record_invalidated(count: int) -> None:
    """Record keys removed by pattern invalidation."""
    metrics = get_metrics()
    if metrics.cache_invalidated_keys_total and count:
        metrics.cache_invalidated_keys_total.inc(count)


def record_cache_operation(operation: str, duration: float) -> None:
    """Record cache operation duration.

    Args:
        operation: Cache operation (cache.get, cache.invalidate)
        duration: Operation duration in seconds
    """
    metrics = get_metrics()
    if metrics.cache_operation_duration_seconds:
        metrics.cache_operation_duration_seconds.labels(operation=operation).observe(duration)
