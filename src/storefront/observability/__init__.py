"""Observability module for the storefront cache layer.

Provides metrics and structured logging:
- Prometheus metrics for cache lookups, errors and refreshes
- JSON structured logging with correlation IDs
- Cache operation, error and performance log helpers
"""

from storefront.observability.logging import (
    LogContext,
    Timer,
    configure_logging,
    correlation_id_var,
    get_logger,
    log_cache_operation,
    log_error,
    log_performance,
    request_id_var,
)
from storefront.observability.metrics import (
    get_metrics,
    metrics_registry,
)

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    "LogContext",
    "Timer",
    "log_cache_operation",
    "log_error",
    "log_performance",
    "request_id_var",
    "correlation_id_var",
    # Metrics
    "metrics_registry",
    "get_metrics",
]
