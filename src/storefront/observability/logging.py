"""Structured logging for the storefront cache layer.

Provides:
- JSON-formatted logs for log aggregation systems (ELK, Loki, etc.)
- Correlation ID propagation across requests
- Cache operation, error and performance log helpers
- A small Timer for measuring cache calls

Usage:
    from storefront.observability.logging import configure_logging

    # In application startup
    configure_logging(json_format=True, level="INFO")

    logger = logging.getLogger(__name__)
    logger.info("Processing request")  # Includes request_id, correlation_id
"""

from __future__ import annotations

import contextvars
import json
import logging
import sys
import time
from datetime import datetime, timezone
from typing import Any, Literal

from storefront.observability.metrics import record_cache_operation

# Context variables for request correlation
request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")
correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)

cache_logger = logging.getLogger("storefront.cache.ops")
perf_logger = logging.getLogger("storefront.perf")
error_logger = logging.getLogger("storefront.errors")

# Operations slower than this are logged at WARNING
SLOW_OPERATION_SECONDS = 1.0

CacheOperation = Literal["hit", "stale", "miss", "set", "invalidate", "lock"]

# Standard LogRecord attributes, never copied into the JSON payload
_STANDARD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
    }
)


class JsonFormatter(logging.Formatter):
    """JSON log formatter with correlation ID support.

    Output format:
    {
        "timestamp": "2026-01-10T12:34:56.789Z",
        "level": "DEBUG",
        "logger": "storefront.cache.ops",
        "message": "Cache hit: storefront:products:all",
        "module": "logging",
        "function": "log_cache_operation",
        "line": 42,
        "request_id": "abc-123",
        "type": "cache_operation",
        "operation": "hit",
        "key": "storefront:products:all"
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        request_id = request_id_var.get()
        if request_id:
            log_data["request_id"] = request_id

        correlation_id = correlation_id_var.get()
        if correlation_id:
            log_data["correlation_id"] = correlation_id

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS and not key.startswith("_"):
                try:
                    json.dumps(value)
                    log_data[key] = value
                except (TypeError, ValueError):
                    log_data[key] = str(value)

        return json.dumps(log_data, default=str, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter for development.

    Output format:
    2026-01-10 12:34:56 | DEBUG | storefront.cache.ops | Cache hit: p:1 | req=abc-123
    """

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        """Format log record for console output."""
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        level = record.levelname

        if self.use_colors:
            color = self.COLORS.get(level, "")
            level = f"{color}{level}{self.RESET}"

        message = record.getMessage()

        context_parts = []
        request_id = request_id_var.get()
        if request_id:
            context_parts.append(f"req={request_id[:8]}")
        correlation_id = correlation_id_var.get()
        if correlation_id:
            context_parts.append(f"corr={correlation_id[:8]}")

        context = f" | {' '.join(context_parts)}" if context_parts else ""

        result = f"{timestamp} | {level:8} | {record.name} | {message}{context}"

        if record.exc_info:
            result += "\n" + self.formatException(record.exc_info)

        return result


def configure_logging(
    json_format: bool = True,
    level: str = "INFO",
    use_colors: bool = True,
) -> None:
    """Configure application-wide logging.

    Args:
        json_format: Use JSON format (recommended for production)
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        use_colors: Use ANSI colors in console format
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)

    if json_format:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(ConsoleFormatter(use_colors=use_colors))

    root_logger.addHandler(handler)

    # Reduce noise from third-party libraries
    logging.getLogger("redis").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


class LogContext:
    """Context manager for adding temporary log context.

    Usage:
        with LogContext(request_id="req-1"):
            logger.info("Serving product list")  # Includes request_id
    """

    def __init__(self, **kwargs: Any) -> None:
        self.extra = kwargs
        self._tokens: dict[str, contextvars.Token[str]] = {}

    def __enter__(self) -> "LogContext":
        if "request_id" in self.extra:
            self._tokens["request_id"] = request_id_var.set(self.extra["request_id"])
        if "correlation_id" in self.extra:
            self._tokens["correlation_id"] = correlation_id_var.set(self.extra["correlation_id"])
        return self

    def __exit__(self, *args: Any) -> None:
        for key, token in self._tokens.items():
            if key == "request_id":
                request_id_var.reset(token)
            elif key == "correlation_id":
                correlation_id_var.reset(token)


def log_cache_operation(
    operation: CacheOperation,
    key: str,
    ttl: int | None = None,
    success: bool = True,
) -> None:
    """Log a cache operation at DEBUG level."""
    extra: dict[str, Any] = {
        "type": "cache_operation",
        "operation": operation,
        "key": key,
        "success": success,
    }
    if ttl is not None:
        extra["ttl"] = ttl
    cache_logger.debug(f"Cache {operation}: {key}", extra=extra)


def log_error(error: BaseException, context: str, **info: Any) -> None:
    """Report a recovered error with its traceback.

    This is the error-observation channel for failures the cache layer
    absorbs instead of raising.
    """
    error_logger.error(
        f"Error occurred: {context}",
        exc_info=(type(error), error, error.__traceback__),
        extra={
            "type": "error",
            "context": context,
            "error_name": type(error).__name__,
            "error_message": str(error),
            **info,
        },
    )


def log_performance(operation: str, duration: float, **metadata: Any) -> None:
    """Log operation timing; slow operations are logged as warnings."""
    extra = {
        "type": "performance",
        "operation": operation,
        "duration_ms": round(duration * 1000, 3),
        "metadata": metadata,
    }
    if duration > SLOW_OPERATION_SECONDS:
        perf_logger.warning(f"Slow operation detected: {operation}", extra=extra)
    else:
        perf_logger.debug(f"Performance: {operation}", extra=extra)


class Timer:
    """Wall-clock timer for a single cache call.

    Usage:
        timer = Timer("cache.get", key="p:1")
        ...
        timer.end(outcome="fresh")
    """

    def __init__(self, operation: str, **labels: Any) -> None:
        self.operation = operation
        self.labels = labels
        self._start = time.perf_counter()

    def end(self, **metadata: Any) -> float:
        """Stop the timer, log and record the duration in seconds."""
        duration = time.perf_counter() - self._start
        log_performance(self.operation, duration, **self.labels, **metadata)
        record_cache_operation(self.operation, duration)
        return duration


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name."""
    return logging.getLogger(name)
