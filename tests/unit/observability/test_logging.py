"""Tests for structured logging helpers."""

from __future__ import annotations

import json
import logging

import pytest

from storefront.observability.logging import (
    ConsoleFormatter,
    JsonFormatter,
    LogContext,
    Timer,
    log_cache_operation,
    log_error,
    log_performance,
    request_id_var,
)


def make_record(message: str = "hello", **extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="storefront.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:
    """Tests for JSON log lines."""

    def test_basic_fields(self) -> None:
        data = json.loads(JsonFormatter().format(make_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "storefront.test"
        assert data["message"] == "hello"
        assert "timestamp" in data

    def test_extra_fields_included(self) -> None:
        data = json.loads(
            JsonFormatter().format(make_record(type="cache_operation", key="p:1"))
        )

        assert data["type"] == "cache_operation"
        assert data["key"] == "p:1"

    def test_unserializable_extra_is_stringified(self) -> None:
        data = json.loads(JsonFormatter().format(make_record(client=object())))
        assert data["client"].startswith("<object object")

    def test_request_id_from_context(self) -> None:
        with LogContext(request_id="req-123", correlation_id="corr-9"):
            data = json.loads(JsonFormatter().format(make_record()))

        assert data["request_id"] == "req-123"
        assert data["correlation_id"] == "corr-9"
        assert request_id_var.get() == ""

    def test_exception_included(self) -> None:
        try:
            raise RuntimeError("boom")
        except RuntimeError as e:
            record = make_record()
            record.exc_info = (type(e), e, e.__traceback__)

        data = json.loads(JsonFormatter().format(record))

        assert data["exception"]["type"] == "RuntimeError"
        assert data["exception"]["message"] == "boom"


class TestConsoleFormatter:
    def test_line_format(self) -> None:
        line = ConsoleFormatter(use_colors=False).format(make_record("cache ready"))
        assert "| INFO" in line
        assert "storefront.test | cache ready" in line


class TestLogHelpers:
    """Tests for cache-specific log helpers."""

    def test_log_cache_operation(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.DEBUG, logger="storefront.cache.ops")

        log_cache_operation("set", "p:1", ttl=70)

        record = caplog.records[-1]
        assert record.getMessage() == "Cache set: p:1"
        assert record.operation == "set"  # type: ignore[attr-defined]
        assert record.ttl == 70  # type: ignore[attr-defined]

    def test_log_error_keeps_traceback(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.ERROR)

        log_error(ValueError("bad payload"), "cache_operation", key="p:1")

        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert record.getMessage() == "Error occurred: cache_operation"
        assert record.error_name == "ValueError"  # type: ignore[attr-defined]
        assert record.key == "p:1"  # type: ignore[attr-defined]
        assert record.exc_info is not None

    def test_slow_operation_is_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.DEBUG, logger="storefront.perf")

        log_performance("cache.get", 0.002)
        log_performance("cache.get", 1.5)

        assert [r.levelno for r in caplog.records[-2:]] == [logging.DEBUG, logging.WARNING]

    def test_timer_returns_duration(self) -> None:
        timer = Timer("cache.get", key="p:1")
        duration = timer.end(outcome="fresh")
        assert duration >= 0
