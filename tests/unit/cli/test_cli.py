"""Tests for the storefront-cache CLI."""

from __future__ import annotations

import time
from unittest.mock import AsyncMock, MagicMock, patch

import orjson
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from typer.testing import CliRunner

from storefront.cli import app
from tests.fakes import FakeRedis

runner = CliRunner()


@pytest.fixture(autouse=True)
def no_logging_setup():
    """Keep the CLI callback from replacing pytest's log handlers."""
    with patch("storefront.cli.configure_logging", MagicMock()) as mock:
        yield mock


@pytest.fixture
def fake_redis() -> FakeRedis:
    fake = FakeRedis()
    with patch("storefront.cli.cache_cmd.create_redis", return_value=fake):
        yield fake


class TestInvalidateCommand:
    def test_deletes_matching_keys(self, fake_redis: FakeRedis) -> None:
        fake_redis._data[b"storefront:products:all"] = b"{}"
        fake_redis._data[b"storefront:product:1"] = b"{}"

        result = runner.invoke(app, ["invalidate", "storefront:products:*"])

        assert result.exit_code == 0
        assert "Deleted 1 key(s)" in result.output
        assert fake_redis.raw("storefront:products:all") is None
        assert fake_redis.raw("storefront:product:1") == b"{}"
        assert fake_redis.closed


class TestInspectCommand:
    def test_fresh_entry(self, fake_redis: FakeRedis) -> None:
        payload = {"value": {"name": "A"}, "timestamp": int(time.time() * 1000)}
        fake_redis._data[b"storefront:product:1"] = orjson.dumps(payload)

        result = runner.invoke(app, ["inspect", "storefront:product:1", "--ttl", "60"])

        assert result.exit_code == 0
        assert "fresh" in result.output

    def test_stale_entry(self, fake_redis: FakeRedis) -> None:
        payload = {"value": 1, "timestamp": int((time.time() - 65) * 1000)}
        fake_redis._data[b"storefront:product:1"] = orjson.dumps(payload)

        result = runner.invoke(
            app, ["inspect", "storefront:product:1", "--ttl", "60", "--stale-time", "10"]
        )

        assert result.exit_code == 0
        assert "stale" in result.output

    def test_missing_entry(self, fake_redis: FakeRedis) -> None:
        result = runner.invoke(app, ["inspect", "storefront:product:404"])

        assert result.exit_code == 1
        assert "No entry" in result.output

    def test_malformed_entry(self, fake_redis: FakeRedis) -> None:
        fake_redis._data[b"storefront:product:1"] = b"garbage"

        result = runner.invoke(app, ["inspect", "storefront:product:1"])

        assert result.exit_code == 1
        assert "Malformed entry" in result.output


class TestPingCommand:
    def test_reachable(self, fake_redis: FakeRedis) -> None:
        result = runner.invoke(app, ["ping"])

        assert result.exit_code == 0
        assert "reachable" in result.output

    def test_unreachable(self) -> None:
        client = AsyncMock()
        client.ping.side_effect = RedisConnectionError("refused")

        with patch("storefront.cli.cache_cmd.create_redis", return_value=client):
            result = runner.invoke(app, ["ping"])

        assert result.exit_code == 1
        assert "unreachable" in result.output


class TestMetricsCommand:
    def test_prints_exposition(self) -> None:
        result = runner.invoke(app, ["metrics"])

        assert result.exit_code == 0
        assert "storefront_cache" in result.output


def test_logging_configured_from_options(no_logging_setup: MagicMock) -> None:
    runner.invoke(app, ["--log-level", "DEBUG", "--console-logs", "metrics"])
    no_logging_setup.assert_called_once_with(json_format=False, level="DEBUG")
