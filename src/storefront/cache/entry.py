"""Stored form of a read-through cache entry.

Each data key holds one JSON document:

    {"value": <payload>, "timestamp": <epoch milliseconds of the fetch>}

The timestamp records when the value was fetched, never when it was read,
so freshness is judged by the entry itself rather than by the Redis TTL.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

import orjson

from storefront.cache.errors import CachePayloadError


class Freshness(str, Enum):
    """Age bucket of an entry relative to ttl and stale time."""

    FRESH = "fresh"
    STALE = "stale"
    EXPIRED = "expired"


@dataclass
class CacheEntry:
    """Cached value plus the instant it was fetched."""

    value: Any
    timestamp: int

    def age_ms(self, now_ms: int) -> int:
        """Milliseconds since the value was fetched."""
        return now_ms - self.timestamp

    def freshness(self, now_ms: int, ttl: int, stale_time: int) -> Freshness:
        """Classify the entry.

        FRESH while age < ttl, STALE while age < ttl + stale_time,
        EXPIRED afterwards. Ages are compared in milliseconds.
        """
        age = self.age_ms(now_ms)
        if age < ttl * 1000:
            return Freshness.FRESH
        if age < (ttl + stale_time) * 1000:
            return Freshness.STALE
        return Freshness.EXPIRED

    def to_bytes(self, key: str) -> bytes:
        """Serialize to JSON bytes."""
        try:
            return orjson.dumps({"value": self.value, "timestamp": self.timestamp})
        except TypeError as e:
            raise CachePayloadError(key, f"Value is not JSON serializable: {e}", "encode") from e

    @classmethod
    def from_bytes(cls, key: str, data: bytes | str) -> "CacheEntry":
        """Deserialize from JSON bytes.

        Raises:
            CachePayloadError: Payload is not a {value, timestamp} document
        """
        try:
            parsed = orjson.loads(data)
        except orjson.JSONDecodeError as e:
            raise CachePayloadError(key, f"Stored payload is not valid JSON: {e}") from e

        if not isinstance(parsed, dict) or "value" not in parsed:
            raise CachePayloadError(key, "Stored payload has no 'value' field")

        timestamp = parsed.get("timestamp")
        # bool is an int subclass
        if not isinstance(timestamp, int) or isinstance(timestamp, bool):
            raise CachePayloadError(key, "Stored payload has no integer 'timestamp'")

        return cls(value=parsed["value"], timestamp=timestamp)
