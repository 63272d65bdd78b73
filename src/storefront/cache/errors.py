"""Exceptions raised inside the cache layer.

Only the coordinator sees these: every CacheBackendError is caught, logged
and turned into a direct fetch. Errors from fetchers are never wrapped.
"""

from __future__ import annotations


class CacheError(Exception):
    """Base class for cache layer errors."""


class CacheBackendError(CacheError):
    """A Redis call failed (connection, timeout, protocol, payload)."""

    def __init__(self, operation: str, key: str, message: str | None = None):
        self.operation = operation
        self.key = key
        super().__init__(message or f"Cache backend {operation} failed for '{key}'")


class CachePayloadError(CacheBackendError):
    """A stored payload could not be decoded or a value could not be encoded."""

    def __init__(self, key: str, message: str, operation: str = "decode"):
        super().__init__(operation, key, message)
