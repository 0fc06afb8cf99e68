# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Time-boxed in-memory cache for fetched feed data."""

from datetime import UTC, datetime, timedelta
from typing import Generic, TypeVar

T = TypeVar("T")


class TTLCache(Generic[T]):
    """Simple in-memory cache whose entries expire after a fixed TTL."""

    def __init__(self, ttl_seconds: int) -> None:
        """Initialize cache with TTL.

        Args:
            ttl_seconds: Time-to-live for cache entries.
        """
        self._cache: dict[str, tuple[T, datetime]] = {}
        self._ttl = timedelta(seconds=ttl_seconds)

    def get(self, key: str) -> T | None:
        """Get cached value if not expired.

        Args:
            key: Cache key (typically a feed URL).

        Returns:
            Cached value or None if expired/missing.
        """
        if key not in self._cache:
            return None

        value, timestamp = self._cache[key]
        if datetime.now(UTC) - timestamp >= self._ttl:
            del self._cache[key]
            return None

        return value

    def set(self, key: str, value: T) -> None:
        """Store value in cache.

        Args:
            key: Cache key.
            value: Value to cache.
        """
        self._cache[key] = (value, datetime.now(UTC))

    def invalidate(self, key: str) -> None:
        """Remove entry from cache.

        Args:
            key: Cache key to invalidate.
        """
        self._cache.pop(key, None)

    def clear(self) -> None:
        """Clear all cache entries."""
        self._cache.clear()

    def __len__(self) -> int:
        """Number of stored entries, expired or not."""
        return len(self._cache)
