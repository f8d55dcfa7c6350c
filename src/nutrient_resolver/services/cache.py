"""Cache abstractions for loaded datasets and lookups."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol, TypeVar

T = TypeVar("T")


class Cache(Protocol):
    """Cache interface for key-value data with optional expiry."""

    def get(self, key: str) -> object | None:
        """Return a cached value if present and not expired."""

    def set(self, key: str, value: object, ttl_seconds: int | None = None) -> None:
        """Store a value; ``None`` TTL keeps it until invalidated."""

    def get_or_load(
        self, key: str, loader: Callable[[], T], ttl_seconds: int | None = None
    ) -> T:
        """Return the cached value or load, store and return it."""

    def invalidate(self, key: str | None = None) -> None:
        """Drop one key, or every key when none is given."""


@dataclass
class _CacheEntry:
    value: object
    expires_at: datetime | None


@dataclass
class InMemoryCache(Cache):
    """Process-local cache."""

    _entries: dict[str, _CacheEntry]

    def __init__(self) -> None:
        self._entries = {}

    def get(self, key: str) -> object | None:
        """Return a cached value if it hasn't expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and datetime.now(tz=UTC) >= entry.expires_at:
            self._entries.pop(key, None)
            return None
        return entry.value

    def set(self, key: str, value: object, ttl_seconds: int | None = None) -> None:
        """Store a cached value with an optional TTL."""
        expires_at = (
            datetime.now(tz=UTC) + timedelta(seconds=ttl_seconds)
            if ttl_seconds is not None
            else None
        )
        self._entries[key] = _CacheEntry(value=value, expires_at=expires_at)

    def get_or_load(
        self, key: str, loader: Callable[[], T], ttl_seconds: int | None = None
    ) -> T:
        """Return the cached value, calling ``loader`` on a miss."""
        cached = self.get(key)
        if cached is not None:
            return cached  # type: ignore[return-value]
        value = loader()
        self.set(key, value, ttl_seconds=ttl_seconds)
        return value

    def invalidate(self, key: str | None = None) -> None:
        """Drop a single entry or clear the cache."""
        if key is None:
            self._entries.clear()
            return
        self._entries.pop(key, None)
