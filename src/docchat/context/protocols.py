"""Caching protocol implemented by every cache backend."""

from __future__ import annotations

from typing import Any, Iterable, Protocol, runtime_checkable

from docchat.context.models import CacheStats


@runtime_checkable
class IContextCache(Protocol):
    """Protocol for async, TTL-bounded, tag-aware cache backends."""

    stats: CacheStats

    async def get(self, key: str) -> Any | None:
        """Retrieve a cached value by key. Returns None on miss or expiry."""
        ...

    async def put(
        self,
        key: str,
        value: Any,
        *,
        ttl_seconds: int = 0,
        tags: Iterable[str] = (),
    ) -> None:
        """Store a value under the given key.

        Args:
            key: Cache key.
            value: JSON-serializable value.
            ttl_seconds: Time-to-live in seconds. 0 = use backend default.
            tags: Invalidation tags attached to the entry.
        """
        ...

    async def invalidate(self, key: str) -> None:
        """Remove a specific key from the cache."""
        ...

    async def invalidate_tag(self, tag: str) -> int:
        """Remove every entry carrying *tag*. Returns the number removed."""
        ...

    async def clear(self) -> None:
        """Remove all entries from the cache."""
        ...
