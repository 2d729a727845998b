"""In-memory LRU cache with TTL, tag invalidation and async safety."""

from __future__ import annotations

import asyncio
import logging
import time
from collections import OrderedDict
from typing import Any, Callable, Iterable

from docchat.context.models import CacheEntry, CacheStats

log = logging.getLogger(__name__)


class MemoryCache:
    """OrderedDict-based LRU cache with TTL expiry and a tag index.

    Safe for concurrent coroutine access via ``asyncio.Lock``.  Expired
    entries are removed when read, and swept before LRU eviction.
    """

    def __init__(
        self,
        max_entries: int = 1000,
        default_ttl_seconds: int = 0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._max_entries = max_entries
        self._default_ttl = default_ttl_seconds
        self._clock = clock
        self._store: OrderedDict[str, CacheEntry] = OrderedDict()
        self._tags: dict[str, set[str]] = {}
        self._lock = asyncio.Lock()
        self.stats = CacheStats()

    def __len__(self) -> int:
        return len(self._store)

    async def get(self, key: str) -> Any | None:
        """Retrieve a value by key. Returns None on miss or TTL expiry."""
        async with self._lock:
            entry = self._store.get(key)
            if entry is None:
                self.stats.misses += 1
                return None
            if entry.is_expired_at(self._clock()):
                self._remove(key)
                self.stats.misses += 1
                return None
            entry.hit_count += 1
            self._store.move_to_end(key)
            self.stats.hits += 1
            return entry.value

    async def put(
        self,
        key: str,
        value: Any,
        *,
        ttl_seconds: int = 0,
        tags: Iterable[str] = (),
    ) -> None:
        """Store a value with TTL and tags. Evicts LRU entries if at capacity."""
        async with self._lock:
            if key in self._store:
                self._remove(key)

            entry = CacheEntry(
                key=key,
                value=value,
                created_at=self._clock(),
                ttl_seconds=ttl_seconds or self._default_ttl,
                tags=frozenset(tags),
            )
            self._store[key] = entry
            for tag in entry.tags:
                self._tags.setdefault(tag, set()).add(key)
            self.stats.sets += 1

            if len(self._store) > self._max_entries:
                self._sweep_expired()
            while len(self._store) > self._max_entries:
                oldest = next(iter(self._store))
                self._remove(oldest)

    async def invalidate(self, key: str) -> None:
        """Remove a specific key from the cache."""
        async with self._lock:
            if self._remove(key):
                self.stats.deletes += 1

    async def invalidate_tag(self, tag: str) -> int:
        """Remove every entry carrying *tag*."""
        async with self._lock:
            keys = list(self._tags.get(tag, ()))
            for key in keys:
                self._remove(key)
            self._tags.pop(tag, None)
            self.stats.deletes += len(keys)
        if keys:
            log.info("Invalidated %d cache entries with tag %s", len(keys), tag)
        return len(keys)

    async def clear(self) -> None:
        """Remove all entries."""
        async with self._lock:
            self.stats.deletes += len(self._store)
            self._store.clear()
            self._tags.clear()

    # ── Internals (caller holds the lock) ────────────────────────────

    def _remove(self, key: str) -> bool:
        entry = self._store.pop(key, None)
        if entry is None:
            return False
        for tag in entry.tags:
            members = self._tags.get(tag)
            if members is not None:
                members.discard(key)
                if not members:
                    del self._tags[tag]
        return True

    def _sweep_expired(self) -> None:
        now = self._clock()
        for key in [k for k, e in self._store.items() if e.is_expired_at(now)]:
            self._remove(key)
