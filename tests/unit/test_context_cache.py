"""Tests for the in-memory context cache: LRU, TTL and tags."""

from __future__ import annotations

import time

from docchat.context.cache.memory import MemoryCache
from docchat.context.models import CacheEntry, CacheStats
from docchat.context.protocols import IContextCache
from tests.fakes.fake_clock import ManualClock


class TestCacheEntry:
    """CacheEntry should track TTL expiry correctly."""

    def test_not_expired_when_no_ttl(self) -> None:
        entry = CacheEntry(key="k", value="v", ttl_seconds=0)
        assert entry.is_expired is False

    def test_not_expired_within_ttl(self) -> None:
        entry = CacheEntry(key="k", value="v", ttl_seconds=3600)
        assert entry.is_expired is False

    def test_expired_after_ttl(self) -> None:
        entry = CacheEntry(
            key="k",
            value="v",
            created_at=time.time() - 10,
            ttl_seconds=5,
        )
        assert entry.is_expired is True

    def test_expired_exactly_at_deadline(self) -> None:
        entry = CacheEntry(key="k", value="v", created_at=100.0, ttl_seconds=60)
        assert entry.is_expired_at(159.999) is False
        assert entry.is_expired_at(160.0) is True


class TestCacheStats:
    def test_hit_rate(self) -> None:
        stats = CacheStats(hits=3, misses=1)
        assert stats.hit_rate == 0.75
        assert stats.as_dict()["hit_rate"] == 0.75

    def test_hit_rate_without_traffic(self) -> None:
        assert CacheStats().hit_rate == 0.0


class TestMemoryCache:
    """MemoryCache should implement LRU eviction and TTL expiry."""

    def test_satisfies_protocol(self) -> None:
        assert isinstance(MemoryCache(), IContextCache)

    async def test_put_and_get(self) -> None:
        cache = MemoryCache()
        await cache.put("key1", {"answer": "42"})
        result = await cache.get("key1")
        assert result == {"answer": "42"}

    async def test_get_miss_returns_none(self) -> None:
        cache = MemoryCache()
        assert await cache.get("nonexistent") is None

    async def test_invalidate(self) -> None:
        cache = MemoryCache()
        await cache.put("key1", "value1")
        await cache.invalidate("key1")
        assert await cache.get("key1") is None

    async def test_clear(self) -> None:
        cache = MemoryCache()
        await cache.put("a", 1)
        await cache.put("b", 2)
        await cache.clear()
        assert await cache.get("a") is None
        assert await cache.get("b") is None

    async def test_lru_eviction(self) -> None:
        cache = MemoryCache(max_entries=2)
        await cache.put("a", 1)
        await cache.put("b", 2)
        await cache.put("c", 3)  # Should evict "a"
        assert await cache.get("a") is None
        assert await cache.get("b") == 2
        assert await cache.get("c") == 3

    async def test_lru_access_refreshes_position(self) -> None:
        cache = MemoryCache(max_entries=2)
        await cache.put("a", 1)
        await cache.put("b", 2)
        await cache.get("a")  # Refresh "a"
        await cache.put("c", 3)  # Should evict "b" (least recently used)
        assert await cache.get("a") == 1
        assert await cache.get("b") is None
        assert await cache.get("c") == 3

    async def test_expired_entries_are_evicted_before_live_ones(self, clock: ManualClock) -> None:
        cache = MemoryCache(max_entries=2, clock=clock)
        await cache.put("live", 1, ttl_seconds=600)
        await cache.put("stale", 2, ttl_seconds=10)
        clock.advance(11)
        await cache.put("new", 3, ttl_seconds=600)
        assert await cache.get("live") == 1
        assert await cache.get("new") == 3


class TestMemoryCacheTTL:
    async def test_sixty_second_entry_read_at_59_and_61(self, clock: ManualClock) -> None:
        cache = MemoryCache(clock=clock)
        await cache.put("k", "v", ttl_seconds=60)

        clock.advance(59)
        assert await cache.get("k") == "v"

        clock.advance(2)
        assert await cache.get("k") is None

    async def test_expired_read_removes_entry(self, clock: ManualClock) -> None:
        cache = MemoryCache(clock=clock)
        await cache.put("k", "v", ttl_seconds=5)
        clock.advance(5)
        assert await cache.get("k") is None
        assert len(cache) == 0

    async def test_default_ttl_applies_when_unset(self, clock: ManualClock) -> None:
        cache = MemoryCache(default_ttl_seconds=30, clock=clock)
        await cache.put("k", "v")
        clock.advance(31)
        assert await cache.get("k") is None

    async def test_overwrite_restarts_ttl(self, clock: ManualClock) -> None:
        cache = MemoryCache(clock=clock)
        await cache.put("k", "v1", ttl_seconds=10)
        clock.advance(8)
        await cache.put("k", "v2", ttl_seconds=10)
        clock.advance(8)
        assert await cache.get("k") == "v2"


class TestMemoryCacheTags:
    async def test_invalidate_tag_removes_every_tagged_entry(self) -> None:
        cache = MemoryCache()
        await cache.put("a", 1, tags=("user:u1", "search"))
        await cache.put("b", 2, tags=("user:u1",))
        await cache.put("c", 3, tags=("user:u2",))

        removed = await cache.invalidate_tag("user:u1")

        assert removed == 2
        assert await cache.get("a") is None
        assert await cache.get("b") is None
        assert await cache.get("c") == 3

    async def test_unknown_tag_removes_nothing(self) -> None:
        cache = MemoryCache()
        await cache.put("a", 1, tags=("x",))
        assert await cache.invalidate_tag("y") == 0
        assert await cache.get("a") == 1

    async def test_overwrite_replaces_tags(self) -> None:
        cache = MemoryCache()
        await cache.put("a", 1, tags=("old",))
        await cache.put("a", 2, tags=("new",))
        assert await cache.invalidate_tag("old") == 0
        assert await cache.get("a") == 2
        assert await cache.invalidate_tag("new") == 1

    async def test_entry_with_other_tags_is_removed_once(self) -> None:
        cache = MemoryCache()
        await cache.put("a", 1, tags=("t1", "t2"))
        assert await cache.invalidate_tag("t1") == 1
        assert await cache.invalidate_tag("t2") == 0


class TestMemoryCacheStats:
    async def test_counts_hits_misses_sets_deletes(self) -> None:
        cache = MemoryCache()
        await cache.put("a", 1)
        await cache.get("a")
        await cache.get("missing")
        await cache.invalidate("a")

        assert cache.stats.sets == 1
        assert cache.stats.hits == 1
        assert cache.stats.misses == 1
        assert cache.stats.deletes == 1
