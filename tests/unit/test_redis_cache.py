"""Tests for the Redis cache backend against an in-memory client."""

from __future__ import annotations

import pytest

from docchat.context.cache.redis import RedisCache
from docchat.exceptions import CacheUnavailable
from tests.fakes.fake_redis import FakeRedisClient


def _cache(client: FakeRedisClient, *, ttl: int = 300) -> RedisCache:
    cache = RedisCache(prefix="rag_cache:search:", default_ttl_seconds=ttl)
    cache._client = client
    return cache


class TestRedisCache:
    async def test_put_get_round_trips_json(self) -> None:
        client = FakeRedisClient()
        cache = _cache(client)

        await cache.put("search:abc", [{"chunk_id": "c1"}])

        assert await cache.get("search:abc") == [{"chunk_id": "c1"}]
        assert client.ttls["rag_cache:search:search:abc"] == 300

    async def test_miss(self) -> None:
        cache = _cache(FakeRedisClient())
        assert await cache.get("nope") is None
        assert cache.stats.misses == 1

    async def test_tags_are_sets_of_full_keys(self) -> None:
        client = FakeRedisClient()
        cache = _cache(client)

        await cache.put("k1", 1, tags=("user:u1",))
        await cache.put("k2", 2, tags=("user:u1", "document:d1"))

        assert client.sets["rag_cache:search:tag:user:u1"] == {
            "rag_cache:search:k1",
            "rag_cache:search:k2",
        }
        assert await cache.invalidate_tag("user:u1") == 2
        assert await cache.get("k1") is None
        assert "rag_cache:search:tag:user:u1" not in client.sets

    async def test_clear_only_touches_own_prefix(self) -> None:
        client = FakeRedisClient()
        client.strings["rag_cache:embeddings:keep"] = "1"
        cache = _cache(client)
        await cache.put("k1", 1)

        await cache.clear()

        assert await cache.get("k1") is None
        assert "rag_cache:embeddings:keep" in client.strings

    async def test_backend_errors_become_cache_unavailable(self) -> None:
        cache = _cache(FakeRedisClient(error=ConnectionRefusedError("refused")))

        with pytest.raises(CacheUnavailable) as excinfo:
            await cache.get("k1")

        assert excinfo.value.operation == "get"
        assert cache.stats.errors == 1

    async def test_close_releases_client(self) -> None:
        client = FakeRedisClient()
        cache = _cache(client)

        await cache.close()
        await cache.close()

        assert client.closed is True
        assert cache._client is None
