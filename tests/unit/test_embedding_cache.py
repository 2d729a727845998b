"""Tests for the embedding cache and its single-flight miss path."""

from __future__ import annotations

import asyncio

import pytest

from docchat.context.cache.key_strategy import EMBEDDINGS_TAG
from docchat.context.cache.memory import MemoryCache
from docchat.context.embedding_cache import EmbeddingCache
from tests.fakes.fake_clock import ManualClock
from tests.fakes.fake_context_cache import FakeContextCache
from tests.fakes.fake_embedder import FakeEmbeddingClient


class TestEmbeddingCache:
    async def test_miss_computes_and_stores(self) -> None:
        backend = FakeContextCache()
        cache = EmbeddingCache(backend, ttl_seconds=3600)
        embedder = FakeEmbeddingClient()

        vector = await cache.get_or_compute("m", "hello", lambda: embedder.embed("hello"))

        assert len(vector) == 26
        assert embedder.calls == ["hello"]
        [(_, ttl, tags)] = backend.puts
        assert ttl == 3600
        assert EMBEDDINGS_TAG in tags

    async def test_hit_skips_the_service(self) -> None:
        cache = EmbeddingCache(FakeContextCache())
        embedder = FakeEmbeddingClient()

        first = await cache.get_or_compute("m", "hello", lambda: embedder.embed("hello"))
        second = await cache.get_or_compute("m", "  HELLO ", lambda: embedder.embed("  HELLO "))

        assert first == second
        assert len(embedder.calls) == 1

    async def test_concurrent_misses_call_the_service_once(self) -> None:
        cache = EmbeddingCache(FakeContextCache())
        embedder = FakeEmbeddingClient(delay=0.02)

        results = await asyncio.gather(
            *(cache.get_or_compute("m", "same text", lambda: embedder.embed("same text")) for _ in range(10))
        )

        assert len(embedder.calls) == 1
        assert all(r == results[0] for r in results)

    async def test_failure_propagates_to_all_waiters_and_is_not_cached(self) -> None:
        backend = FakeContextCache()
        cache = EmbeddingCache(backend)
        embedder = FakeEmbeddingClient(delay=0.01, error=RuntimeError("service down"))

        results = await asyncio.gather(
            *(cache.get_or_compute("m", "q", lambda: embedder.embed("q")) for _ in range(5)),
            return_exceptions=True,
        )

        assert all(isinstance(r, RuntimeError) for r in results)
        assert len(embedder.calls) == 1
        assert backend.keys() == []

        embedder.error = None
        assert await cache.get_or_compute("m", "q", lambda: embedder.embed("q"))
        assert len(embedder.calls) == 2

    async def test_expired_vector_is_recomputed(self, clock: ManualClock) -> None:
        cache = EmbeddingCache(MemoryCache(clock=clock), ttl_seconds=60)
        embedder = FakeEmbeddingClient()

        await cache.get_or_compute("m", "q", lambda: embedder.embed("q"))
        clock.advance(61)
        await cache.get_or_compute("m", "q", lambda: embedder.embed("q"))

        assert len(embedder.calls) == 2

    async def test_invalidate_all(self) -> None:
        cache = EmbeddingCache(FakeContextCache())
        embedder = FakeEmbeddingClient()
        await cache.get_or_compute("m", "a", lambda: embedder.embed("a"))
        await cache.get_or_compute("m", "b", lambda: embedder.embed("b"))

        assert await cache.invalidate_all() == 2

    @pytest.mark.parametrize("model", ["m1", "m2"])
    async def test_models_do_not_share_vectors(self, model: str) -> None:
        backend = FakeContextCache()
        cache = EmbeddingCache(backend)
        embedder = FakeEmbeddingClient()
        await cache.get_or_compute("other", "q", lambda: embedder.embed("q"))
        await cache.get_or_compute(model, "q", lambda: embedder.embed("q"))
        assert len(embedder.calls) == 2
