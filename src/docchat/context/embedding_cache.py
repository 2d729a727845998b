"""Embedding cache: (model, normalized text) -> vector, computed at most once per key."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from docchat.context.cache.key_strategy import EMBEDDINGS_TAG, compute_embedding_key
from docchat.context.protocols import IContextCache
from docchat.core.concurrency import SingleFlight

log = logging.getLogger(__name__)

Vector = list[float]


class EmbeddingCache:
    """TTL cache in front of the embedding service.

    On a miss, ``compute`` runs exactly once per key no matter how many
    coroutines ask concurrently; they all receive the same vector.  A failed
    ``compute`` propagates to every waiter and nothing is cached.
    """

    def __init__(self, cache: IContextCache, *, ttl_seconds: int = 3600) -> None:
        self._cache = cache
        self._ttl = ttl_seconds
        self._flights = SingleFlight()

    async def get_or_compute(
        self,
        model: str,
        text: str,
        compute: Callable[[], Awaitable[Vector]],
    ) -> Vector:
        key = compute_embedding_key(model, text)
        cached = await self._cache.get(key)
        if cached is not None:
            return cached

        async def _load() -> Vector:
            # Re-check: a flight that finished just before this one may have filled the key.
            again = await self._cache.get(key)
            if again is not None:
                return again
            vector = list(await compute())
            await self._cache.put(key, vector, ttl_seconds=self._ttl, tags=(EMBEDDINGS_TAG,))
            log.debug("Cached embedding for model %s (%d dims)", model, len(vector))
            return vector

        return await self._flights.do(key, _load)

    async def invalidate_all(self) -> int:
        return await self._cache.invalidate_tag(EMBEDDINGS_TAG)
