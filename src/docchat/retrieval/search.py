"""Search pipeline: embedding cache -> vector index -> search cache -> hybrid ranker."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Optional, Sequence

from docchat.exceptions import UpstreamError, UpstreamTimeout, ValidationError
from docchat.models import CandidatePassage, SearchResponse

if TYPE_CHECKING:
    from docchat.context.embedding_cache import EmbeddingCache
    from docchat.context.search_cache import SearchResultCache
    from docchat.core.config import RetrievalConfig
    from docchat.retrieval.protocols import IEmbeddingClient, IVectorIndex
    from docchat.retrieval.ranker import HybridRanker

log = logging.getLogger(__name__)


class SearchPipeline:
    """Turns a question into ranked candidate passages.

    Input is validated before any I/O.  An embedding or vector-index timeout
    or provider error degrades the response to zero passages with
    ``degraded=True`` instead of failing the request; the degraded result is
    never cached.
    """

    def __init__(
        self,
        *,
        embedder: IEmbeddingClient,
        vector_index: IVectorIndex,
        embedding_cache: EmbeddingCache,
        search_cache: SearchResultCache,
        ranker: HybridRanker,
        config: RetrievalConfig,
        embedding_timeout: float = 10.0,
    ) -> None:
        self._embedder = embedder
        self._index = vector_index
        self._embedding_cache = embedding_cache
        self._search_cache = search_cache
        self._ranker = ranker
        self._config = config
        self._embedding_timeout = embedding_timeout

    def validate(self, query: str, top_k: int, threshold: float) -> None:
        if not query or not query.strip():
            raise ValidationError("Search query cannot be empty")
        if len(query) > self._config.max_query_length:
            raise ValidationError(
                f"Query too long: {len(query)} characters (max: {self._config.max_query_length})"
            )
        if not 1 <= top_k <= self._config.max_top_k:
            raise ValidationError(f"top_k must be between 1 and {self._config.max_top_k}")
        if not 0.0 <= threshold <= 1.0:
            raise ValidationError("threshold must be between 0 and 1")

    async def search(
        self,
        query: str,
        *,
        user_id: str,
        top_k: Optional[int] = None,
        threshold: Optional[float] = None,
        document_ids: Optional[Sequence[str]] = None,
    ) -> SearchResponse:
        k = top_k if top_k is not None else self._config.top_k
        t = threshold if threshold is not None else self._config.threshold
        self.validate(query, k, t)

        start = time.perf_counter()

        async def _compute() -> list[CandidatePassage]:
            embedding = await self._embed(query)
            try:
                hits = await asyncio.wait_for(
                    self._index.search(
                        embedding,
                        user_id=user_id,
                        top_k=k,
                        threshold=t,
                        document_ids=list(document_ids) if document_ids else None,
                    ),
                    self._config.vector_timeout,
                )
            except asyncio.TimeoutError:
                raise UpstreamTimeout("vector index", self._config.vector_timeout) from None
            except UpstreamError:
                raise
            except Exception as e:
                raise UpstreamError(f"vector index failed: {e}") from e
            return self._ranker.rank(hits, query)

        try:
            passages, cached = await self._search_cache.get_or_compute(
                query,
                user_id=user_id,
                top_k=k,
                threshold=t,
                document_ids=document_ids,
                compute=_compute,
            )
        except UpstreamError as e:
            elapsed = _elapsed_ms(start)
            log.warning("Search degraded to no context after %dms: %s", elapsed, e)
            return SearchResponse(query=query, search_time_ms=elapsed, degraded=True)

        elapsed = _elapsed_ms(start)
        log.debug(
            "Search for user %s returned %d passages in %dms (cached=%s)",
            user_id,
            len(passages),
            elapsed,
            cached,
        )
        return SearchResponse(query=query, passages=passages, search_time_ms=elapsed, cached=cached)

    async def _embed(self, query: str) -> list[float]:
        async def _compute() -> list[float]:
            try:
                return await asyncio.wait_for(self._embedder.embed(query), self._embedding_timeout)
            except asyncio.TimeoutError:
                raise UpstreamTimeout("embedding service", self._embedding_timeout) from None
            except UpstreamError:
                raise
            except Exception as e:
                raise UpstreamError(f"embedding service failed: {e}") from e

        return await self._embedding_cache.get_or_compute(self._embedder.model, query, _compute)


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)
