"""Search result cache with owner/document tag invalidation."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Iterable, Optional

from docchat.context.cache.key_strategy import (
    SEARCH_TAG,
    compute_search_key,
    document_tag,
    user_tag,
)
from docchat.context.protocols import IContextCache
from docchat.core.concurrency import SingleFlight
from docchat.models import CandidatePassage

log = logging.getLogger(__name__)


class SearchResultCache:
    """TTL cache of ranked passage lists keyed by (query, top_k, threshold, filters).

    Every entry is tagged with ``search``, the owner (``user:<id>``) and each
    document in the filter set, so a document change can drop exactly the
    entries that may have seen it.  The short TTL bounds staleness when an
    invalidation signal is lost.
    """

    def __init__(self, cache: IContextCache, *, ttl_seconds: int = 300) -> None:
        self._cache = cache
        self._ttl = ttl_seconds
        self._flights = SingleFlight()

    async def get_or_compute(
        self,
        query: str,
        *,
        user_id: str,
        top_k: int,
        threshold: float,
        document_ids: Optional[Iterable[str]] = None,
        compute: Callable[[], Awaitable[list[CandidatePassage]]],
    ) -> tuple[list[CandidatePassage], bool]:
        """Return ``(passages, cached)`` for the query and filter set."""
        doc_ids = sorted(set(document_ids or ()))
        key = compute_search_key(
            query, user_id=user_id, top_k=top_k, threshold=threshold, document_ids=doc_ids
        )
        cached = await self._cache.get(key)
        if cached is not None:
            return [CandidatePassage.model_validate(p) for p in cached], True

        tags = [SEARCH_TAG, user_tag(user_id), *(document_tag(d) for d in doc_ids)]

        async def _load() -> list[CandidatePassage]:
            again = await self._cache.get(key)
            if again is not None:
                return [CandidatePassage.model_validate(p) for p in again]
            passages = await compute()
            await self._cache.put(
                key,
                [p.model_dump(mode="json") for p in passages],
                ttl_seconds=self._ttl,
                tags=tags,
            )
            return passages

        return await self._flights.do(key, _load), False

    async def invalidate_document(self, document_id: str, user_id: str) -> int:
        """Drop entries that may include *document_id* after it was created, updated or deleted."""
        removed = await self._cache.invalidate_tag(user_tag(user_id))
        removed += await self._cache.invalidate_tag(document_tag(document_id))
        log.info(
            "Search cache invalidated for document %s (owner %s): %d entries",
            document_id,
            user_id,
            removed,
        )
        return removed

    async def invalidate_user(self, user_id: str) -> int:
        return await self._cache.invalidate_tag(user_tag(user_id))

    async def invalidate_all(self) -> int:
        return await self._cache.invalidate_tag(SEARCH_TAG)
