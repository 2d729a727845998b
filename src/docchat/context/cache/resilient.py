"""Fail-open wrapper: cache trouble degrades to a miss, never to a failed request."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable

from docchat.context.models import CacheStats
from docchat.context.protocols import IContextCache
from docchat.exceptions import CacheUnavailable

log = logging.getLogger(__name__)

_RECOVERABLE = (asyncio.TimeoutError, CacheUnavailable, OSError, ValueError)


class FailOpenCache:
    """Bounds every backend call by a short timeout and absorbs backend failures.

    A failed ``get`` reads as a miss, a failed write is dropped, and a failed
    tag invalidation reports zero entries removed; the TTL on each entry
    bounds how long a missed invalidation can leave data stale.
    """

    def __init__(self, inner: IContextCache, *, timeout: float = 0.5, name: str = "cache") -> None:
        self._inner = inner
        self._timeout = timeout
        self._name = name
        self.stats = CacheStats()

    @property
    def inner(self) -> IContextCache:
        return self._inner

    async def get(self, key: str) -> Any | None:
        try:
            value = await asyncio.wait_for(self._inner.get(key), self._timeout)
        except _RECOVERABLE as e:
            self._record_failure("get", key, e)
            self.stats.misses += 1
            return None
        if value is None:
            self.stats.misses += 1
        else:
            self.stats.hits += 1
        return value

    async def put(
        self,
        key: str,
        value: Any,
        *,
        ttl_seconds: int = 0,
        tags: Iterable[str] = (),
    ) -> None:
        try:
            await asyncio.wait_for(
                self._inner.put(key, value, ttl_seconds=ttl_seconds, tags=tuple(tags)),
                self._timeout,
            )
        except _RECOVERABLE as e:
            self._record_failure("put", key, e)
            return
        self.stats.sets += 1

    async def invalidate(self, key: str) -> None:
        try:
            await asyncio.wait_for(self._inner.invalidate(key), self._timeout)
        except _RECOVERABLE as e:
            self._record_failure("invalidate", key, e)
            return
        self.stats.deletes += 1

    async def invalidate_tag(self, tag: str) -> int:
        try:
            removed = await asyncio.wait_for(self._inner.invalidate_tag(tag), self._timeout)
        except _RECOVERABLE as e:
            self._record_failure("invalidate_tag", tag, e)
            return 0
        self.stats.deletes += removed
        return removed

    async def clear(self) -> None:
        try:
            await asyncio.wait_for(self._inner.clear(), self._timeout)
        except _RECOVERABLE as e:
            self._record_failure("clear", "*", e)

    async def close(self) -> None:
        close = getattr(self._inner, "close", None)
        if close is not None:
            await close()

    def _record_failure(self, operation: str, key: str, exc: BaseException) -> None:
        self.stats.errors += 1
        log.warning(
            "%s cache %s failed open for %s: %s",
            self._name,
            operation,
            key,
            exc.__class__.__name__ if isinstance(exc, asyncio.TimeoutError) else exc,
        )
