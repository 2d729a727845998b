"""Redis-backed cache with async support and set-based tag invalidation.

Requires optional dependency: ``pip install docchat[redis]``
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable

from docchat.context.models import CacheStats
from docchat.exceptions import CacheUnavailable

log = logging.getLogger(__name__)


class RedisCache:
    """Async Redis cache using ``redis.asyncio``.

    Entries live under ``<prefix><key>``; each tag is a Redis set of the
    full keys carrying it, stored under ``<prefix>tag:<tag>``.  Redis owns
    TTL expiry, so an expired entry simply reads as a miss.
    """

    def __init__(
        self,
        url: str = "",
        prefix: str = "rag_cache:",
        default_ttl_seconds: int = 0,
    ) -> None:
        self._url = url or "redis://localhost:6379"
        self._prefix = prefix
        self._default_ttl = default_ttl_seconds
        self._client: Any | None = None
        self._errors: tuple[type[BaseException], ...] = (OSError,)
        self.stats = CacheStats()

    def _get_client(self) -> Any:
        """Lazy-initialize the Redis async client."""
        if self._client is not None:
            return self._client
        try:
            import redis.asyncio as aioredis  # type: ignore[import-untyped]
            from redis.exceptions import RedisError  # type: ignore[import-untyped]
        except ImportError:
            raise ImportError(
                "Redis is required for the Redis cache backend. "
                "Install it with: pip install docchat[redis]"
            ) from None

        self._errors = (RedisError, OSError)
        self._client = aioredis.from_url(self._url, decode_responses=True)
        return self._client

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def _tag_key(self, tag: str) -> str:
        return f"{self._prefix}tag:{tag}"

    async def get(self, key: str) -> Any | None:
        """Retrieve a cached value. Returns None on miss (Redis handles TTL)."""
        client = self._get_client()
        try:
            raw = await client.get(self._key(key))
        except self._errors as e:
            self.stats.errors += 1
            raise CacheUnavailable(str(e), operation="get", key=key) from e
        if raw is None:
            self.stats.misses += 1
            return None
        self.stats.hits += 1
        return json.loads(raw)

    async def put(
        self,
        key: str,
        value: Any,
        *,
        ttl_seconds: int = 0,
        tags: Iterable[str] = (),
    ) -> None:
        """Store a value with Redis-native expiry and record its tags."""
        client = self._get_client()
        ttl = ttl_seconds or self._default_ttl
        full_key = self._key(key)
        serialized = json.dumps(value)
        try:
            async with client.pipeline(transaction=True) as pipe:
                if ttl > 0:
                    pipe.setex(full_key, ttl, serialized)
                else:
                    pipe.set(full_key, serialized)
                for tag in tags:
                    tag_key = self._tag_key(tag)
                    pipe.sadd(tag_key, full_key)
                    if ttl > 0:
                        pipe.expire(tag_key, ttl)
                await pipe.execute()
        except self._errors as e:
            self.stats.errors += 1
            raise CacheUnavailable(str(e), operation="put", key=key) from e
        self.stats.sets += 1

    async def invalidate(self, key: str) -> None:
        """Remove a specific key."""
        client = self._get_client()
        try:
            await client.delete(self._key(key))
        except self._errors as e:
            self.stats.errors += 1
            raise CacheUnavailable(str(e), operation="invalidate", key=key) from e
        self.stats.deletes += 1

    async def invalidate_tag(self, tag: str) -> int:
        """Delete every key recorded under *tag*, then the tag set itself."""
        client = self._get_client()
        tag_key = self._tag_key(tag)
        try:
            keys = list(await client.smembers(tag_key))
            if keys:
                await client.delete(*keys)
            await client.delete(tag_key)
        except self._errors as e:
            self.stats.errors += 1
            raise CacheUnavailable(str(e), operation="invalidate_tag", key=tag) from e
        self.stats.deletes += len(keys)
        if keys:
            log.info("Invalidated %d cache entries with tag %s", len(keys), tag)
        return len(keys)

    async def clear(self) -> None:
        """Remove all entries under this cache's prefix."""
        client = self._get_client()
        try:
            keys = [key async for key in client.scan_iter(match=f"{self._prefix}*")]
            if keys:
                await client.delete(*keys)
        except self._errors as e:
            self.stats.errors += 1
            raise CacheUnavailable(str(e), operation="clear") from e
        self.stats.deletes += len(keys)

    async def close(self) -> None:
        """Release the connection pool; the next call reconnects lazily."""
        if self._client is None:
            return
        client, self._client = self._client, None
        await client.aclose()
