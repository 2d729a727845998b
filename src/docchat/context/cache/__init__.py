"""Cache backends and the factory that wires them from settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from docchat.context.cache.memory import MemoryCache
from docchat.context.cache.resilient import FailOpenCache
from docchat.context.protocols import IContextCache

if TYPE_CHECKING:
    from docchat.core.config import CacheConfig

__all__ = [
    "create_context_cache",
    "FailOpenCache",
    "MemoryCache",
]


def create_context_cache(config: CacheConfig, namespace: str, ttl_seconds: int = 0) -> FailOpenCache:
    """Create a fail-open cache for one namespace.

    Each namespace gets its own backend instance so LRU pressure in one
    (embeddings) never evicts entries from another (conversations).
    """
    backend: IContextCache
    if config.backend == "memory":
        backend = MemoryCache(max_entries=config.max_entries, default_ttl_seconds=ttl_seconds)
    elif config.backend == "redis":
        from docchat.context.cache.redis import RedisCache

        backend = RedisCache(
            url=config.redis_url,
            prefix=f"{config.key_prefix}{namespace}:",
            default_ttl_seconds=ttl_seconds,
        )
    else:
        raise ValueError(f"Unknown cache backend: {config.backend!r}")

    return FailOpenCache(backend, timeout=config.operation_timeout, name=namespace)
