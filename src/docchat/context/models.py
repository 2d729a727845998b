"""Data models for the caching layer."""

from __future__ import annotations

import dataclasses
import time
from typing import Any


@dataclasses.dataclass
class CacheEntry:
    """Metadata wrapper for cached values with TTL tracking.

    An entry is readable only while ``now < created_at + ttl_seconds``.
    """

    key: str
    value: Any
    created_at: float = dataclasses.field(default_factory=time.time)
    ttl_seconds: int = 0
    tags: frozenset[str] = frozenset()
    hit_count: int = 0

    @property
    def expires_at(self) -> float:
        return self.created_at + self.ttl_seconds

    def is_expired_at(self, now: float) -> bool:
        """Check whether this entry has reached its TTL at time *now*."""
        if self.ttl_seconds <= 0:
            return False
        return now >= self.expires_at

    @property
    def is_expired(self) -> bool:
        return self.is_expired_at(time.time())


@dataclasses.dataclass
class CacheStats:
    """Operation counters for a single cache backend."""

    hits: int = 0
    misses: int = 0
    sets: int = 0
    deletes: int = 0
    errors: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def as_dict(self) -> dict[str, float]:
        return {**dataclasses.asdict(self), "hit_rate": round(self.hit_rate, 4)}
