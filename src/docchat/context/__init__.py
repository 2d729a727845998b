"""Context engineering: token counting, caches, and the context budget fitter."""

from __future__ import annotations

from docchat.context.models import CacheEntry, CacheStats
from docchat.context.protocols import IContextCache

__all__ = [
    "CacheEntry",
    "CacheStats",
    "IContextCache",
]
