"""Vector search, hybrid ranking and the search pipeline."""

from __future__ import annotations

from docchat.retrieval.memory_index import IndexedChunk, MemoryVectorIndex
from docchat.retrieval.protocols import IEmbeddingClient, IVectorIndex
from docchat.retrieval.ranker import HybridRanker, RankingWeights
from docchat.retrieval.search import SearchPipeline

__all__ = [
    "HybridRanker",
    "IEmbeddingClient",
    "IVectorIndex",
    "IndexedChunk",
    "MemoryVectorIndex",
    "RankingWeights",
    "SearchPipeline",
]
