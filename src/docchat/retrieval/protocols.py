"""Contracts for the external embedding service and vector index."""

from __future__ import annotations

from typing import Optional, Protocol, Sequence, runtime_checkable

from docchat.models import RawSearchHit


@runtime_checkable
class IEmbeddingClient(Protocol):
    """Produces an embedding vector for a piece of text."""

    @property
    def model(self) -> str:
        """Model identifier; part of the embedding cache key."""
        ...

    async def embed(self, text: str) -> list[float]:
        ...


@runtime_checkable
class IVectorIndex(Protocol):
    """Similarity search over pre-embedded document chunks."""

    async def search(
        self,
        embedding: Sequence[float],
        *,
        user_id: str,
        top_k: int,
        threshold: float,
        document_ids: Optional[Sequence[str]] = None,
    ) -> list[RawSearchHit]:
        """Return up to *top_k* hits owned by *user_id* with score >= *threshold*."""
        ...
