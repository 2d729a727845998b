"""In-process cosine-similarity vector index for development and tests."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

from docchat.models import RawSearchHit


@dataclass
class IndexedChunk:
    chunk_id: str
    document_id: str
    user_id: str
    content: str
    embedding: list[float]
    chunk_index: Optional[int] = None
    filename: str = ""


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    if len(a) != len(b):
        raise ValueError("Vectors must have the same dimensions")
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


class MemoryVectorIndex:
    """Brute-force nearest-neighbour search over chunks held in a list.

    Scores are cosine similarity mapped onto [0, 1].
    """

    def __init__(self, settings: object | None = None) -> None:
        self._chunks: dict[str, IndexedChunk] = {}

    def __len__(self) -> int:
        return len(self._chunks)

    def add(self, chunk: IndexedChunk) -> None:
        self._chunks[chunk.chunk_id] = chunk

    def remove_document(self, document_id: str) -> int:
        doomed = [cid for cid, c in self._chunks.items() if c.document_id == document_id]
        for cid in doomed:
            del self._chunks[cid]
        return len(doomed)

    async def search(
        self,
        embedding: Sequence[float],
        *,
        user_id: str,
        top_k: int,
        threshold: float,
        document_ids: Optional[Sequence[str]] = None,
    ) -> list[RawSearchHit]:
        allowed = set(document_ids) if document_ids else None
        hits: list[RawSearchHit] = []
        for chunk in self._chunks.values():
            if chunk.user_id != user_id:
                continue
            if allowed is not None and chunk.document_id not in allowed:
                continue
            score = (cosine_similarity(embedding, chunk.embedding) + 1.0) / 2.0
            if score < threshold:
                continue
            hits.append(
                RawSearchHit(
                    chunk_id=chunk.chunk_id,
                    document_id=chunk.document_id,
                    chunk_index=chunk.chunk_index,
                    filename=chunk.filename,
                    content=chunk.content,
                    score=min(1.0, max(0.0, score)),
                )
            )
        hits.sort(key=lambda h: (-h.score, h.chunk_id))
        return hits[:top_k]
