"""Hybrid ranking: semantic similarity + lexical overlap + length completeness."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

from docchat.models import CandidatePassage, RawSearchHit

if TYPE_CHECKING:
    from docchat.core.config import RetrievalConfig

_WEIGHT_TOLERANCE = 1e-6


@dataclass(frozen=True)
class RankingWeights:
    semantic: float = 0.7
    lexical: float = 0.2
    length: float = 0.1

    def __post_init__(self) -> None:
        if min(self.semantic, self.lexical, self.length) < 0:
            raise ValueError("Ranking weights must be non-negative")
        total = self.semantic + self.lexical + self.length
        if abs(total - 1.0) > _WEIGHT_TOLERANCE:
            raise ValueError(f"Ranking weights must sum to 1.0, got {total:.4f}")


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def query_terms(query: str) -> list[str]:
    """Distinct casefolded whitespace-separated terms, in first-seen order."""
    return list(dict.fromkeys(query.casefold().split()))


def lexical_score(terms: list[str], content: str) -> float:
    """Fraction of query terms occurring literally in *content*; 0.0 for no terms."""
    if not terms:
        return 0.0
    haystack = content.casefold()
    matched = sum(1 for term in terms if term in haystack)
    return _clamp(matched / len(terms))


def length_score(content: str, ideal_min: int = 200, ideal_max: int = 1000) -> float:
    """Reward passages inside [ideal_min, ideal_max] characters.

    Rises linearly below ``ideal_min`` (fragments), is flat at 1.0 inside the
    window, and decays as ``ideal_max / n`` above it (noise).
    """
    n = len(content.strip())
    if n == 0:
        return 0.0
    if n < ideal_min:
        return _clamp(n / ideal_min)
    if n <= ideal_max:
        return 1.0
    return _clamp(ideal_max / n)


def deduplicate(hits: Iterable[RawSearchHit]) -> list[RawSearchHit]:
    """Drop repeated ``(document_id, chunk_index)`` hits, keeping the first.

    Hits whose index did not report a chunk position are keyed on
    ``chunk_id`` instead.
    """
    seen: set[tuple[str, int | str]] = set()
    out: list[RawSearchHit] = []
    for hit in hits:
        key = (hit.document_id, hit.chunk_id if hit.chunk_index is None else hit.chunk_index)
        if key in seen:
            continue
        seen.add(key)
        out.append(hit)
    return out


class HybridRanker:
    """Scores raw vector hits and orders them by combined score.

    Ordering is total: descending ``combined_score``, ties broken by
    ``chunk_id`` ascending, so identical inputs always rank identically.
    """

    def __init__(
        self,
        weights: RankingWeights | None = None,
        *,
        ideal_min_chars: int = 200,
        ideal_max_chars: int = 1000,
    ) -> None:
        self.weights = weights or RankingWeights()
        self._ideal_min = ideal_min_chars
        self._ideal_max = ideal_max_chars

    @classmethod
    def from_config(cls, config: RetrievalConfig) -> HybridRanker:
        return cls(
            RankingWeights(
                semantic=config.semantic_weight,
                lexical=config.lexical_weight,
                length=config.length_weight,
            ),
            ideal_min_chars=config.length_ideal_min_chars,
            ideal_max_chars=config.length_ideal_max_chars,
        )

    def score(self, hit: RawSearchHit, terms: list[str]) -> CandidatePassage:
        semantic = _clamp(hit.score)
        lexical = lexical_score(terms, hit.content)
        length = length_score(hit.content, self._ideal_min, self._ideal_max)
        w = self.weights
        return CandidatePassage(
            chunk_id=hit.chunk_id,
            document_id=hit.document_id,
            chunk_index=hit.chunk_index,
            filename=hit.filename,
            content=hit.content,
            semantic_score=semantic,
            lexical_score=lexical,
            length_score=length,
            combined_score=w.semantic * semantic + w.lexical * lexical + w.length * length,
        )

    def rank(self, raw_results: Iterable[RawSearchHit], query: str) -> list[CandidatePassage]:
        """Score, de-duplicate and order *raw_results* for *query*."""
        terms = query_terms(query)
        scored = [self.score(hit, terms) for hit in deduplicate(raw_results)]
        scored.sort(key=lambda p: (-p.combined_score, p.chunk_id))
        return scored
