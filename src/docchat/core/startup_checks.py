"""Startup validation: fail-fast on critical misconfigurations."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from docchat.core.config import AppSettings

log = logging.getLogger(__name__)

_WEIGHT_TOLERANCE = 1e-6


def validate_settings(settings: AppSettings) -> None:
    """Validate application settings at startup. Raises ValueError on fatal misconfig."""
    _check_ranker_weights(settings)
    _check_budget(settings)
    _check_cache(settings)
    _check_retrieval(settings)


def _check_ranker_weights(settings: AppSettings) -> None:
    r = settings.retrieval
    total = r.semantic_weight + r.lexical_weight + r.length_weight
    if abs(total - 1.0) > _WEIGHT_TOLERANCE:
        raise ValueError(
            f"Ranker weights must sum to 1.0, got {total:.4f} "
            f"(semantic={r.semantic_weight}, lexical={r.lexical_weight}, length={r.length_weight})"
        )
    if min(r.semantic_weight, r.lexical_weight, r.length_weight) < 0:
        raise ValueError("Ranker weights must be non-negative")


def _check_budget(settings: AppSettings) -> None:
    b = settings.budget
    if b.context_token_budget <= 0:
        raise ValueError("DOCCHAT_BUDGET_CONTEXT_TOKEN_BUDGET must be positive")
    if b.system_prompt_reserve >= b.context_token_budget:
        raise ValueError(
            f"DOCCHAT_BUDGET_SYSTEM_PROMPT_RESERVE ({b.system_prompt_reserve}) leaves no room "
            f"for context within a budget of {b.context_token_budget} tokens"
        )


def _check_cache(settings: AppSettings) -> None:
    c = settings.cache
    if c.backend == "redis" and not c.redis_url:
        raise ValueError("DOCCHAT_CACHE_BACKEND=redis requires DOCCHAT_CACHE_REDIS_URL")
    if c.search_ttl_seconds > c.embeddings_ttl_seconds:
        log.warning(
            "Search cache TTL (%ss) exceeds embedding cache TTL (%ss); "
            "search results may outlive document changes",
            c.search_ttl_seconds,
            c.embeddings_ttl_seconds,
        )


def _check_retrieval(settings: AppSettings) -> None:
    r = settings.retrieval
    if not 1 <= r.top_k <= r.max_top_k:
        raise ValueError(f"DOCCHAT_RETRIEVAL_TOP_K must be between 1 and {r.max_top_k}")
    if r.max_context_passages > r.max_top_k:
        raise ValueError(
            "DOCCHAT_RETRIEVAL_MAX_CONTEXT_PASSAGES cannot exceed DOCCHAT_RETRIEVAL_MAX_TOP_K"
        )
    if r.length_ideal_min_chars > r.length_ideal_max_chars:
        raise ValueError("DOCCHAT_RETRIEVAL_LENGTH_IDEAL_MIN_CHARS exceeds LENGTH_IDEAL_MAX_CHARS")
