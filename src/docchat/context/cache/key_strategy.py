"""Cache key computation for deterministic, collision-resistant keys.

Text normalization is defined once here and used for both reads and writes:
trim, collapse internal whitespace to single spaces, casefold.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Iterable, Optional


def normalize_text(text: str) -> str:
    """Canonical form used for every text-derived cache key."""
    return " ".join(text.split()).casefold()


def _digest(data: Any) -> str:
    raw = json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(raw.encode()).hexdigest()


def compute_embedding_key(model: str, text: str) -> str:
    """Key for an embedding of *text* produced by *model*."""
    return f"embeddings:{_digest({'model': model, 'text': normalize_text(text)})}"


def compute_search_key(
    query: str,
    *,
    user_id: str,
    top_k: int,
    threshold: float,
    document_ids: Optional[Iterable[str]] = None,
) -> str:
    """Key for a ranked search result list; the filter set is order-insensitive."""
    data = {
        "query": normalize_text(query),
        "user_id": user_id,
        "top_k": top_k,
        "threshold": round(threshold, 6),
        "document_ids": sorted(set(document_ids or ())),
    }
    return f"search:{_digest(data)}"


def compute_conversation_key(conversation_id: str) -> str:
    return f"conversation:{conversation_id}"


def compute_summary_key(conversation_id: str) -> str:
    return f"conversation_summary:{conversation_id}"


def compute_user_conversations_key(user_id: str) -> str:
    return f"user_conversations:{user_id}"


# ── Invalidation tags ────────────────────────────────────────────────

SEARCH_TAG = "search"
EMBEDDINGS_TAG = "embeddings"


def user_tag(user_id: str) -> str:
    return f"user:{user_id}"


def document_tag(document_id: str) -> str:
    return f"document:{document_id}"


def conversation_tag(conversation_id: str) -> str:
    return f"conversation:{conversation_id}"
