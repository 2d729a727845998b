"""Pydantic data models for docchat.

Passages, context windows and conversation state are plain pydantic models
so they serialize to JSON for the cache backends and the HTTP surface.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Retrieval models ─────────────────────────────────────────────────


class RawSearchHit(BaseModel):
    """A nearest-neighbour hit as returned by the vector index."""

    chunk_id: str
    document_id: str
    chunk_index: Optional[int] = None
    filename: str = ""
    content: str
    score: float = Field(ge=0.0, le=1.0)


class CandidatePassage(BaseModel):
    """A ranked passage with its three sub-scores and the weighted total."""

    chunk_id: str
    document_id: str
    chunk_index: Optional[int] = None
    filename: str = ""
    content: str
    semantic_score: float = Field(ge=0.0, le=1.0)
    lexical_score: float = Field(ge=0.0, le=1.0)
    length_score: float = Field(ge=0.0, le=1.0)
    combined_score: float


class ContextSource(BaseModel):
    """Attribution for a passage that made it into the context window."""

    document_id: str
    filename: str
    score: float


class ContextWindow(BaseModel):
    """Prompt-ready, budget-bounded selection of passages."""

    passages: list[CandidatePassage] = Field(default_factory=list)
    total_tokens: int = 0
    truncated: bool = False

    @property
    def sources(self) -> list[ContextSource]:
        return [
            ContextSource(document_id=p.document_id, filename=p.filename, score=round(p.combined_score, 4))
            for p in self.passages
        ]


class SearchResponse(BaseModel):
    """Outcome of one run of the search pipeline."""

    query: str
    passages: list[CandidatePassage] = Field(default_factory=list)
    search_time_ms: int = 0
    cached: bool = False
    degraded: bool = False


# ── Conversation models ──────────────────────────────────────────────


class TurnRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class TokenUsage(BaseModel):
    input: Optional[int] = None
    output: Optional[int] = None
    total: Optional[int] = None


class TurnMetadata(BaseModel):
    """Typed fields the core reads, plus one open extension map."""

    context_sources: list[ContextSource] = Field(default_factory=list)
    token_usage: Optional[TokenUsage] = None
    search_results: Optional[int] = None
    context_used: Optional[int] = None
    extra: dict[str, Any] = Field(default_factory=dict)


class ConversationTurn(BaseModel):
    """A single user or assistant message."""

    role: TurnRole
    content: str
    created_at: datetime = Field(default_factory=_utcnow)
    metadata: TurnMetadata = Field(default_factory=TurnMetadata)


class ConversationState(BaseModel):
    """Retained, append-only history for one conversation."""

    conversation_id: str
    user_id: str
    turns: list[ConversationTurn] = Field(default_factory=list)
    title: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    last_accessed_at: datetime = Field(default_factory=_utcnow)


class ConversationSummary(BaseModel):
    """Listing view of a conversation."""

    conversation_id: str
    title: str
    last_message: str = ""
    last_activity: datetime
    message_count: int = 0
    total_tokens: int = 0


# ── Durable store records ────────────────────────────────────────────


class ConversationRecord(BaseModel):
    """A conversation row in the durable store."""

    id: str
    user_id: str
    title: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)


class MessageRecord(BaseModel):
    """A message row in the durable store."""

    id: str
    conversation_id: str
    role: TurnRole
    content: str
    metadata: TurnMetadata = Field(default_factory=TurnMetadata)
    created_at: datetime = Field(default_factory=_utcnow)

    def to_turn(self) -> ConversationTurn:
        return ConversationTurn(
            role=self.role,
            content=self.content,
            created_at=self.created_at,
            metadata=self.metadata,
        )
