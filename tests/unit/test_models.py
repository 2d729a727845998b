"""Tests for the shared pydantic models and exception hierarchy."""

from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from docchat.exceptions import (
    CacheUnavailable,
    ConversationNotFound,
    DocChatError,
    UpstreamError,
    UpstreamTimeout,
)
from docchat.models import (
    CandidatePassage,
    ContextWindow,
    ConversationState,
    ConversationTurn,
    MessageRecord,
    RawSearchHit,
    TurnMetadata,
    TurnRole,
)


def _passage(chunk_id: str, score: float) -> CandidatePassage:
    return CandidatePassage(
        chunk_id=chunk_id,
        document_id=f"doc-{chunk_id}",
        filename=f"{chunk_id}.pdf",
        content="text",
        semantic_score=0.5,
        lexical_score=0.5,
        length_score=0.5,
        combined_score=score,
    )


class TestRetrievalModels:
    def test_hit_score_bounds(self) -> None:
        with pytest.raises(PydanticValidationError):
            RawSearchHit(chunk_id="c", document_id="d", content="x", score=1.5)

    def test_window_sources_follow_passage_order(self) -> None:
        window = ContextWindow(passages=[_passage("a", 0.912345), _passage("b", 0.5)], total_tokens=4)
        sources = window.sources
        assert [s.document_id for s in sources] == ["doc-a", "doc-b"]
        assert sources[0].score == 0.9123

    def test_empty_window(self) -> None:
        window = ContextWindow()
        assert window.passages == []
        assert window.sources == []
        assert window.truncated is False


class TestConversationModels:
    def test_state_round_trips_through_json(self) -> None:
        state = ConversationState(
            conversation_id="c1",
            user_id="u1",
            turns=[
                ConversationTurn(
                    role=TurnRole.USER,
                    content="hi",
                    metadata=TurnMetadata(search_results=2, extra={"degraded": False}),
                )
            ],
        )
        restored = ConversationState.model_validate(state.model_dump(mode="json"))
        assert restored == state
        assert restored.turns[0].role is TurnRole.USER

    def test_message_record_to_turn(self) -> None:
        record = MessageRecord(id="m1", conversation_id="c1", role=TurnRole.ASSISTANT, content="answer")
        turn = record.to_turn()
        assert turn.role is TurnRole.ASSISTANT
        assert turn.content == "answer"
        assert turn.created_at == record.created_at


class TestExceptions:
    def test_hierarchy(self) -> None:
        assert issubclass(UpstreamTimeout, UpstreamError)
        assert issubclass(ConversationNotFound, DocChatError)
        assert issubclass(CacheUnavailable, DocChatError)

    def test_upstream_timeout_message(self) -> None:
        exc = UpstreamTimeout("embedding service", 10.0)
        assert exc.service == "embedding service"
        assert exc.timeout == 10.0
        assert "embedding service" in str(exc)

    def test_cache_unavailable_context(self) -> None:
        exc = CacheUnavailable("boom", operation="get", key="k")
        assert exc.operation == "get"
        assert exc.key == "k"
