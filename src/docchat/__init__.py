"""docchat: bounded, ranked, cached context assembly for document question answering.

Typical wiring::

    from docchat import AppSettings, build_services

    services = build_services(AppSettings())
    assembled = await services.chat.assemble_context(question, user_id=user_id)
    ...
    await services.chat.record_turn(assembled, answer)
"""

from __future__ import annotations

from docchat.context.budget import ContextBudgetFitter
from docchat.context.tokenizer import TokenCounter
from docchat.conversation.store import ConversationStore
from docchat.core.config import AppSettings
from docchat.models import (
    CandidatePassage,
    ContextWindow,
    ConversationState,
    ConversationTurn,
    RawSearchHit,
)
from docchat.retrieval.ranker import HybridRanker
from docchat.services.chat_service import AssembledContext, ChatService
from docchat.services.container import Services, build_services

__all__ = [
    "AppSettings",
    "AssembledContext",
    "CandidatePassage",
    "ChatService",
    "ContextBudgetFitter",
    "ContextWindow",
    "ConversationState",
    "ConversationStore",
    "ConversationTurn",
    "HybridRanker",
    "RawSearchHit",
    "Services",
    "TokenCounter",
    "build_services",
]
