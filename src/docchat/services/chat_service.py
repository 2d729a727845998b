"""Two-phase chat orchestration: assemble a grounded context, then record the answer."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional, Sequence

from docchat.conversation.store import trim_turns
from docchat.exceptions import ValidationError
from docchat.models import (
    ContextSource,
    ContextWindow,
    ConversationState,
    ConversationTurn,
    TokenUsage,
    TurnMetadata,
    TurnRole,
)
from docchat.prompts.chat import build_messages, build_system_prompt

if TYPE_CHECKING:
    from docchat.context.budget import ContextBudgetFitter
    from docchat.context.tokenizer import TokenCounter
    from docchat.conversation.store import ConversationStore
    from docchat.persistence.protocols import IDurableStore
    from docchat.retrieval.search import SearchPipeline

log = logging.getLogger(__name__)


@dataclass
class AssembledContext:
    """Everything the caller needs to run one completion for a user turn."""

    conversation_id: str
    user_id: str
    question: str
    history: list[ConversationTurn]
    window: ContextWindow
    search_results: int
    search_time_ms: int
    system_prompt: str
    messages: list[dict[str, Any]]
    input_tokens: int
    degraded: bool = False

    @property
    def sources(self) -> list[ContextSource]:
        return self.window.sources

    @property
    def grounded(self) -> bool:
        """True when at least one retrieved passage backs the prompt."""
        return bool(self.window.passages)

    def headers(self) -> dict[str, str]:
        """Response headers describing how this turn's context was built."""
        return {
            "X-Conversation-Id": self.conversation_id,
            "X-Context-Results": str(self.search_results),
            "X-Context-Used": str(len(self.window.passages)),
            "X-Context-Truncated": str(self.window.truncated).lower(),
            "X-Context-Degraded": str(self.degraded).lower(),
            "X-Search-Time": str(self.search_time_ms),
            "X-Token-Usage": str(self.input_tokens),
            "X-Sources": json.dumps(
                [
                    {"documentId": s.document_id, "filename": s.filename, "score": s.score}
                    for s in self.sources
                ]
            ),
        }


class ChatService:
    """Builds the bounded, ranked context for a question and records the turns.

    ``assemble_context`` reads history, searches, fits the context budget and
    appends the user turn.  After the model answers, the caller invokes
    ``record_turn`` to append the assistant turn.  Both turns are written to
    the state store and the durable store.
    """

    def __init__(
        self,
        *,
        store: ConversationStore,
        search: SearchPipeline,
        fitter: ContextBudgetFitter,
        counter: TokenCounter,
        durable: IDurableStore,
        context_token_budget: int = 3000,
        system_prompt_reserve: int = 200,
        max_context_passages: int = 5,
        history_turn_limit: int = 10,
        history_token_limit: int = 3000,
        hydrate_limit: int = 100,
    ) -> None:
        self._store = store
        self._search = search
        self._fitter = fitter
        self._counter = counter
        self._durable = durable
        self._budget = context_token_budget
        self._reserve = system_prompt_reserve
        self._max_passages = max_context_passages
        self._history_turns = history_turn_limit
        self._history_tokens = history_token_limit
        self._hydrate_limit = hydrate_limit

    async def assemble_context(
        self,
        question: str,
        *,
        user_id: str,
        conversation_id: Optional[str] = None,
        document_ids: Optional[Sequence[str]] = None,
    ) -> AssembledContext:
        if not question or not question.strip():
            raise ValidationError("Message content cannot be empty")
        if not user_id:
            raise ValidationError("User ID is required")

        conversation_id = await self._resolve_conversation(conversation_id, user_id)
        history = await self._history(conversation_id, user_id)

        response = await self._search.search(
            question,
            user_id=user_id,
            top_k=self._max_passages,
            document_ids=document_ids,
        )
        window = self._fitter.fit(response.passages, self._budget, self._reserve)
        if response.degraded:
            log.warning("Answering %s without retrieved context", conversation_id)

        system_prompt = build_system_prompt(window.passages)
        input_tokens = (
            self._counter.count(system_prompt)
            + sum(self._counter.count(t.content) for t in history)
            + self._counter.count(question)
        )
        log.info(
            "Context for %s: %d found, %d used (%d tokens, truncated=%s), %d input tokens",
            conversation_id,
            len(response.passages),
            len(window.passages),
            window.total_tokens,
            window.truncated,
            input_tokens,
        )

        metadata = TurnMetadata(
            search_results=len(response.passages),
            context_used=len(window.passages),
            token_usage=TokenUsage(input=input_tokens),
            extra={"search_time_ms": response.search_time_ms, "degraded": response.degraded},
        )
        await self._store.append(
            conversation_id,
            user_id,
            ConversationTurn(role=TurnRole.USER, content=question, metadata=metadata),
        )
        await self._durable.create_message(conversation_id, TurnRole.USER, question, metadata)

        return AssembledContext(
            conversation_id=conversation_id,
            user_id=user_id,
            question=question,
            history=history,
            window=window,
            search_results=len(response.passages),
            search_time_ms=response.search_time_ms,
            system_prompt=system_prompt,
            messages=build_messages(system_prompt, history, question),
            input_tokens=input_tokens,
            degraded=response.degraded,
        )

    async def record_turn(
        self,
        context: AssembledContext,
        answer: str,
        *,
        output_tokens: Optional[int] = None,
    ) -> ConversationState:
        """Append the assistant's answer for a previously assembled context."""
        output = output_tokens if output_tokens is not None else self._counter.count(answer)
        metadata = TurnMetadata(
            context_sources=context.sources,
            token_usage=TokenUsage(output=output, total=context.input_tokens + output),
        )
        state = await self._store.append(
            context.conversation_id,
            context.user_id,
            ConversationTurn(role=TurnRole.ASSISTANT, content=answer, metadata=metadata),
        )
        await self._durable.create_message(context.conversation_id, TurnRole.ASSISTANT, answer, metadata)
        return state

    # ── Internals ────────────────────────────────────────────────────

    async def _resolve_conversation(self, conversation_id: Optional[str], user_id: str) -> str:
        """Return a conversation the caller owns, creating one when needed.

        A state-store miss falls back to the durable store; an id the durable
        store does not know for this user starts a fresh conversation.
        """
        if conversation_id:
            state = await self._store.read(conversation_id, user_id, max_turns=0)
            if state is not None:
                return conversation_id

            record = await self._durable.get_conversation(conversation_id, user_id)
            if record is not None:
                await self._hydrate(conversation_id, user_id)
                return conversation_id

            log.info("Conversation %s unknown for user %s; starting a new one", conversation_id, user_id)

        record = await self._durable.create_conversation(user_id)
        await self._store.create(record.id, user_id)
        return record.id

    async def _history(self, conversation_id: str, user_id: str) -> list[ConversationTurn]:
        state = await self._store.read(
            conversation_id,
            user_id,
            max_turns=self._history_turns,
            max_tokens=self._history_tokens,
        )
        if state is not None:
            return state.turns

        # Expired between resolve and read, or the cache dropped the write.
        state = await self._hydrate(conversation_id, user_id)
        return trim_turns(
            state.turns,
            self._counter,
            max_turns=self._history_turns,
            max_tokens=self._history_tokens,
        )

    async def _hydrate(self, conversation_id: str, user_id: str) -> ConversationState:
        messages = await self._durable.list_messages(conversation_id, limit=self._hydrate_limit)
        log.info("Rebuilding conversation %s from %d durable messages", conversation_id, len(messages))
        return await self._store.create(conversation_id, user_id, [m.to_turn() for m in messages])
