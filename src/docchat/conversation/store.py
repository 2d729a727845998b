"""TTL-bounded conversation history with per-conversation serialization."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional, Sequence

from docchat.context.cache.key_strategy import (
    compute_conversation_key,
    compute_summary_key,
    compute_user_conversations_key,
    conversation_tag,
    user_tag,
)
from docchat.core.concurrency import KeyedLock
from docchat.exceptions import AuthorizationError
from docchat.models import ConversationState, ConversationSummary, ConversationTurn, TurnRole

if TYPE_CHECKING:
    from docchat.context.protocols import IContextCache
    from docchat.context.tokenizer import TokenCounter
    from docchat.core.config import CacheConfig, ConversationConfig

log = logging.getLogger(__name__)

_TITLE_CHARS = 50
_PREVIEW_CHARS = 100


def trim_turns(
    turns: Sequence[ConversationTurn],
    counter: TokenCounter,
    *,
    max_turns: Optional[int] = None,
    max_tokens: Optional[int] = None,
) -> list[ConversationTurn]:
    """Newest suffix of *turns* within both the count cap and the token cap.

    Both caps keep a suffix, so applying them in sequence yields the more
    restrictive of the two.
    """
    kept = list(turns)
    if max_turns is not None:
        kept = kept[-max_turns:] if max_turns > 0 else []
    if max_tokens is not None:
        total = 0
        start = len(kept)
        for i in range(len(kept) - 1, -1, -1):
            cost = counter.count(kept[i].content)
            if total + cost > max_tokens:
                break
            total += cost
            start = i
        kept = kept[start:]
    return kept


def conversation_title(turns: Sequence[ConversationTurn]) -> str:
    """Title from the first user turn, cut to 50 characters."""
    first = next((t for t in turns if t.role == TurnRole.USER), None)
    if first is None:
        return "New Conversation"
    title = first.content[:_TITLE_CHARS].strip()
    return f"{title}..." if len(title) < len(first.content) else title


class ConversationStore:
    """Append-only conversation history held in a TTL cache.

    Every read and write of a conversation happens under that
    conversation's lock, so concurrent requests for the same conversation
    (a double submit) are applied one after the other and no append is lost.
    Reads and writes both re-store the state, which slides its TTL forward.
    Retention caps are enforced on write by dropping the oldest turns.
    """

    def __init__(
        self,
        cache: IContextCache,
        counter: TokenCounter,
        *,
        ttl_seconds: int = 86400,
        max_retained_turns: int = 100,
        max_retained_tokens: int = 8000,
    ) -> None:
        self._cache = cache
        self._counter = counter
        self._ttl = ttl_seconds
        self._max_turns = max_retained_turns
        self._max_tokens = max_retained_tokens
        self._locks = KeyedLock()

    @classmethod
    def from_config(
        cls,
        cache: IContextCache,
        counter: TokenCounter,
        cache_config: CacheConfig,
        config: ConversationConfig,
    ) -> ConversationStore:
        return cls(
            cache,
            counter,
            ttl_seconds=cache_config.conversations_ttl_seconds,
            max_retained_turns=config.max_retained_turns,
            max_retained_tokens=config.max_retained_tokens,
        )

    # ── Public API ───────────────────────────────────────────────────

    async def create(
        self,
        conversation_id: str,
        user_id: str,
        turns: Sequence[ConversationTurn] = (),
    ) -> ConversationState:
        """Create (or re-seed after expiry) the state for a conversation."""
        async with self._locks.hold(conversation_id):
            state = await self._load(conversation_id)
            if state is not None:
                self._check_owner(state, user_id)
                await self._save(state)
                return state

            state = ConversationState(conversation_id=conversation_id, user_id=user_id, turns=list(turns))
            self._retain(state)
            await self._save(state)
            log.debug("Created conversation state %s with %d turns", conversation_id, len(state.turns))
            return state

    async def append(self, conversation_id: str, user_id: str, turn: ConversationTurn) -> ConversationState:
        """Append *turn*, creating the conversation on its first message.

        Raises:
            AuthorizationError: *user_id* does not own the conversation.
        """
        async with self._locks.hold(conversation_id):
            state = await self._load(conversation_id)
            if state is None:
                state = ConversationState(conversation_id=conversation_id, user_id=user_id)
            else:
                self._check_owner(state, user_id)

            state.turns.append(turn)
            self._retain(state)
            await self._save(state)
            log.debug(
                "Appended %s turn to %s (%d turns retained)",
                turn.role.value,
                conversation_id,
                len(state.turns),
            )
            return state

    async def read(
        self,
        conversation_id: str,
        user_id: str,
        *,
        max_turns: Optional[int] = None,
        max_tokens: Optional[int] = None,
    ) -> ConversationState | None:
        """Return trimmed history, or None when the conversation is unknown or expired.

        Raises:
            AuthorizationError: *user_id* does not own the conversation.
        """
        async with self._locks.hold(conversation_id):
            state = await self._load(conversation_id)
            if state is None:
                return None
            self._check_owner(state, user_id)
            await self._save(state)

        state.turns = trim_turns(state.turns, self._counter, max_turns=max_turns, max_tokens=max_tokens)
        return state

    async def delete(self, conversation_id: str, user_id: str) -> None:
        async with self._locks.hold(conversation_id):
            state = await self._load(conversation_id)
            if state is None:
                return
            self._check_owner(state, user_id)
            await self._cache.invalidate(compute_conversation_key(conversation_id))
            await self._cache.invalidate(compute_summary_key(conversation_id))
            await self._update_user_index(user_id, conversation_id, remove=True)

    async def summary(self, conversation_id: str) -> ConversationSummary | None:
        raw = await self._cache.get(compute_summary_key(conversation_id))
        return ConversationSummary.model_validate(raw) if raw is not None else None

    async def list_for_user(self, user_id: str, limit: int = 20, offset: int = 0) -> list[ConversationSummary]:
        """Summaries of the user's live conversations, most recent first."""
        index = await self._cache.get(compute_user_conversations_key(user_id)) or {}
        ordered = sorted(index.items(), key=lambda item: (-item[1], item[0]))
        summaries: list[ConversationSummary] = []
        for conversation_id, _ in ordered[offset : offset + limit]:
            summary = await self.summary(conversation_id)
            if summary is not None:
                summaries.append(summary)
        return summaries

    # ── Internals ────────────────────────────────────────────────────

    @staticmethod
    def _check_owner(state: ConversationState, user_id: str) -> None:
        if state.user_id != user_id:
            log.warning("User %s denied access to conversation %s", user_id, state.conversation_id)
            raise AuthorizationError(f"Conversation {state.conversation_id} is not owned by the caller")

    def _retain(self, state: ConversationState) -> None:
        before = len(state.turns)
        state.turns = trim_turns(
            state.turns, self._counter, max_turns=self._max_turns, max_tokens=self._max_tokens
        )
        if len(state.turns) < before:
            log.debug(
                "Dropped %d oldest turns from %s to stay within retention",
                before - len(state.turns),
                state.conversation_id,
            )

    async def _load(self, conversation_id: str) -> ConversationState | None:
        raw = await self._cache.get(compute_conversation_key(conversation_id))
        return ConversationState.model_validate(raw) if raw is not None else None

    async def _save(self, state: ConversationState) -> None:
        now = datetime.now(timezone.utc)
        state.last_accessed_at = now
        if not state.title and state.turns:
            state.title = conversation_title(state.turns)

        tags = (conversation_tag(state.conversation_id), user_tag(state.user_id))
        await self._cache.put(
            compute_conversation_key(state.conversation_id),
            state.model_dump(mode="json"),
            ttl_seconds=self._ttl,
            tags=tags,
        )

        last = state.turns[-1].content if state.turns else ""
        summary = ConversationSummary(
            conversation_id=state.conversation_id,
            title=state.title or conversation_title(state.turns),
            last_message=last[:_PREVIEW_CHARS],
            last_activity=now,
            message_count=len(state.turns),
            total_tokens=sum(self._counter.count(t.content) for t in state.turns),
        )
        await self._cache.put(
            compute_summary_key(state.conversation_id),
            summary.model_dump(mode="json"),
            ttl_seconds=self._ttl,
            tags=tags,
        )
        await self._update_user_index(state.user_id, state.conversation_id, activity=now.timestamp())

    async def _update_user_index(
        self,
        user_id: str,
        conversation_id: str,
        *,
        activity: float = 0.0,
        remove: bool = False,
    ) -> None:
        key = compute_user_conversations_key(user_id)
        async with self._locks.hold(key):
            index: dict[str, float] = await self._cache.get(key) or {}
            if remove:
                index.pop(conversation_id, None)
            else:
                index[conversation_id] = activity
            await self._cache.put(key, index, ttl_seconds=self._ttl, tags=(user_tag(user_id),))
