"""Durable store protocol: the create/read operations the core consumes."""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from docchat.models import ConversationRecord, MessageRecord, TurnMetadata, TurnRole


@runtime_checkable
class IDurableStore(Protocol):
    """Relational source of truth for conversations and messages."""

    async def create_conversation(self, user_id: str, title: Optional[str] = None) -> ConversationRecord:
        """Create a conversation owned by *user_id*."""
        ...

    async def get_conversation(self, conversation_id: str, user_id: str) -> ConversationRecord | None:
        """Return the conversation if it exists and is owned by *user_id*."""
        ...

    async def create_message(
        self,
        conversation_id: str,
        role: TurnRole,
        content: str,
        metadata: Optional[TurnMetadata] = None,
    ) -> MessageRecord:
        """Persist a message in an existing conversation."""
        ...

    async def list_messages(self, conversation_id: str, limit: Optional[int] = None) -> list[MessageRecord]:
        """Messages oldest first; with *limit*, only the newest *limit* of them."""
        ...
