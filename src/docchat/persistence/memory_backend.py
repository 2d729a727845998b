"""Dict-backed durable store for development and tests."""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from docchat.models import ConversationRecord, MessageRecord, TurnMetadata, TurnRole

log = logging.getLogger(__name__)


class MemoryDurableStore:
    """Keeps conversations and messages in plain dicts; nothing touches disk."""

    def __init__(self) -> None:
        self._conversations: dict[str, ConversationRecord] = {}
        self._messages: dict[str, list[MessageRecord]] = {}

    async def create_conversation(self, user_id: str, title: Optional[str] = None) -> ConversationRecord:
        record = ConversationRecord(id=str(uuid.uuid4()), user_id=user_id, title=title)
        self._conversations[record.id] = record
        self._messages[record.id] = []
        log.debug("Created conversation %s for user %s", record.id, user_id)
        return record

    async def get_conversation(self, conversation_id: str, user_id: str) -> ConversationRecord | None:
        record = self._conversations.get(conversation_id)
        if record is None or record.user_id != user_id:
            return None
        return record

    async def create_message(
        self,
        conversation_id: str,
        role: TurnRole,
        content: str,
        metadata: Optional[TurnMetadata] = None,
    ) -> MessageRecord:
        if conversation_id not in self._conversations:
            raise KeyError(f"Not found in memory store: {conversation_id}")
        record = MessageRecord(
            id=f"msg_{uuid.uuid4().hex[:12]}",
            conversation_id=conversation_id,
            role=role,
            content=content,
            metadata=metadata or TurnMetadata(),
        )
        self._messages[conversation_id].append(record)
        return record

    async def list_messages(self, conversation_id: str, limit: Optional[int] = None) -> list[MessageRecord]:
        messages = list(self._messages.get(conversation_id, []))
        if limit is not None:
            messages = messages[-limit:] if limit > 0 else []
        return messages
