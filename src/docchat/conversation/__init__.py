"""TTL-bounded conversation state."""

from __future__ import annotations

from docchat.conversation.store import ConversationStore, conversation_title, trim_turns

__all__ = ["ConversationStore", "conversation_title", "trim_turns"]
