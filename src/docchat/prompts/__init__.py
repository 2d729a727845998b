"""Prompt templates for grounded chat."""

from __future__ import annotations

from docchat.prompts.chat import (
    CHAT_SYSTEM_PROMPT,
    NO_CONTEXT_MESSAGE,
    build_messages,
    build_system_prompt,
    format_context,
)

__all__ = [
    "CHAT_SYSTEM_PROMPT",
    "NO_CONTEXT_MESSAGE",
    "build_messages",
    "build_system_prompt",
    "format_context",
]
