"""System prompt and context formatting for grounded chat."""

from __future__ import annotations

from typing import Any, Sequence

from docchat.models import CandidatePassage, ConversationTurn

NO_CONTEXT_MESSAGE = "No relevant information found in your uploaded documents."

CHAT_SYSTEM_PROMPT = """You are a helpful AI assistant that answers questions based on the user's uploaded documents.

IMPORTANT INSTRUCTIONS:
1. Always base your answers on the provided context from the user's documents
2. If the context doesn't contain relevant information, clearly state that you cannot find the \
information in the uploaded documents
3. When referencing information, mention which document it came from
4. Be concise but comprehensive in your responses
5. If asked about something not in the documents, politely redirect to document-based queries

CONTEXT FROM USER'S DOCUMENTS:
{context}

If no relevant context is provided above, inform the user that you need them to upload relevant \
documents to answer their question."""


def format_context(passages: Sequence[CandidatePassage]) -> str:
    """Render passages as the context block of the system prompt."""
    if not passages:
        return NO_CONTEXT_MESSAGE
    return "\n\n---\n\n".join(
        f"Document: {p.filename}\nContent: {p.content}\nRelevance Score: {p.combined_score:.3f}"
        for p in passages
    )


def build_system_prompt(passages: Sequence[CandidatePassage]) -> str:
    return CHAT_SYSTEM_PROMPT.format(context=format_context(passages))


def build_messages(
    system_prompt: str,
    history: Sequence[ConversationTurn],
    question: str,
) -> list[dict[str, Any]]:
    """Model message list: system prompt, prior turns, then the new question."""
    return [
        {"role": "system", "content": system_prompt},
        *({"role": turn.role.value, "content": turn.content} for turn in history),
        {"role": "user", "content": question},
    ]
