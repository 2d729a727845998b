"""Chat turn endpoint: grounded answer plus context-assembly headers."""

from __future__ import annotations

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field

from docchat.api.dependencies import get_services, require_user
from docchat.exceptions import ValidationError
from docchat.hooks import bind_request_context
from docchat.models import ContextSource
from docchat.services.container import Services

log = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])


class ChatMessage(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str


class ChatRequest(BaseModel):
    """One chat turn. Only the newest user message is taken as the question."""

    messages: list[ChatMessage] = Field(min_length=1)
    conversation_id: Optional[str] = None
    document_ids: Optional[list[str]] = None
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    max_tokens: Optional[int] = Field(default=None, ge=1, le=4000)


class ChatResponse(BaseModel):
    conversation_id: str
    answer: str
    grounded: bool
    sources: list[ContextSource] = Field(default_factory=list)
    finish_reason: str = "finished"


@router.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    response: Response,
    user_id: str = Depends(require_user),
    services: Services = Depends(get_services),
) -> ChatResponse:
    """Assemble context, run the completion, and record both turns."""
    question = next((m.content for m in reversed(request.messages) if m.role == "user"), "")
    if not question.strip():
        raise ValidationError("Message content cannot be empty")

    assembled = await services.chat.assemble_context(
        question,
        user_id=user_id,
        conversation_id=request.conversation_id,
        document_ids=request.document_ids,
    )
    bind_request_context(conversation_id=assembled.conversation_id)

    llm = services.settings.llm
    result = await services.inference.infer(
        assembled.messages,
        llm.model,
        temperature=request.temperature if request.temperature is not None else llm.temperature,
        max_tokens=request.max_tokens or llm.max_output_tokens,
    )
    await services.chat.record_turn(
        assembled,
        result.content,
        output_tokens=result.usage.get("completion_tokens") or None,
    )
    log.info(
        "Answered turn in %s (grounded=%s, finish=%s)",
        assembled.conversation_id,
        assembled.grounded,
        result.finish_reason,
    )

    response.headers.update(assembled.headers())
    return ChatResponse(
        conversation_id=assembled.conversation_id,
        answer=result.content,
        grounded=assembled.grounded,
        sources=assembled.sources,
        finish_reason=result.finish_reason,
    )
