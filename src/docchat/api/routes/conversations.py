"""Conversation listing, history and deletion endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from docchat.api.dependencies import get_services, require_user
from docchat.exceptions import ConversationNotFound
from docchat.models import ConversationState, ConversationSummary
from docchat.services.container import Services

router = APIRouter(tags=["conversations"])


@router.get("/conversations", response_model=list[ConversationSummary])
async def list_conversations(
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    user_id: str = Depends(require_user),
    services: Services = Depends(get_services),
) -> list[ConversationSummary]:
    """The caller's live conversations, most recent first."""
    return await services.store.list_for_user(user_id, limit=limit, offset=offset)


@router.get("/conversations/{conversation_id}", response_model=ConversationState)
async def get_conversation(
    conversation_id: str,
    user_id: str = Depends(require_user),
    services: Services = Depends(get_services),
) -> ConversationState:
    """Retained history, rebuilt from the durable store when the cached state expired."""
    state = await services.store.read(conversation_id, user_id)
    if state is not None:
        return state

    record = await services.durable.get_conversation(conversation_id, user_id)
    if record is None:
        raise ConversationNotFound(f"Conversation {conversation_id} not found")
    messages = await services.durable.list_messages(conversation_id)
    return await services.store.create(conversation_id, user_id, [m.to_turn() for m in messages])


@router.delete("/conversations/{conversation_id}", status_code=204)
async def delete_conversation(
    conversation_id: str,
    user_id: str = Depends(require_user),
    services: Services = Depends(get_services),
) -> None:
    """Drop the cached state; the durable record is untouched."""
    if await services.store.read(conversation_id, user_id, max_turns=0) is None:
        raise ConversationNotFound(f"Conversation {conversation_id} not found")
    await services.store.delete(conversation_id, user_id)
