"""Cache administration: statistics and tag/namespace invalidation.

Only the shared ``embeddings`` and ``search`` namespaces can be invalidated
from here; conversation state is owned per user and changes only through the
conversation endpoints.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from docchat.api.dependencies import get_services, require_user
from docchat.context.cache.key_strategy import user_tag
from docchat.exceptions import AuthorizationError, ValidationError
from docchat.services.container import EMBEDDINGS_NAMESPACE, SEARCH_NAMESPACE, Services

log = logging.getLogger(__name__)

router = APIRouter(tags=["cache"])

ADMIN_NAMESPACES = (EMBEDDINGS_NAMESPACE, SEARCH_NAMESPACE)


class InvalidationResponse(BaseModel):
    removed: int = 0
    namespaces: list[str]


def _check_tag(tag: str, user_id: str) -> None:
    if tag.startswith("conversation:"):
        raise AuthorizationError("Conversation tags cannot be invalidated through the cache API")
    if tag.startswith("user:") and tag != user_tag(user_id):
        raise AuthorizationError("Cannot invalidate another user's cache entries")


@router.get("/cache")
async def cache_stats(services: Services = Depends(get_services)) -> dict[str, dict[str, float]]:
    """Per-namespace hit/miss/set/delete/error counters."""
    return {name: cache.stats.as_dict() for name, cache in services.caches.items()}


@router.delete("/cache", response_model=InvalidationResponse)
async def invalidate_cache(
    tag: Optional[str] = Query(default=None),
    namespace: Optional[str] = Query(default=None),
    user_id: str = Depends(require_user),
    services: Services = Depends(get_services),
) -> InvalidationResponse:
    """Drop entries by ``tag`` (across namespaces, or within ``namespace``), or clear a namespace."""
    if namespace is not None:
        if namespace not in services.caches:
            raise ValidationError(f"Unknown cache namespace: {namespace!r}")
        if namespace not in ADMIN_NAMESPACES:
            raise AuthorizationError(
                f"Cache namespace {namespace!r} cannot be invalidated through the cache API"
            )
    targets = [namespace] if namespace else list(ADMIN_NAMESPACES)

    if tag:
        _check_tag(tag, user_id)
        removed = 0
        for name in targets:
            removed += await services.caches[name].invalidate_tag(tag)
        log.info("Invalidated tag %s in %s: %d entries", tag, targets, removed)
        return InvalidationResponse(removed=removed, namespaces=targets)

    if namespace is None:
        raise ValidationError("Provide a tag or a namespace to invalidate")
    await services.caches[namespace].clear()
    log.info("Cleared cache namespace %s", namespace)
    return InvalidationResponse(namespaces=targets)


@router.post("/cache/documents/{document_id}/invalidate", response_model=InvalidationResponse)
async def document_changed(
    document_id: str,
    user_id: str = Depends(require_user),
    services: Services = Depends(get_services),
) -> InvalidationResponse:
    """Signal that one of the caller's documents was created, updated or deleted."""
    removed = await services.search_cache.invalidate_document(document_id, user_id)
    return InvalidationResponse(removed=removed, namespaces=["search"])
