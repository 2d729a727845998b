"""Request-scoped dependencies: caller identity and the service graph."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from fastapi import Header, HTTPException, Request

from docchat.hooks import bind_request_context

if TYPE_CHECKING:
    from docchat.services.container import Services


async def require_user(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Identity of the caller, established by the gateway in front of this service."""
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    bind_request_context(user_id=user_id)
    return user_id


def get_services(request: Request) -> Services:
    return request.app.state.services
