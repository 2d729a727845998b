"""Health check endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe: 200 whenever the process is up."""
    return {"status": "ok"}


@router.get("/ready")
async def ready(request: Request) -> dict[str, str]:
    """Readiness probe: ready once the service graph has been built."""
    if getattr(request.app.state, "services", None) is None:
        return {"status": "starting"}
    return {"status": "ready"}
