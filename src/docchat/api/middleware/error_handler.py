"""Global exception handlers mapping domain exceptions to HTTP responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from docchat.exceptions import (
    AuthorizationError,
    ConversationNotFound,
    DocChatError,
    UpstreamError,
    UpstreamTimeout,
    ValidationError,
)

log = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register exception-to-HTTP-status mappings."""

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": str(exc), "type": "validation_error"})

    @app.exception_handler(AuthorizationError)
    async def handle_authorization_error(request: Request, exc: AuthorizationError) -> JSONResponse:
        return JSONResponse(status_code=403, content={"error": str(exc), "type": "forbidden"})

    @app.exception_handler(ConversationNotFound)
    async def handle_not_found(request: Request, exc: ConversationNotFound) -> JSONResponse:
        return JSONResponse(status_code=404, content={"error": str(exc), "type": "not_found"})

    @app.exception_handler(UpstreamTimeout)
    async def handle_upstream_timeout(request: Request, exc: UpstreamTimeout) -> JSONResponse:
        return JSONResponse(status_code=504, content={"error": str(exc), "type": "upstream_timeout"})

    @app.exception_handler(UpstreamError)
    async def handle_upstream_error(request: Request, exc: UpstreamError) -> JSONResponse:
        return JSONResponse(status_code=502, content={"error": str(exc), "type": "upstream_error"})

    @app.exception_handler(DocChatError)
    async def handle_generic_error(request: Request, exc: DocChatError) -> JSONResponse:
        log.error("Unhandled %s on %s: %s", type(exc).__name__, request.url.path, exc)
        return JSONResponse(status_code=500, content={"error": "Internal server error", "type": "docchat_error"})
