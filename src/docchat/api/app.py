"""FastAPI application with lifespan management."""

from __future__ import annotations

import importlib.metadata
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import Depends, FastAPI

from docchat.api.dependencies import require_user
from docchat.api.middleware.error_handler import register_error_handlers
from docchat.api.routes import cache, chat, conversations, health
from docchat.core.config import APIConfig, AppSettings
from docchat.core.startup_checks import validate_settings
from docchat.hooks import setup_logging
from docchat.services.container import build_services

log = logging.getLogger(__name__)


def _get_version() -> str:
    """Read package version from installed metadata, with dev fallback."""
    try:
        return importlib.metadata.version("docchat")
    except importlib.metadata.PackageNotFoundError:
        return "0.0.0-dev"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application startup/shutdown lifecycle."""
    settings = AppSettings()
    validate_settings(settings)
    setup_logging(settings.observability)

    app.state.settings = settings
    app.state.services = build_services(settings)
    log.info("docchat %s started", _get_version())
    yield
    await app.state.services.aclose()


_api_config = APIConfig()

app = FastAPI(
    title=_api_config.title,
    description=_api_config.description,
    version=_get_version(),
    lifespan=lifespan,
)
register_error_handlers(app)

app.include_router(health.router)
app.include_router(chat.router, prefix="/api")
app.include_router(conversations.router, prefix="/api")
app.include_router(cache.router, prefix="/api", dependencies=[Depends(require_user)])
