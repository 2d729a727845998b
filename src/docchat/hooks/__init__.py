"""Process-level hooks: logging configuration."""

from __future__ import annotations

from docchat.hooks.logging_config import bind_request_context, setup_logging

__all__ = ["bind_request_context", "setup_logging"]
