"""Inference backend protocol implemented by every completion client."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@dataclass
class InferenceResult:
    """Result from a single completion call."""

    content: str
    finish_reason: str = "finished"
    usage: dict[str, int] = field(default_factory=dict)


@runtime_checkable
class IInferenceBackend(Protocol):
    """Protocol for pluggable completion backends."""

    async def infer(
        self,
        messages: list[dict[str, Any]],
        model: str,
        **params: Any,
    ) -> InferenceResult:
        """Run one chat completion over *messages*."""
        ...
