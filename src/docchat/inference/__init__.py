"""Hosted model clients: chat completion and embeddings."""

from __future__ import annotations

from docchat.inference.completions import LiteLLMCompletionClient
from docchat.inference.embeddings import LiteLLMEmbeddingClient
from docchat.inference.protocols import IInferenceBackend, InferenceResult

__all__ = [
    "IInferenceBackend",
    "InferenceResult",
    "LiteLLMCompletionClient",
    "LiteLLMEmbeddingClient",
]
