"""Query embeddings over litellm."""

from __future__ import annotations

import logging
from typing import Any, Optional

from docchat.exceptions import UpstreamError
from docchat.inference.completions import connection_kwargs

log = logging.getLogger(__name__)


class LiteLLMEmbeddingClient:
    """Produces query embeddings through litellm.

    Timeouts are applied by the caller (the search pipeline), which knows
    how to degrade when the service is slow.  Provider failures surface as
    :class:`UpstreamError`.
    """

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        *,
        dimensions: Optional[int] = None,
        api_key: str = "",
        base_url: str = "",
    ) -> None:
        self._model = model
        self._extra: dict[str, Any] = connection_kwargs(api_key, base_url)
        if dimensions:
            self._extra["dimensions"] = dimensions

    @property
    def model(self) -> str:
        return self._model

    async def embed(self, text: str) -> list[float]:
        from litellm import aembedding

        try:
            response = await aembedding(model=self._model, input=[text], **self._extra)
        except Exception as e:
            raise UpstreamError(f"Embedding call to {self._model} failed: {e}") from e
        item = response.data[0]
        vector = item["embedding"] if isinstance(item, dict) else item.embedding
        log.debug("Embedded %d chars with %s (%d dims)", len(text), self._model, len(vector))
        return [float(x) for x in vector]
