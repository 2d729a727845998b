"""Chat completion client over litellm."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from docchat.exceptions import UpstreamError, UpstreamTimeout
from docchat.inference.protocols import InferenceResult

log = logging.getLogger(__name__)

_FINISH_REASONS = {"length": "max_output_reached", "content_filter": "content_filtered"}


def connection_kwargs(api_key: str = "", base_url: str = "") -> dict[str, str]:
    """litellm keyword arguments for an explicit key and gateway, when set."""
    kwargs: dict[str, str] = {}
    if api_key:
        kwargs["api_key"] = api_key
    if base_url:
        kwargs["api_base"] = base_url
    return kwargs


def _usage(response: Any) -> dict[str, int]:
    usage = getattr(response, "usage", None)
    if not usage:
        return {}
    return {
        name: int(getattr(usage, name, 0) or 0)
        for name in ("prompt_tokens", "completion_tokens", "total_tokens")
    }


class LiteLLMCompletionClient:
    """One non-streaming chat completion per call.

    Calls are bounded by ``timeout``; a slow provider raises
    :class:`UpstreamTimeout` so the API can answer 504 instead of hanging;
    any other provider failure raises :class:`UpstreamError` (502).
    """

    def __init__(self, *, timeout: float = 60.0, api_key: str = "", base_url: str = "") -> None:
        self._timeout = timeout
        self._connection = connection_kwargs(api_key, base_url)

    async def infer(
        self,
        messages: list[dict[str, Any]],
        model: str,
        **params: Any,
    ) -> InferenceResult:
        from litellm import acompletion

        try:
            response = await asyncio.wait_for(
                acompletion(model=model, messages=messages, **self._connection, **params),
                self._timeout,
            )
        except asyncio.TimeoutError:
            log.warning("Completion for %s timed out after %.1fs", model, self._timeout)
            raise UpstreamTimeout("completion service", self._timeout) from None
        except Exception as e:
            log.warning("Completion for %s failed: %s", model, e)
            raise UpstreamError(f"Completion call to {model} failed: {e}") from e

        choice = response.choices[0]
        return InferenceResult(
            content=choice.message.content or "",
            finish_reason=_FINISH_REASONS.get(choice.finish_reason, "finished"),
            usage=_usage(response),
        )
