"""Pluggable token counter shared by every budget decision.

Modes:
  - ``approximate``: ceil(chars / 3.5) (no dependencies, fast)
  - ``tiktoken``: OpenAI tiktoken (requires ``tiktoken`` extra)

One ``TokenCounter`` instance is built from settings and injected everywhere
so that history trimming, context fitting and usage reporting all agree.
"""

from __future__ import annotations

import math
import re
from typing import TYPE_CHECKING, Literal, Optional

from docchat.exceptions import TokenizerError

if TYPE_CHECKING:
    from docchat.core.config import TokenizerConfig

# Cache for tiktoken encoders
_tiktoken_cache: dict[str, object] = {}

_WORD_END_RE = re.compile(r"\S+")


class TokenCounter:
    """Count tokens using the configured method."""

    def __init__(
        self,
        method: Literal["approximate", "tiktoken"] = "approximate",
        model: str = "gpt-4o",
        chars_per_token: float = 3.5,
        fallback_encoding: str = "cl100k_base",
    ) -> None:
        if chars_per_token <= 0:
            raise TokenizerError(f"chars_per_token must be positive, got {chars_per_token}")
        self.method = method
        self.model = model
        self._chars_per_token = chars_per_token
        self._fallback_encoding = fallback_encoding

        if method == "tiktoken":
            try:
                import tiktoken  # noqa: F401
            except ImportError as e:
                raise TokenizerError(
                    "tiktoken not installed. Install with: pip install docchat[tiktoken]"
                ) from e

    @classmethod
    def from_config(cls, config: TokenizerConfig) -> TokenCounter:
        return cls(
            method=config.method,
            model=config.model,
            chars_per_token=config.chars_per_token,
            fallback_encoding=config.fallback_encoding,
        )

    def count(self, text: str, model: Optional[str] = None) -> int:
        """Return the token count for *text*. Empty text costs nothing."""
        if not text:
            return 0

        if self.method == "approximate":
            return self._count_approximate(text)
        return self._count_tiktoken(text, model or self.model)

    def truncate_to_tokens(self, text: str, max_tokens: int, ellipsis: str = "...") -> str | None:
        """Longest word-aligned prefix of *text* that fits *max_tokens* with *ellipsis*.

        The prefix always ends at the end of a whitespace-delimited word, so
        no word is ever cut.  Returns ``None`` when not even the first word
        fits.
        """
        if max_tokens <= 0:
            return None

        ends = [m.end() for m in _WORD_END_RE.finditer(text)]
        lo, hi = 0, len(ends) - 1
        best: int | None = None
        # Token counts grow with prefix length, so binary search the word index.
        while lo <= hi:
            mid = (lo + hi) // 2
            if self.count(text[: ends[mid]] + ellipsis) <= max_tokens:
                best = mid
                lo = mid + 1
            else:
                hi = mid - 1

        if best is None:
            return None
        return text[: ends[best]] + ellipsis

    # ── Backends ─────────────────────────────────────────────────────

    def _count_approximate(self, text: str) -> int:
        return math.ceil(len(text) / self._chars_per_token)

    def _count_tiktoken(self, text: str, model: str) -> int:
        import tiktoken

        cache_key = f"{model}:{self._fallback_encoding}"
        if cache_key not in _tiktoken_cache:
            try:
                _tiktoken_cache[cache_key] = tiktoken.encoding_for_model(model)
            except KeyError:
                _tiktoken_cache[cache_key] = tiktoken.get_encoding(self._fallback_encoding)
        enc = _tiktoken_cache[cache_key]
        return len(enc.encode(text))  # type: ignore[attr-defined]
