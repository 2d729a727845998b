"""Greedy, score-ordered packing of ranked passages into a token budget."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

from docchat.exceptions import InternalInvariantViolation, ValidationError
from docchat.models import CandidatePassage, ContextWindow

if TYPE_CHECKING:
    from docchat.context.tokenizer import TokenCounter
    from docchat.core.config import BudgetConfig

log = logging.getLogger(__name__)


class ContextBudgetFitter:
    """Selects the longest rank-ordered prefix of passages that fits the budget.

    Passages are taken whole in rank order.  The first one that does not fit
    is cut to a word-aligned prefix (with an ellipsis) if at least
    ``min_truncation_tokens`` remain, and packing stops there.  A later
    passage is never taken in place of an earlier one.
    """

    def __init__(
        self,
        counter: TokenCounter,
        *,
        min_truncation_tokens: int = 50,
        ellipsis: str = "...",
    ) -> None:
        self._counter = counter
        self._min_truncation = min_truncation_tokens
        self._ellipsis = ellipsis

    @classmethod
    def from_config(cls, counter: TokenCounter, config: BudgetConfig) -> ContextBudgetFitter:
        return cls(counter, min_truncation_tokens=config.min_truncation_tokens, ellipsis=config.ellipsis)

    def fit(
        self,
        ranked: Sequence[CandidatePassage],
        budget_tokens: int,
        reserve_tokens: int = 0,
    ) -> ContextWindow:
        if budget_tokens <= 0:
            raise ValidationError(f"Token budget must be positive, got {budget_tokens}")
        if reserve_tokens < 0:
            raise ValidationError(f"Reserved tokens cannot be negative, got {reserve_tokens}")

        available = budget_tokens - reserve_tokens
        if available <= 0:
            return ContextWindow(truncated=True)

        included: list[CandidatePassage] = []
        running = 0
        truncated = False

        for candidate in ranked:
            cost = self._counter.count(candidate.content)
            if running + cost <= available:
                included.append(candidate)
                running += cost
                continue

            truncated = True
            remaining = available - running
            if remaining > self._min_truncation:
                cut = self._counter.truncate_to_tokens(candidate.content, remaining, self._ellipsis)
                if cut is not None:
                    included.append(candidate.model_copy(update={"content": cut}))
                    running += self._counter.count(cut)
            break

        if running > available:
            log.error("Context fitter overran its budget: %d > %d tokens", running, available)
            raise InternalInvariantViolation(
                f"Context window holds {running} tokens but only {available} were available"
            )

        return ContextWindow(passages=included, total_tokens=running, truncated=truncated)
