"""Shared fixtures for docchat tests."""

from __future__ import annotations

import pytest

from docchat.context.tokenizer import TokenCounter
from docchat.core.config import AppSettings, CacheConfig, RetrievalConfig
from docchat.models import RawSearchHit
from tests.fakes.fake_clock import ManualClock


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def counter() -> TokenCounter:
    """Approximate tokenizer: ceil(chars / 3.5)."""
    return TokenCounter(method="approximate")


@pytest.fixture
def settings() -> AppSettings:
    """Default test settings (memory cache, in-memory index and store, low threshold)."""
    return AppSettings(
        cache=CacheConfig(backend="memory"),
        retrieval=RetrievalConfig(threshold=0.1),
    )


@pytest.fixture
def sample_hits() -> list[RawSearchHit]:
    """Three hits from two documents describing a refund policy."""
    return [
        RawSearchHit(
            chunk_id="c-1",
            document_id="doc-policy",
            chunk_index=0,
            filename="policy.pdf",
            content=(
                "Refunds are issued within 30 days of purchase when the original receipt is "
                "presented at any store location. Items must be unused and in their original "
                "packaging. Store credit is offered for purchases returned after 30 days but "
                "before 60 days have elapsed."
            ),
            score=0.92,
        ),
        RawSearchHit(
            chunk_id="c-2",
            document_id="doc-policy",
            chunk_index=1,
            filename="policy.pdf",
            content="Gift cards are not refundable.",
            score=0.85,
        ),
        RawSearchHit(
            chunk_id="c-3",
            document_id="doc-faq",
            chunk_index=0,
            filename="faq.md",
            content=(
                "Shipping takes three to five business days. Customers who want a refund for a "
                "damaged item should contact support with a photo of the damage and their order "
                "number so that a replacement or refund can be arranged promptly."
            ),
            score=0.78,
        ),
    ]
