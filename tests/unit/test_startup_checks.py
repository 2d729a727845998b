"""Tests for startup validation checks."""

from __future__ import annotations

import logging

import pytest

from docchat.core.config import (
    AppSettings,
    BudgetConfig,
    CacheConfig,
    RetrievalConfig,
)
from docchat.core.startup_checks import validate_settings


class TestDefaults:
    def test_default_settings_are_valid(self):
        validate_settings(AppSettings())


class TestRankerWeights:
    def test_rejects_weights_not_summing_to_one(self):
        settings = AppSettings(retrieval=RetrievalConfig(semantic_weight=0.6))
        with pytest.raises(ValueError, match="sum to 1.0"):
            validate_settings(settings)

    def test_accepts_custom_weights(self):
        settings = AppSettings(
            retrieval=RetrievalConfig(semantic_weight=0.5, lexical_weight=0.3, length_weight=0.2)
        )
        validate_settings(settings)


class TestBudget:
    def test_rejects_reserve_consuming_whole_budget(self):
        settings = AppSettings(budget=BudgetConfig(context_token_budget=200, system_prompt_reserve=200))
        with pytest.raises(ValueError, match="SYSTEM_PROMPT_RESERVE"):
            validate_settings(settings)

    def test_rejects_non_positive_budget(self):
        settings = AppSettings(budget=BudgetConfig(context_token_budget=0, system_prompt_reserve=0))
        with pytest.raises(ValueError, match="must be positive"):
            validate_settings(settings)


class TestCache:
    def test_redis_requires_url(self):
        settings = AppSettings(cache=CacheConfig(backend="redis", redis_url=""))
        with pytest.raises(ValueError, match="REDIS_URL"):
            validate_settings(settings)

    def test_warns_when_search_outlives_embeddings(self, caplog):
        settings = AppSettings(cache=CacheConfig(search_ttl_seconds=7200, embeddings_ttl_seconds=3600))
        with caplog.at_level(logging.WARNING):
            validate_settings(settings)
        assert "exceeds embedding cache TTL" in caplog.text


class TestRetrieval:
    def test_rejects_passages_above_max_top_k(self):
        settings = AppSettings(retrieval=RetrievalConfig(max_context_passages=60, max_top_k=50))
        with pytest.raises(ValueError, match="MAX_CONTEXT_PASSAGES"):
            validate_settings(settings)

    def test_rejects_top_k_out_of_range(self):
        settings = AppSettings(retrieval=RetrievalConfig(top_k=0))
        with pytest.raises(ValueError, match="TOP_K"):
            validate_settings(settings)

    def test_rejects_inverted_length_window(self):
        settings = AppSettings(
            retrieval=RetrievalConfig(length_ideal_min_chars=2000, length_ideal_max_chars=1000)
        )
        with pytest.raises(ValueError, match="LENGTH_IDEAL"):
            validate_settings(settings)
