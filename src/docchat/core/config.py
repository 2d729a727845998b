"""Nested pydantic-settings configuration for the application.

Each group reads its own ``DOCCHAT_<GROUP>_*`` environment variables::

    export DOCCHAT_CACHE_BACKEND=redis
    export DOCCHAT_CACHE_SEARCH_TTL_SECONDS=120
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class LLMConfig(BaseSettings):
    """Hosted completion and embedding models.

    Env vars use ``DOCCHAT_LLM_`` prefix.
    """

    model_config = {"env_prefix": "DOCCHAT_LLM_"}

    model: str = "gpt-4-turbo"
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 1536
    api_key: str = ""
    base_url: str = ""
    temperature: float = 0.1
    max_output_tokens: int = 1000
    completion_timeout: float = 60.0
    embedding_timeout: float = 10.0


class CacheConfig(BaseSettings):
    """Embedding, search-result and conversation cache configuration.

    Env vars use ``DOCCHAT_CACHE_`` prefix.  TTLs are per namespace.
    """

    model_config = {"env_prefix": "DOCCHAT_CACHE_"}

    backend: Literal["memory", "redis"] = "memory"
    redis_url: str = "redis://localhost:6379"
    key_prefix: str = "rag_cache:"
    max_entries: int = Field(default=1000, ge=1)
    embeddings_ttl_seconds: int = Field(default=3600, gt=0)
    search_ttl_seconds: int = Field(default=300, gt=0)
    conversations_ttl_seconds: int = Field(default=86400, gt=0)
    operation_timeout: float = Field(default=0.5, gt=0.0)


class RetrievalConfig(BaseSettings):
    """Vector search and hybrid ranking configuration.

    Env vars use ``DOCCHAT_RETRIEVAL_`` prefix.  ``vector_index`` is ``memory``
    or a dotted path ``package.module:ClassName`` whose constructor takes the
    ``AppSettings``.
    """

    model_config = {"env_prefix": "DOCCHAT_RETRIEVAL_"}

    top_k: int = 5
    max_top_k: int = 50
    threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    max_query_length: int = 1000
    vector_index: str = "memory"
    max_context_passages: int = 5
    vector_timeout: float = 5.0
    semantic_weight: float = 0.7
    lexical_weight: float = 0.2
    length_weight: float = 0.1
    length_ideal_min_chars: int = Field(default=200, ge=1)
    length_ideal_max_chars: int = Field(default=1000, ge=1)


class BudgetConfig(BaseSettings):
    """Token budget for retrieved context.

    Env vars use ``DOCCHAT_BUDGET_`` prefix.
    """

    model_config = {"env_prefix": "DOCCHAT_BUDGET_"}

    context_token_budget: int = 3000
    system_prompt_reserve: int = 200
    min_truncation_tokens: int = 50
    ellipsis: str = "..."


class ConversationConfig(BaseSettings):
    """Conversation state retention and history limits.

    Env vars use ``DOCCHAT_CONVERSATION_`` prefix.
    """

    model_config = {"env_prefix": "DOCCHAT_CONVERSATION_"}

    max_retained_turns: int = Field(default=100, ge=1)
    max_retained_tokens: int = Field(default=8000, ge=1)
    history_turn_limit: int = Field(default=10, ge=1)
    history_token_limit: int = Field(default=3000, ge=1)


class PersistenceConfig(BaseSettings):
    """Durable conversation/message store.

    Env vars use ``DOCCHAT_PERSISTENCE_`` prefix.  ``durable_store`` is
    ``memory`` or a dotted path ``package.module:ClassName`` whose
    constructor takes the ``AppSettings``.
    """

    model_config = {"env_prefix": "DOCCHAT_PERSISTENCE_"}

    durable_store: str = "memory"


class TokenizerConfig(BaseSettings):
    """Tokenizer configuration.

    Env vars use ``DOCCHAT_TOKENIZER_`` prefix.
    """

    model_config = {"env_prefix": "DOCCHAT_TOKENIZER_"}

    method: Literal["approximate", "tiktoken"] = "approximate"
    chars_per_token: float = Field(default=3.5, gt=0.0)
    model: str = "gpt-4o"
    fallback_encoding: str = "cl100k_base"


class ObservabilityConfig(BaseSettings):
    """Observability configuration.

    Env vars use ``DOCCHAT_OBSERVABILITY_`` prefix.
    """

    model_config = {"env_prefix": "DOCCHAT_OBSERVABILITY_"}

    service_name: str = "docchat"
    log_level: str = "INFO"
    log_format: Literal["auto", "json", "console"] = "auto"


class APIConfig(BaseSettings):
    """HTTP surface configuration.

    Env vars use ``DOCCHAT_API_`` prefix.
    """

    model_config = {"env_prefix": "DOCCHAT_API_"}

    title: str = "docchat"
    description: str = "Grounded question answering over uploaded documents"
    port: int = 8080


class AppSettings(BaseSettings):
    """Top-level application settings aggregating all sub-configs.

    Each sub-config reads its own ``DOCCHAT_<GROUP>_*`` env vars.
    """

    llm: LLMConfig = Field(default_factory=LLMConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    budget: BudgetConfig = Field(default_factory=BudgetConfig)
    conversation: ConversationConfig = Field(default_factory=ConversationConfig)
    persistence: PersistenceConfig = Field(default_factory=PersistenceConfig)
    tokenizer: TokenizerConfig = Field(default_factory=TokenizerConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)
    api: APIConfig = Field(default_factory=APIConfig)
