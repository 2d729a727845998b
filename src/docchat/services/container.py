"""Wire the context-assembly components from ``AppSettings``."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from docchat.context.budget import ContextBudgetFitter
from docchat.context.cache import FailOpenCache, create_context_cache
from docchat.context.embedding_cache import EmbeddingCache
from docchat.context.search_cache import SearchResultCache
from docchat.context.tokenizer import TokenCounter
from docchat.conversation.store import ConversationStore
from docchat.core.loading import load_backend
from docchat.inference import LiteLLMCompletionClient, LiteLLMEmbeddingClient
from docchat.persistence import MemoryDurableStore
from docchat.retrieval.memory_index import MemoryVectorIndex
from docchat.retrieval.ranker import HybridRanker
from docchat.retrieval.search import SearchPipeline
from docchat.services.chat_service import ChatService

if TYPE_CHECKING:
    from docchat.core.config import AppSettings
    from docchat.inference.protocols import IInferenceBackend
    from docchat.persistence.protocols import IDurableStore
    from docchat.retrieval.protocols import IEmbeddingClient, IVectorIndex

log = logging.getLogger(__name__)

EMBEDDINGS_NAMESPACE = "embeddings"
SEARCH_NAMESPACE = "search"
CONVERSATIONS_NAMESPACE = "conversations"


@dataclass
class Services:
    """Everything the HTTP layer needs, built once per process."""

    settings: AppSettings
    counter: TokenCounter
    caches: dict[str, FailOpenCache]
    embedding_cache: EmbeddingCache
    search_cache: SearchResultCache
    search: SearchPipeline
    store: ConversationStore
    durable: IDurableStore
    vector_index: IVectorIndex
    inference: IInferenceBackend
    chat: ChatService

    async def aclose(self) -> None:
        """Release backend connections held by the caches."""
        for cache in self.caches.values():
            await cache.close()


def build_services(
    settings: AppSettings,
    *,
    embedder: Optional[IEmbeddingClient] = None,
    vector_index: Optional[IVectorIndex] = None,
    durable: Optional[IDurableStore] = None,
    inference: Optional[IInferenceBackend] = None,
) -> Services:
    """Build the service graph; explicit collaborators override settings."""
    counter = TokenCounter.from_config(settings.tokenizer)

    cache_cfg = settings.cache
    caches = {
        EMBEDDINGS_NAMESPACE: create_context_cache(
            cache_cfg, EMBEDDINGS_NAMESPACE, cache_cfg.embeddings_ttl_seconds
        ),
        SEARCH_NAMESPACE: create_context_cache(cache_cfg, SEARCH_NAMESPACE, cache_cfg.search_ttl_seconds),
        CONVERSATIONS_NAMESPACE: create_context_cache(
            cache_cfg, CONVERSATIONS_NAMESPACE, cache_cfg.conversations_ttl_seconds
        ),
    }
    embedding_cache = EmbeddingCache(caches[EMBEDDINGS_NAMESPACE], ttl_seconds=cache_cfg.embeddings_ttl_seconds)
    search_cache = SearchResultCache(caches[SEARCH_NAMESPACE], ttl_seconds=cache_cfg.search_ttl_seconds)

    if embedder is None:
        embedder = LiteLLMEmbeddingClient(
            settings.llm.embedding_model,
            dimensions=settings.llm.embedding_dimensions,
            api_key=settings.llm.api_key,
            base_url=settings.llm.base_url,
        )
    if vector_index is None:
        spec = settings.retrieval.vector_index
        vector_index = MemoryVectorIndex(settings) if spec == "memory" else load_backend(spec, settings)
    if durable is None:
        spec = settings.persistence.durable_store
        durable = MemoryDurableStore() if spec == "memory" else load_backend(spec, settings)
    if inference is None:
        inference = LiteLLMCompletionClient(
            timeout=settings.llm.completion_timeout,
            api_key=settings.llm.api_key,
            base_url=settings.llm.base_url,
        )

    search = SearchPipeline(
        embedder=embedder,
        vector_index=vector_index,
        embedding_cache=embedding_cache,
        search_cache=search_cache,
        ranker=HybridRanker.from_config(settings.retrieval),
        config=settings.retrieval,
        embedding_timeout=settings.llm.embedding_timeout,
    )
    store = ConversationStore.from_config(
        caches[CONVERSATIONS_NAMESPACE], counter, cache_cfg, settings.conversation
    )
    chat = ChatService(
        store=store,
        search=search,
        fitter=ContextBudgetFitter.from_config(counter, settings.budget),
        counter=counter,
        durable=durable,
        context_token_budget=settings.budget.context_token_budget,
        system_prompt_reserve=settings.budget.system_prompt_reserve,
        max_context_passages=settings.retrieval.max_context_passages,
        history_turn_limit=settings.conversation.history_turn_limit,
        history_token_limit=settings.conversation.history_token_limit,
    )
    log.info(
        "Services ready: cache=%s, vector_index=%s, durable_store=%s, tokenizer=%s",
        cache_cfg.backend,
        type(vector_index).__name__,
        type(durable).__name__,
        counter.method,
    )
    return Services(
        settings=settings,
        counter=counter,
        caches=caches,
        embedding_cache=embedding_cache,
        search_cache=search_cache,
        search=search,
        store=store,
        durable=durable,
        vector_index=vector_index,
        inference=inference,
        chat=chat,
    )
