"""Service wiring — build the long-lived clients once and hand them out."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from context_rag.chat.llm import CompletionClient
from context_rag.chat.responder import RetrievalResponder
from context_rag.config import Settings, settings
from context_rag.ingestion.embedder import EmbeddingClient
from context_rag.ingestion.fetcher import WebFetcher
from context_rag.ingestion.orchestrator import IngestionOrchestrator
from context_rag.retrieval.base import VectorStoreBase
from context_rag.retrieval.retriever import ContextRetriever

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything a request handler needs."""

    store: VectorStoreBase
    orchestrator: IngestionOrchestrator
    responder: RetrievalResponder


def assemble_services(
    store: VectorStoreBase,
    embedder: EmbeddingClient,
    completion: CompletionClient,
    fetcher: WebFetcher,
    config: Settings = settings,
) -> Services:
    """Combine already-built clients into :class:`Services`."""
    orchestrator = IngestionOrchestrator(
        embedder,
        store,
        fetcher,
        chunk_size=config.chunk_size,
        chunk_overlap=config.chunk_overlap,
        text_buffer_limit=config.text_buffer_limit,
    )
    retriever = ContextRetriever(
        embedder,
        store,
        match_threshold=config.match_threshold,
        match_count=config.match_count,
    )
    return Services(store=store, orchestrator=orchestrator, responder=RetrievalResponder(retriever, completion))


def build_services(config: Settings = settings) -> Services:
    """Create the default OpenAI + Chroma stack from *config*."""
    from context_rag.chat.llm import get_llm
    from context_rag.ingestion.embedder import get_embedding_function
    from context_rag.retrieval.chroma_store import ChromaVectorStore

    logger.info(
        "Connecting to Chroma at %s:%d (collection %s)",
        config.chroma_host,
        config.chroma_port,
        config.chroma_collection,
    )
    store = ChromaVectorStore(config.chroma_collection, host=config.chroma_host, port=config.chroma_port)
    embedder = EmbeddingClient(get_embedding_function(config), expected_dimensions=config.embedding_dimensions)
    completion = CompletionClient(get_llm(config=config))
    fetcher = WebFetcher(
        max_retries=config.fetch_max_retries,
        retry_delay=config.fetch_retry_delay,
        timeout=config.fetch_timeout,
    )
    return assemble_services(store, embedder, completion, fetcher, config)
