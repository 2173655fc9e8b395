"""Context retriever — embed a query and fetch the closest stored chunks.

Usage::

    retriever = ContextRetriever(embedder, store)
    documents = await retriever.retrieve("Are cats mammals?", user_id="u-1")
    for doc in documents:
        print(doc.similarity, doc.content[:80])
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from context_rag.config import settings
from context_rag.errors import ContextRAGError, UpstreamServiceError

if TYPE_CHECKING:
    from context_rag.ingestion.embedder import EmbeddingClient
    from context_rag.retrieval.base import VectorStoreBase
    from context_rag.retrieval.models import RetrievedDocument

logger = logging.getLogger(__name__)


class ContextRetriever:
    """High-level retriever that wraps any :class:`VectorStoreBase`.

    Parameters
    ----------
    embedder:
        Client used to embed the query.
    store:
        A concrete vector-store backend.
    match_threshold:
        Minimum similarity; records at or below it are discarded.
    match_count:
        Maximum number of records returned.
    """

    def __init__(
        self,
        embedder: EmbeddingClient,
        store: VectorStoreBase,
        *,
        match_threshold: float = settings.match_threshold,
        match_count: int = settings.match_count,
    ) -> None:
        self._embedder = embedder
        self._store = store
        self.match_threshold = match_threshold
        self.match_count = match_count

    async def retrieve(self, query: str, *, user_id: str | None = None) -> list[RetrievedDocument]:
        """Return up to ``match_count`` chunks ranked by descending similarity.

        Parameters
        ----------
        query:
            Natural-language query string.
        user_id:
            Restrict matches to records owned by this user; ``None``
            searches every owner.
        """
        embedding = await self._embedder.embed(query)
        try:
            documents = await asyncio.to_thread(
                self._store.match_documents,
                embedding,
                match_threshold=self.match_threshold,
                match_count=self.match_count,
                user_id=user_id,
            )
        except ContextRAGError:
            raise
        except Exception as exc:
            logger.warning("Vector search failed: %s", exc)
            raise UpstreamServiceError("Failed to retrieve relevant documents", "vector-store") from exc

        documents = sorted(documents, key=lambda doc: doc.similarity, reverse=True)[: self.match_count]
        logger.info("Matched %d context documents (user scope: %s)", len(documents), user_id or "all")
        return documents
