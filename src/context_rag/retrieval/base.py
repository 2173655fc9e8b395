"""Abstract base class for vector-store backends.

Adding a new backend (pgvector, Qdrant, Pinecone …) only requires
subclassing :class:`VectorStoreBase` and implementing the four abstract
methods.  The ingestion and chat layers are backend-agnostic.

Methods are synchronous; async callers run them through
:func:`asyncio.to_thread`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from context_rag.retrieval.models import MetadataFilter, RetrievedDocument


class VectorStoreBase(ABC):
    """Backend-agnostic vector-store interface.

    Parameters
    ----------
    collection_name:
        Logical name of the collection / index / table.
    """

    def __init__(self, collection_name: str) -> None:
        self.collection_name = collection_name

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def add(self, content: str, embedding: list[float], metadata: dict[str, Any]) -> str:
        """Insert one record and return its newly generated id."""
        ...

    @abstractmethod
    def delete_where(self, filters: list[MetadataFilter]) -> int:
        """Delete every record matching **all** *filters*.

        Returns the number of records removed.  An empty filter list is
        rejected rather than interpreted as "delete everything".
        """
        ...

    @abstractmethod
    def match_documents(
        self,
        query_embedding: list[float],
        *,
        match_threshold: float,
        match_count: int,
        user_id: str | None = None,
    ) -> list[RetrievedDocument]:
        """Return the records most similar to *query_embedding*.

        Parameters
        ----------
        query_embedding:
            Dense vector for the query.
        match_threshold:
            Only records with ``similarity > match_threshold`` are kept,
            where ``similarity = 1 - cosine_distance``.
        match_count:
            Maximum number of records returned.
        user_id:
            When given, only records whose ``metadata.by`` equals it.

        Returns
        -------
        list[RetrievedDocument]
            Ordered by descending similarity.
        """
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        ...
