"""
Retrieval — vector storage and similarity matching.

This module wraps the vector store behind a clean interface so that
the ingestion and chat layers never need to know which DB is backing
retrieval.

Public surface
--------------
- :class:`ContextRetriever` — embed a query and rank stored chunks.
- :class:`VectorStoreBase` — abstract backend (subclass for pgvector, etc.).
- :class:`ChromaVectorStore` — default Chroma backend.
- :class:`MetadataFilter`, :class:`RetrievedDocument` — data models.
"""

from context_rag.retrieval.base import VectorStoreBase
from context_rag.retrieval.models import MetadataFilter, RetrievedDocument
from context_rag.retrieval.retriever import ContextRetriever

__all__ = [
    "ChromaVectorStore",
    "ContextRetriever",
    "MetadataFilter",
    "RetrievedDocument",
    "VectorStoreBase",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaVectorStore to avoid pulling in chromadb at import time."""
    if name == "ChromaVectorStore":
        from context_rag.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
