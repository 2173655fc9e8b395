"""Chroma implementation of the vector-store abstraction."""

from __future__ import annotations

import logging
from typing import Any
from uuid import uuid4

import chromadb

from context_rag.config import settings
from context_rag.retrieval.base import VectorStoreBase
from context_rag.retrieval.models import MetadataFilter, RetrievedDocument

logger = logging.getLogger(__name__)


def _build_chroma_where(filters: list[MetadataFilter]) -> dict[str, Any] | None:
    """Convert a list of :class:`MetadataFilter` to Chroma ``where`` syntax."""
    if not filters:
        return None

    _OP_MAP = {
        "eq": "$eq",
        "ne": "$ne",
        "in": "$in",
        "nin": "$nin",
    }

    clauses: list[dict[str, Any]] = []
    for f in filters:
        chroma_op = _OP_MAP.get(f.operator)
        if chroma_op is None:
            raise ValueError(f"Unsupported filter operator: {f.operator!r}")
        clauses.append({f.field: {chroma_op: f.value}})

    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


class ChromaVectorStore(VectorStoreBase):
    """Chroma-backed vector store using cosine distance.

    Parameters
    ----------
    collection_name:
        Name of the Chroma collection.
    host:
        Chroma server hostname.
    port:
        Chroma server port.
    client:
        Pre-built Chroma client; when given, *host* and *port* are ignored.
    """

    def __init__(
        self,
        collection_name: str = settings.chroma_collection,
        *,
        host: str = settings.chroma_host,
        port: int = settings.chroma_port,
        client: Any = None,
    ) -> None:
        super().__init__(collection_name)
        self._client = client if client is not None else chromadb.HttpClient(host=host, port=port)
        self._collection = self._client.get_or_create_collection(
            collection_name,
            metadata={"hnsw:space": "cosine"},
        )

    # -- VectorStoreBase overrides --------------------------------------------

    def add(self, content: str, embedding: list[float], metadata: dict[str, Any]) -> str:
        doc_id = str(uuid4())
        self._collection.add(
            ids=[doc_id],
            embeddings=[embedding],
            documents=[content],
            metadatas=[metadata],
        )
        return doc_id

    def delete_where(self, filters: list[MetadataFilter]) -> int:
        where = _build_chroma_where(filters)
        if where is None:
            raise ValueError("delete_where requires at least one filter")

        existing = self._collection.get(where=where, include=[])
        ids = existing.get("ids", [])
        if ids:
            self._collection.delete(ids=ids)
        return len(ids)

    def match_documents(
        self,
        query_embedding: list[float],
        *,
        match_threshold: float,
        match_count: int,
        user_id: str | None = None,
    ) -> list[RetrievedDocument]:
        where = _build_chroma_where([MetadataFilter.equals("by", user_id)]) if user_id is not None else None

        results = self._collection.query(
            query_embeddings=[query_embedding],
            n_results=match_count,
            where=where,
            include=["documents", "metadatas", "distances"],
        )

        hits: list[RetrievedDocument] = []
        ids = results.get("ids", [[]])[0]
        docs = (results.get("documents") or [[]])[0]
        metas = (results.get("metadatas") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]

        for doc_id, content, meta, dist in zip(ids, docs, metas, distances):
            similarity = 1.0 - dist
            if similarity <= match_threshold:
                continue
            hits.append(
                RetrievedDocument(
                    id=doc_id,
                    content=content or "",
                    similarity=similarity,
                    metadata=meta or {},
                )
            )
        hits.sort(key=lambda hit: hit.similarity, reverse=True)
        return hits

    def health_check(self) -> bool:
        try:
            self._client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False
