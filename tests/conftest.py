"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import asyncio
import json
import math
import re
import zlib
from collections.abc import Callable, Coroutine
from typing import Any
from uuid import uuid4

import pytest
from langchain_core.embeddings import Embeddings

from context_rag.ingestion.embedder import EmbeddingClient
from context_rag.retrieval.base import VectorStoreBase
from context_rag.retrieval.models import MetadataFilter, RetrievedDocument
from context_rag.serving.streaming import EventChannel


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── Fakes ───────────────────────────────────────────────────────────────


class FakeEmbeddings(Embeddings):
    """Deterministic bag-of-words embeddings (crc32-hashed buckets)."""

    def __init__(self, size: int = 256) -> None:
        self.size = size

    def _embed(self, text: str) -> list[float]:
        vector = [0.0] * self.size
        for word in re.findall(r"\w+", text.lower()):
            vector[zlib.crc32(word.encode()) % self.size] += 1.0
        return vector

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self._embed(t) for t in texts]

    def embed_query(self, text: str) -> list[float]:
        return self._embed(text)


class InMemoryVectorStore(VectorStoreBase):
    """Dict-backed store with real cosine ranking."""

    def __init__(self) -> None:
        super().__init__("test-collection")
        self.records: dict[str, dict[str, Any]] = {}

    def add(self, content: str, embedding: list[float], metadata: dict[str, Any]) -> str:
        doc_id = str(uuid4())
        self.records[doc_id] = {"content": content, "embedding": embedding, "metadata": dict(metadata)}
        return doc_id

    def delete_where(self, filters: list[MetadataFilter]) -> int:
        if not filters:
            raise ValueError("delete_where requires at least one filter")
        doomed = [
            doc_id
            for doc_id, rec in self.records.items()
            if all(f.matches(rec["metadata"]) for f in filters)
        ]
        for doc_id in doomed:
            del self.records[doc_id]
        return len(doomed)

    def match_documents(
        self,
        query_embedding: list[float],
        *,
        match_threshold: float,
        match_count: int,
        user_id: str | None = None,
    ) -> list[RetrievedDocument]:
        hits = []
        for doc_id, rec in self.records.items():
            if user_id is not None and rec["metadata"].get("by") != user_id:
                continue
            similarity = _cosine(query_embedding, rec["embedding"])
            if similarity > match_threshold:
                hits.append(
                    RetrievedDocument(
                        id=doc_id, content=rec["content"], similarity=similarity, metadata=rec["metadata"]
                    )
                )
        hits.sort(key=lambda h: h.similarity, reverse=True)
        return hits[:match_count]

    def health_check(self) -> bool:
        return True

    def contents(self) -> list[str]:
        return [rec["content"] for rec in self.records.values()]


def _cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


class FakeFetcher:
    """Stands in for :class:`WebFetcher`; serves ``self.html`` and counts calls."""

    def __init__(self, html: str = "") -> None:
        self.html = html
        self.calls: list[str] = []

    async def fetch(self, url: str) -> str:
        self.calls.append(url)
        return self.html


def run_stream(start: Callable[[EventChannel], Coroutine[Any, Any, None]]) -> list[dict[str, Any]]:
    """Run a producer against a fresh channel and return every decoded event."""

    async def _collect() -> list[dict[str, Any]]:
        channel = EventChannel()
        return [json.loads(line) async for line in channel.stream(start(channel))]

    return asyncio.run(_collect())


# ── Fixtures ────────────────────────────────────────────────────────────


@pytest.fixture()
def fake_embeddings() -> FakeEmbeddings:
    return FakeEmbeddings()


@pytest.fixture()
def embedder(fake_embeddings: FakeEmbeddings) -> EmbeddingClient:
    return EmbeddingClient(fake_embeddings, expected_dimensions=fake_embeddings.size)


@pytest.fixture()
def store() -> InMemoryVectorStore:
    return InMemoryVectorStore()


@pytest.fixture()
def fetcher() -> FakeFetcher:
    return FakeFetcher()
