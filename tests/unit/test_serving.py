"""Unit tests for the serving layer."""

from __future__ import annotations

import json
from collections.abc import Iterator
from unittest.mock import patch

import pytest
from conftest import FakeEmbeddings, FakeFetcher, InMemoryVectorStore
from fastapi.testclient import TestClient
from langchain_core.language_models.fake_chat_models import GenericFakeChatModel
from langchain_core.messages import AIMessage

from context_rag.chat.llm import CompletionClient
from context_rag.config import Settings
from context_rag.ingestion.embedder import EmbeddingClient
from context_rag.serving.app import create_app
from context_rag.services import assemble_services, build_services

URL = "https://example.com/cats"
PAGE = "<title>Cats</title><h1>Facts</h1><p>Cats are mammals that purr.</p>"


@pytest.fixture()
def store() -> InMemoryVectorStore:
    return InMemoryVectorStore()


@pytest.fixture()
def client(store: InMemoryVectorStore) -> Iterator[TestClient]:
    fake = FakeEmbeddings()
    llm = GenericFakeChatModel(messages=iter([AIMessage(content="Cats are mammals.")] * 5))
    services = assemble_services(
        store,
        EmbeddingClient(fake, expected_dimensions=fake.size),
        CompletionClient(llm),
        FakeFetcher(PAGE),
    )
    with TestClient(create_app(services)) as test_client:
        yield test_client


def _events(response) -> list[dict]:
    return [json.loads(line) for line in response.text.splitlines() if line.strip()]


def test_health_endpoint(client: TestClient) -> None:
    """GET /health should return 200 with status ok."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


class TestContextEndpoint:
    def test_text_ingestion_streams_progress(self, client: TestClient, store: InMemoryVectorStore) -> None:
        response = client.post(
            "/api/context",
            json={"text": "Cats are mammals.\nDogs are mammals too.", "isUrl": False, "userName": "alice", "userId": "u1"},
        )
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/x-ndjson")
        assert response.headers["cache-control"] == "no-cache"
        assert response.headers["x-accel-buffering"] == "no"
        assert _events(response) == [{"percentage": 100}, {"percentage": 100}]
        (record,) = store.records.values()
        assert record["metadata"] == {"source": "alice", "by": "u1"}

    def test_url_ingestion(self, client: TestClient, store: InMemoryVectorStore) -> None:
        response = client.post("/api/context", json={"text": URL, "isUrl": True, "userId": "u1"})
        assert _events(response)[-1] == {"percentage": 100}
        assert store.contents() == ["Cats > Facts => Cats are mammals that purr."]

    def test_snake_case_fields_accepted(self, client: TestClient, store: InMemoryVectorStore) -> None:
        response = client.post("/api/context", json={"text": URL, "is_url": True, "user_id": "u7"})
        assert response.status_code == 200
        assert all(r["metadata"]["by"] == "u7" for r in store.records.values())

    @pytest.mark.parametrize(
        "body",
        [
            {"text": "", "isUrl": False},
            {"text": "   ", "isUrl": False},
            {"text": "not-a-url", "isUrl": True},
            {"text": "ftp://example.com/x", "isUrl": True},
            {"isUrl": False},
        ],
    )
    def test_invalid_body_rejected_before_streaming(self, client: TestClient, body: dict) -> None:
        response = client.post("/api/context", json=body)
        assert response.status_code == 422


class TestChatEndpoint:
    def test_context_then_tokens(self, client: TestClient) -> None:
        client.post(
            "/api/context",
            json={"text": "Cats are mammals.\nDogs are mammals too.", "userName": "alice", "userId": "u1"},
        )
        response = client.post(
            "/api/chat",
            json={
                "messages": [{"role": "user", "content": "Are cats mammals?"}],
                "query": "Are cats mammals?",
                "useOnlyMyContext": True,
                "userId": "u1",
                "language": "English",
            },
        )
        assert response.status_code == 200
        events = _events(response)
        assert events[0]["type"] == "context"
        assert len(events[0]["documents"]) == 1
        assert events[0]["documents"][0]["similarity"] > 0.78
        assert all(e["type"] == "content" for e in events[1:])
        assert "".join(e["content"] for e in events[1:]) == "Cats are mammals."

    def test_other_users_context_excluded_when_scoped(self, client: TestClient) -> None:
        client.post("/api/context", json={"text": "Cats are mammals.", "userName": "alice", "userId": "u1"})
        response = client.post(
            "/api/chat",
            json={"query": "Are cats mammals?", "useOnlyMyContext": True, "userId": "u2"},
        )
        assert _events(response)[0] == {"type": "context", "documents": []}

    def test_missing_query_rejected(self, client: TestClient) -> None:
        response = client.post("/api/chat", json={"messages": []})
        assert response.status_code == 422

    def test_unknown_role_rejected(self, client: TestClient) -> None:
        response = client.post("/api/chat", json={"query": "q", "messages": [{"role": "tool", "content": "x"}]})
        assert response.status_code == 422


class TestServiceWiring:
    def test_build_services_uses_given_config(self) -> None:
        config = Settings(
            openai_api_key="",
            llm_model_name="local-chat",
            llm_base_url="http://llm.internal:8001/v1",
            llm_temperature=0.4,
            embedding_model="local-embed",
            chunk_size=300,
        )
        with (
            patch("context_rag.retrieval.chroma_store.ChromaVectorStore") as chroma,
            patch("context_rag.ingestion.embedder.OpenAIEmbeddings") as embeddings,
            patch("context_rag.chat.llm.ChatOpenAI") as chat,
        ):
            services = build_services(config)

        assert chroma.call_args.args == (config.chroma_collection,)
        assert embeddings.call_args.kwargs == {
            "model": "local-embed",
            "base_url": "http://llm.internal:8001/v1",
            "api_key": "EMPTY",
        }
        chat_kwargs = chat.call_args.kwargs
        assert chat_kwargs["model"] == "local-chat"
        assert chat_kwargs["base_url"] == "http://llm.internal:8001/v1"
        assert chat_kwargs["temperature"] == 0.4
        assert services.orchestrator.chunk_size == 300
