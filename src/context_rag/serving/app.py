"""FastAPI application exposing ingestion and grounded chat as NDJSON streams."""

from __future__ import annotations

import argparse
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import StreamingResponse

from context_rag.config import settings
from context_rag.serving.schemas import AddContextRequest, ChatRequest
from context_rag.serving.streaming import NDJSON_MEDIA_TYPE, STREAM_HEADERS, EventChannel
from context_rag.services import Services, build_services

logger = logging.getLogger(__name__)


def create_app(services: Services | None = None) -> FastAPI:
    """Build the application.

    Parameters
    ----------
    services:
        Pre-built service container.  When *None*, the default
        OpenAI + Chroma stack is created at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.services = services if services is not None else build_services(settings)
        logger.info("Services ready (vector store: %s)", type(app.state.services.store).__name__)
        yield

    app = FastAPI(
        title="Context RAG API",
        version="0.1.0",
        description="Streaming ingestion and retrieval-augmented chat.",
        lifespan=lifespan,
    )

    # ── Routes ────────────────────────────────────────────────────────────
    @app.get("/health")
    async def health() -> dict[str, str]:
        """Liveness probe."""
        return {"status": "ok"}

    @app.post("/api/context")
    async def add_context(body: AddContextRequest, request: Request) -> StreamingResponse:
        """Ingest text or a web page, streaming ``{"percentage": n}`` lines."""
        svc: Services = request.app.state.services
        channel = EventChannel()
        producer = svc.orchestrator.ingest(body.to_source(), body.user_id, channel)
        return _stream(channel.stream(producer))

    @app.post("/api/chat")
    async def chat(body: ChatRequest, request: Request) -> StreamingResponse:
        """Answer a query from stored context, streaming the context set then tokens."""
        svc: Services = request.app.state.services
        channel = EventChannel()
        producer = svc.responder.respond(body.to_query(), channel)
        return _stream(channel.stream(producer))

    return app


# `uvicorn context_rag.serving.app:app` entry point.
app = create_app()


def _stream(body: AsyncIterator[str]) -> StreamingResponse:
    return StreamingResponse(body, media_type=NDJSON_MEDIA_TYPE, headers=STREAM_HEADERS)


def main(argv: list[str] | None = None) -> None:
    """Run the API under uvicorn."""
    import uvicorn

    parser = argparse.ArgumentParser(description="Context RAG API server")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8080)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(create_app(), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
