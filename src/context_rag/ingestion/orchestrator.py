"""Ingestion orchestrator — generate, embed and persist documents with progress events.

Flow for one request::

    validate ─▶ (URL only) delete previous (source, by) records, fetch page once
             ─▶ pass 1: count documents
             ─▶ pass 2: embed + insert each, emitting {"percentage": n}
             ─▶ {"percentage": 100} | {"error": "..."}

Both passes run over the same fetched page.  A failure on an individual
document is logged and that document is skipped, but it still counts
towards progress; any other failure ends the stream with a single error
event.  Records inserted before a failure are kept.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING
from urllib.parse import urlparse

from context_rag.config import settings
from context_rag.errors import ContextRAGError, ValidationError
from context_rag.ingestion.documents import documents_from_html, generate_documents_from_text
from context_rag.retrieval.models import MetadataFilter

if TYPE_CHECKING:
    from context_rag.ingestion.embedder import EmbeddingClient
    from context_rag.ingestion.fetcher import WebFetcher
    from context_rag.models import Document
    from context_rag.retrieval.base import VectorStoreBase
    from context_rag.serving.streaming import EventChannel

logger = logging.getLogger(__name__)

MIN_WORDS = 2


@dataclass(frozen=True)
class IngestionSource:
    """What to ingest.

    ``text`` is the page URL when ``is_url`` is set, otherwise the raw
    text itself; ``user_name`` labels plain-text uploads.
    """

    text: str
    is_url: bool = False
    user_name: str = ""


def is_valid_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def progress_percentage(processed: int, total: int) -> int:
    """Round half up, so 1 of 8 gives 13 and 1 of 200 gives 1.

    Clamped to ``0..100``.
    """
    if total <= 0:
        return 100
    processed = max(0, min(processed, total))
    return (processed * 200 + total) // (total * 2)


class IngestionOrchestrator:
    """Drive one ingestion request end to end.

    Parameters
    ----------
    embedder:
        Client used to embed each document.
    store:
        Vector store receiving the records.
    fetcher:
        Page fetcher used for URL sources.
    chunk_size, chunk_overlap, text_buffer_limit:
        Forwarded to the document generators.
    """

    def __init__(
        self,
        embedder: EmbeddingClient,
        store: VectorStoreBase,
        fetcher: WebFetcher,
        *,
        chunk_size: int = settings.chunk_size,
        chunk_overlap: int = settings.chunk_overlap,
        text_buffer_limit: int = settings.text_buffer_limit,
    ) -> None:
        self._embedder = embedder
        self._store = store
        self._fetcher = fetcher
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.text_buffer_limit = text_buffer_limit

    # -- public API -----------------------------------------------------------

    async def ingest(self, source: IngestionSource, owner_id: str, channel: EventChannel) -> None:
        """Ingest *source* for *owner_id*, reporting progress on *channel*.

        The channel always receives exactly one terminal event:
        ``{"percentage": 100}`` or ``{"error": message}``.
        """
        async with channel.terminal(success={"percentage": 100}):
            self.validate(source)
            html: str | None = None
            if source.is_url:
                logger.info("Adding context from URL %s for user %s", source.text, owner_id)
                removed = await asyncio.to_thread(
                    self._store.delete_where,
                    [MetadataFilter.equals("source", source.text), MetadataFilter.equals("by", owner_id)],
                )
                if removed:
                    logger.info("Deleted %d old records from %s", removed, source.text)
                html = await self._fetcher.fetch(source.text)
            else:
                logger.info("Adding context from text provided by %s", source.user_name)

            total = sum(1 for _ in self.documents(source, html))

            processed = 0
            stored = 0
            for document in self.documents(source, html):
                if channel.closed:
                    break
                if await self._process(document, owner_id):
                    stored += 1
                processed += 1
                await channel.send({"percentage": progress_percentage(processed, total)})

            logger.info(
                "Processed %d of %d documents from %s (%d without errors)",
                processed,
                total,
                self._label(source),
                stored,
            )

    @staticmethod
    def validate(source: IngestionSource) -> None:
        """Raise :class:`ValidationError` for unusable input."""
        if not source.text or not source.text.strip():
            raise ValidationError("Either text or URL must be provided")
        if source.is_url and not is_valid_http_url(source.text):
            raise ValidationError("Invalid URL provided")

    def documents(self, source: IngestionSource, html: str | None = None) -> Iterator[Document]:
        """Return a fresh single-pass document stream for *source*.

        For URL sources *html* is the already-fetched page body.
        """
        if source.is_url:
            if html is None:
                raise ValueError("URL sources need the fetched page body")
            return documents_from_html(html, source.text, max_size=self.chunk_size, overlap=self.chunk_overlap)
        return generate_documents_from_text(
            source.text,
            source.user_name,
            max_size=self.chunk_size,
            overlap=self.chunk_overlap,
            buffer_limit=self.text_buffer_limit,
        )

    # -- internals ------------------------------------------------------------

    async def _process(self, document: Document, owner_id: str) -> bool:
        """Embed and store one document; ``False`` when that failed.

        Documents under :data:`MIN_WORDS` words count as processed but are
        never embedded or stored.
        """
        if document.word_count() < MIN_WORDS:
            logger.debug("Skipping single-word document from %s", document.metadata.source)
            return True
        owned = document.owned_by(owner_id)
        try:
            embedding = await self._embedder.embed(owned.content)
            await asyncio.to_thread(self._store.add, owned.content, embedding, owned.metadata.to_store())
        except ContextRAGError as exc:
            logger.warning("Skipping document from %s: %s", owned.metadata.source, exc)
            return False
        except Exception:
            logger.exception("Failed to store document from %s", owned.metadata.source)
            return False
        return True

    @staticmethod
    def _label(source: IngestionSource) -> str:
        return source.text if source.is_url else source.user_name
