"""Turn fetched pages and pasted text into embeddable documents.

Web pages are folded element by element over an explicit
:class:`SectionState`.  Every chunk of a section is prefixed with its
heading breadcrumb, e.g. ``"Guide > Install > Linux => run the script"``,
so a chunk stays meaningful once it is separated from the page.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from context_rag.config import settings
from context_rag.ingestion.chunker import split_into_chunks
from context_rag.ingestion.html import HtmlElement, structure_html
from context_rag.models import Document, DocumentMetadata

if TYPE_CHECKING:
    from context_rag.ingestion.fetcher import WebFetcher

BREADCRUMB_SEP = " > "
CONTENT_SEP = " => "


@dataclass(frozen=True)
class SectionState:
    """Accumulator threaded through :func:`step`.

    Attributes
    ----------
    heading_stack:
        Breadcrumb of the current section: the page title, then one entry
        per heading level down to the current heading.
    buffer:
        Text collected since the last heading.
    new_section:
        ``True`` until the first text element of a section is seen.
    """

    heading_stack: tuple[str, ...] = ()
    buffer: str = ""
    new_section: bool = True

    @property
    def breadcrumb(self) -> str:
        return BREADCRUMB_SEP.join(self.heading_stack)


def _section_documents(
    state: SectionState,
    source: str,
    max_size: int,
    overlap: int,
) -> list[Document]:
    text = state.buffer.strip()
    if not text:
        return []
    prefix = state.breadcrumb + CONTENT_SEP
    return [
        Document(content=prefix + chunk, metadata=DocumentMetadata(source=source))
        for chunk in split_into_chunks(text, max_size, overlap)
    ]


def step(
    state: SectionState,
    element: HtmlElement,
    *,
    source: str,
    max_size: int = settings.chunk_size,
    overlap: int = settings.chunk_overlap,
) -> tuple[SectionState, list[Document]]:
    """Advance the fold by one element.

    A heading at level *n* flushes the pending section, then truncates
    the breadcrumb to *n* entries and pushes the heading text.  Since
    the title always sits at index 0, ``h1`` lands at depth 1, ``h2`` at
    depth 2, and so on.
    """
    if element.tag == "title":
        return SectionState(heading_stack=(element.text,)), []

    level = element.heading_level
    if level is not None:
        emitted = _section_documents(state, source, max_size, overlap)
        stack = state.heading_stack[:level] + (element.text,)
        return SectionState(heading_stack=stack, buffer="", new_section=True), emitted

    if state.new_section:
        return replace(state, buffer=element.text, new_section=False), []
    return replace(state, buffer=f"{state.buffer} {element.text}"), []


def documents_from_html(
    html: str,
    source: str,
    *,
    max_size: int = settings.chunk_size,
    overlap: int = settings.chunk_overlap,
) -> Iterator[Document]:
    """Synchronously fold an already-fetched page into documents."""
    state = SectionState()
    for element in structure_html(html):
        state, emitted = step(state, element, source=source, max_size=max_size, overlap=overlap)
        yield from emitted
    yield from _section_documents(state, source, max_size, overlap)


async def generate_documents_from_url(
    url: str,
    *,
    fetcher: WebFetcher,
    max_size: int = settings.chunk_size,
    overlap: int = settings.chunk_overlap,
) -> AsyncIterator[Document]:
    """Fetch *url* once and yield its breadcrumb-prefixed documents.

    Each call performs its own fetch.  Callers that walk the same page
    more than once should fetch it themselves and use
    :func:`documents_from_html` for each pass.
    """
    html = await fetcher.fetch(url)
    for document in documents_from_html(html, url, max_size=max_size, overlap=overlap):
        yield document


def generate_documents_from_text(
    text: str,
    source_label: str,
    *,
    max_size: int = settings.chunk_size,
    overlap: int = settings.chunk_overlap,
    buffer_limit: int = settings.text_buffer_limit,
) -> Iterator[Document]:
    """Yield documents for pasted plain text.

    Non-blank lines are trimmed and collected into a buffer of roughly
    *buffer_limit* characters; each full buffer is chunked on its own.
    """
    buffer = ""
    for line in text.split("\n"):
        line = line.strip()
        if not line:
            continue
        if len(buffer) + len(line) > buffer_limit:
            yield from _plain_documents(buffer, source_label, max_size, overlap)
            buffer = ""
        buffer += f"{line}\n"
    yield from _plain_documents(buffer, source_label, max_size, overlap)


def _plain_documents(buffer: str, source: str, max_size: int, overlap: int) -> Iterator[Document]:
    for chunk in split_into_chunks(buffer.strip(), max_size, overlap):
        yield Document(content=chunk, metadata=DocumentMetadata(source=source))
