"""Reduce an HTML page to an ordered stream of structural text elements."""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass

from bs4 import BeautifulSoup

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
TEXT_TAGS = (*HEADING_TAGS, "p", "li")
DEFAULT_TITLE = "No Title"

_WS_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class HtmlElement:
    """One text-bearing element of a page: ``title``, ``h1``..``h6``, ``p`` or ``li``."""

    tag: str
    text: str

    @property
    def heading_level(self) -> int | None:
        """``1``..``6`` for headings, ``None`` for everything else."""
        if self.tag in HEADING_TAGS:
            return int(self.tag[1])
        return None


def _clean(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()


def structure_html(html: str) -> Iterator[HtmlElement]:
    """Yield the page title, then headings, paragraphs and list items in document order.

    Exactly one ``title`` element is always produced first; it falls back
    to ``"No Title"`` when the page has no (or an empty) ``<title>``.
    Whitespace inside each element is collapsed and elements whose text
    is empty are dropped.
    """
    soup = BeautifulSoup(html, "html.parser")

    title = _clean(soup.title.get_text()) if soup.title else ""
    yield HtmlElement(tag="title", text=title or DEFAULT_TITLE)

    for element in soup.find_all(list(TEXT_TAGS)):
        text = _clean(element.get_text())
        if text:
            yield HtmlElement(tag=element.name.lower(), text=text)
