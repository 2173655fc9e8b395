"""Sentence-aware text chunking with word-level overlap."""

from __future__ import annotations

import re
from collections.abc import Iterator

# A run of text ending in sentence punctuation, else a bare token.
_UNIT_RE = re.compile(r"[^.!?]+[.!?]+|\S+")


def split_into_chunks(text: str, max_size: int = 1000, overlap: int = 250) -> Iterator[str]:
    """Lazily split *text* into chunks of at most *max_size* characters.

    Sentences are packed greedily into a buffer joined by single spaces.
    When the next sentence no longer fits, the buffer is emitted and the
    following chunk is seeded with trailing words of the previous one,
    roughly *overlap* characters worth.  A sentence longer than
    *max_size* is hard-split at the last space before the limit, or at
    the limit itself when it contains no space.

    Parameters
    ----------
    text:
        Arbitrary input text.
    max_size:
        Maximum number of characters per chunk.  Must be at least 1.
    overlap:
        Target number of characters carried over between consecutive
        chunks.  Clamped to ``max_size - 1``.

    Yields
    ------
    str
        Trimmed, non-empty chunks in input order.
    """
    if max_size < 1:
        raise ValueError(f"max_size must be >= 1, got {max_size}")
    overlap = max(0, min(overlap, max_size - 1))

    buffer = ""
    for match in _UNIT_RE.finditer(text):
        unit = match.group().strip()
        if not unit:
            continue

        if len(unit) > max_size:
            if buffer:
                yield buffer
                buffer = ""
            while len(unit) > max_size:
                head, unit = _hard_split(unit, max_size)
                yield head
            if not unit:
                continue

        candidate = f"{buffer} {unit}" if buffer else unit
        if len(candidate) <= max_size:
            buffer = candidate
            continue

        yield buffer
        buffer = _fit(_overlap_words(buffer, overlap), unit, max_size)

    if buffer:
        yield buffer


def _hard_split(unit: str, max_size: int) -> tuple[str, str]:
    """Cut one slice of at most *max_size* chars off the front of *unit*."""
    head = unit[:max_size]
    cut = head.rfind(" ")
    if cut > 0:
        return head[:cut].strip(), unit[cut:].strip()
    return head, unit[max_size:].strip()


def _overlap_words(chunk: str, overlap: int) -> list[str]:
    """Take whole words off the end of *chunk* until *overlap* chars are reclaimed."""
    words = chunk.split()
    seed: list[str] = []
    size = 0
    while words and size < overlap:
        word = words.pop()
        seed.insert(0, word)
        size += len(word) + 1
    return seed


def _fit(seed: list[str], unit: str, max_size: int) -> str:
    # Oldest overlap words go first so the chunk never exceeds max_size.
    while seed and len(" ".join(seed)) + 1 + len(unit) > max_size:
        seed.pop(0)
    return " ".join([*seed, unit])
