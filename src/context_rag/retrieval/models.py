"""Domain models for metadata filtering and retrieved context."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class MetadataFilter(BaseModel):
    """Declarative metadata filter for vector-store operations.

    Attributes
    ----------
    field:
        The metadata key to filter on (e.g. ``"source"``, ``"by"``).
    operator:
        Comparison operator — one of ``eq``, ``ne``, ``in``, ``nin``.
    value:
        The value (or list of values for ``in`` / ``nin``) to compare against.
    """

    field: str
    operator: str = "eq"
    value: Any = None

    # -- helpers for common filters ------------------------------------------

    @classmethod
    def equals(cls, field: str, value: Any) -> MetadataFilter:
        return cls(field=field, operator="eq", value=value)

    @classmethod
    def not_equals(cls, field: str, value: Any) -> MetadataFilter:
        return cls(field=field, operator="ne", value=value)

    @classmethod
    def one_of(cls, field: str, values: list[Any]) -> MetadataFilter:
        return cls(field=field, operator="in", value=values)

    def matches(self, metadata: dict[str, Any]) -> bool:
        """Evaluate the filter against a metadata dict, in process."""
        actual = metadata.get(self.field)
        if self.operator == "eq":
            return actual == self.value
        if self.operator == "ne":
            return actual != self.value
        if self.operator == "in":
            return actual in self.value
        if self.operator == "nin":
            return actual not in self.value
        raise ValueError(f"Unsupported filter operator: {self.operator!r}")


class RetrievedDocument(BaseModel):
    """A stored chunk returned by a similarity match.

    ``similarity`` is ``1 - cosine_distance`` and lies in ``[0, 1]`` for
    the non-negative embedding spaces used here.
    """

    id: str
    content: str
    similarity: float
    metadata: dict[str, Any] = Field(default_factory=dict)

    def __str__(self) -> str:  # noqa: D105
        return f"[{self.metadata.get('source', 'unknown')} {self.similarity:.3f}] {self.content[:120]}…"
