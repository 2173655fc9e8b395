"""Domain models shared by the ingestion and retrieval layers."""

from __future__ import annotations

from pydantic import BaseModel, Field


class DocumentMetadata(BaseModel):
    """Provenance attached to every generated document.

    Attributes
    ----------
    source:
        The page URL, or the label supplied with a plain-text upload.
    by:
        Owner id. Never set by the generators; the orchestrator attaches
        it when the record is persisted.
    """

    source: str
    by: str | None = None

    model_config = {"frozen": True}

    def to_store(self) -> dict[str, str]:
        """Flatten to the plain dict persisted next to the vector."""
        return self.model_dump(exclude_none=True)


class Document(BaseModel):
    """A single chunk of text ready to be embedded."""

    content: str = Field(min_length=1)
    metadata: DocumentMetadata

    model_config = {"frozen": True}

    def word_count(self) -> int:
        return len(self.content.split())

    def owned_by(self, owner_id: str) -> Document:
        """Return a copy whose metadata records *owner_id* as ``by``."""
        return self.model_copy(update={"metadata": DocumentMetadata(source=self.metadata.source, by=owner_id)})
