"""Common ingestion data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True, frozen=True)
class SourceDocument:
    """One résumé, normalized to the text that gets chunked."""

    document_id: int
    display_name: str
    text: str
    profile: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class Chunk:
    """Contiguous slice of a document's text; the unit of embedding."""

    chunk_id: str
    document_id: int
    display_name: str
    text: str
    profile: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class IngestReport:
    """Outcome of a full index rebuild."""

    documents: int = 0
    chunks: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"documents": self.documents, "chunks": self.chunks}


__all__ = ["SourceDocument", "Chunk", "IngestReport"]
