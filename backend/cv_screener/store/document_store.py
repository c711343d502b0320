"""Persisted collection of embedded chunks."""

from __future__ import annotations

import contextvars
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Sequence

from cv_screener.core.errors import DimensionMismatchError, StoreError
from cv_screener.core.logging import get_logger
from cv_screener.core.metrics import EMBEDDING_CALLS, INDEX_SIZE, REBUILD_DURATION
from cv_screener.ingest.embeddings import EmbeddingClient
from cv_screener.ingest.types import Chunk
from cv_screener.store.blob import BlobStore

logger = get_logger(__name__)

STAGING_SUFFIX = ".partial"


@dataclass(slots=True)
class IndexedDocument:
    """Stored unit: chunk text, its embedding, and provenance."""

    chunk_id: str
    text: str
    embedding: list[float]
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def document_id(self) -> Any:
        return self.metadata.get("document_id")

    @property
    def display_name(self) -> str:
        return self.metadata.get("display_name", "")

    @classmethod
    def from_chunk(cls, chunk: Chunk, embedding: list[float]) -> "IndexedDocument":
        metadata: dict[str, Any] = {
            "document_id": chunk.document_id,
            "display_name": chunk.display_name,
            "chunk_id": chunk.chunk_id,
        }
        if chunk.profile:
            metadata["profile"] = chunk.profile
        return cls(chunk_id=chunk.chunk_id, text=chunk.text, embedding=embedding, metadata=metadata)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "IndexedDocument":
        try:
            return cls(
                chunk_id=str(payload["id"]),
                text=payload["content"],
                embedding=[float(value) for value in payload["embedding"]],
                metadata=dict(payload.get("metadata") or {}),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise StoreError(f"Malformed index entry: {exc}") from exc

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.chunk_id,
            "content": self.text,
            "embedding": self.embedding,
            "metadata": self.metadata,
        }


class DocumentStore:
    """Embeds chunks in rate-limited batches and persists them as one blob.

    ``rebuild`` writes progress to a staging blob after every batch and
    only replaces the live blob once every chunk has been embedded, so a
    failed run leaves the previous index untouched.
    """

    def __init__(
        self,
        blob: BlobStore,
        embedder: EmbeddingClient,
        batch_size: int = 15,
        batch_delay: float = 0.05,
        expected_dim: int | None = None,
        staging: BlobStore | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        self.blob = blob
        self.embedder = embedder
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.expected_dim = expected_dim
        self.staging = staging if staging is not None else _default_staging(blob)
        self._sleep = sleep

    def rebuild(self, chunks: Iterable[Chunk]) -> list[IndexedDocument]:
        items = list(chunks)
        logger.info("Adding %s chunks to the index", len(items))
        started = time.perf_counter()
        documents: list[IndexedDocument] = []
        dim = self.expected_dim

        try:
            with ThreadPoolExecutor(max_workers=self.batch_size, thread_name_prefix="embed") as pool:
                for start in range(0, len(items), self.batch_size):
                    batch = items[start : start + self.batch_size]
                    contexts = [contextvars.copy_context() for _ in batch]
                    vectors = list(pool.map(self._embed_in, contexts, batch))
                    for chunk, vector in zip(batch, vectors):
                        dim = _check_dimension(dim, vector, f"embedding for chunk {chunk.chunk_id}")
                        documents.append(IndexedDocument.from_chunk(chunk, vector))
                    if self.staging is not None:
                        self.staging.write([doc.to_dict() for doc in documents])
                    logger.info("Processed %s/%s chunks", len(documents), len(items))
                    if start + self.batch_size < len(items) and self.batch_delay > 0:
                        self._sleep(self.batch_delay)
        except Exception:
            logger.exception("Index rebuild failed after %s/%s chunks", len(documents), len(items))
            self._discard_staging()
            raise

        self.blob.write([doc.to_dict() for doc in documents])
        self._discard_staging()
        INDEX_SIZE.set(len(documents))
        REBUILD_DURATION.observe(time.perf_counter() - started)
        logger.info("Saved %s documents to %s", len(documents), self.blob)
        return documents

    def load(self) -> list[IndexedDocument]:
        documents = [IndexedDocument.from_dict(raw) for raw in self.blob.read()]
        dim = self.expected_dim
        for doc in documents:
            dim = _check_dimension(dim, doc.embedding, f"stored embedding {doc.chunk_id}")
        INDEX_SIZE.set(len(documents))
        return documents

    def count(self) -> int:
        return len(self.blob.read())

    def clear(self) -> None:
        self.blob.delete()
        self._discard_staging()
        INDEX_SIZE.set(0)
        logger.info("Index cleared")

    def _embed_in(self, context: contextvars.Context, chunk: Chunk) -> list[float]:
        return context.run(self._embed, chunk)

    def _embed(self, chunk: Chunk) -> list[float]:
        try:
            vector = self.embedder.embed(chunk.text)
        except Exception:
            EMBEDDING_CALLS.labels(outcome="error").inc()
            raise
        EMBEDDING_CALLS.labels(outcome="ok").inc()
        return vector

    def _discard_staging(self) -> None:
        if self.staging is not None:
            self.staging.delete()

def _default_staging(blob: BlobStore) -> BlobStore | None:
    sibling = getattr(blob, "sibling", None)
    return sibling(STAGING_SUFFIX) if sibling is not None else None


def _check_dimension(expected: int | None, vector: Sequence[float], context: str) -> int:
    if not vector:
        raise DimensionMismatchError(expected or 0, 0, context)
    if expected is not None and len(vector) != expected:
        raise DimensionMismatchError(expected, len(vector), context)
    return len(vector)


__all__ = ["IndexedDocument", "DocumentStore"]
