"""Chunking utilities."""

from __future__ import annotations

from typing import Iterable

from cv_screener.core.logging import get_logger
from cv_screener.ingest.types import Chunk, SourceDocument

logger = get_logger(__name__)

MIN_CHUNK_CHARS = 30
MAX_ITERATIONS = 1000


def chunk_text(text: str, window_size: int = 300, overlap: int = 50) -> list[str]:
    """Slide a fixed character window over ``text``.

    The window advances by ``window_size - overlap``; each window is
    stripped and kept only when longer than ``MIN_CHUNK_CHARS``. The loop
    stops once a window reaches the end of the text, when the advance is
    not positive, or after ``MAX_ITERATIONS`` windows.
    """
    chunks: list[str] = []
    start = 0
    iterations = 0
    length = len(text)

    while start < length and iterations < MAX_ITERATIONS:
        end = min(start + window_size, length)
        window = text[start:end].strip()
        if len(window) > MIN_CHUNK_CHARS:
            chunks.append(window)
        if end >= length:
            break
        next_start = end - overlap
        if next_start <= start:
            logger.warning(
                "Chunk window stalled (window_size=%s, overlap=%s); stopping", window_size, overlap
            )
            break
        start = next_start
        iterations += 1

    return chunks


def build_chunks(document: SourceDocument, window_size: int = 300, overlap: int = 50) -> list[Chunk]:
    """Chunk a document and attach ids of the form ``{document_id}_{n}``."""
    return [
        Chunk(
            chunk_id=f"{document.document_id}_{ordinal}",
            document_id=document.document_id,
            display_name=document.display_name,
            text=piece,
            profile=document.profile,
        )
        for ordinal, piece in enumerate(chunk_text(document.text, window_size, overlap), start=1)
    ]


def chunk_corpus(
    documents: Iterable[SourceDocument],
    window_size: int = 300,
    overlap: int = 50,
) -> list[Chunk]:
    """Chunk every document in order."""
    chunks: list[Chunk] = []
    for document in documents:
        produced = build_chunks(document, window_size, overlap)
        if not produced:
            logger.warning("Document %s produced no chunks", document.document_id)
        chunks.extend(produced)
    return chunks


__all__ = ["chunk_text", "build_chunks", "chunk_corpus", "MIN_CHUNK_CHARS", "MAX_ITERATIONS"]
