"""Cosine similarity ranking with one passage per source document."""

from __future__ import annotations

import math
import warnings
from dataclasses import dataclass
from typing import Any, Sequence

from cv_screener.core.errors import DimensionMismatchError, EmptyIndexWarning
from cv_screener.core.logging import get_logger
from cv_screener.store.document_store import IndexedDocument

logger = get_logger(__name__)

DEFAULT_THRESHOLD = 0.1


@dataclass(slots=True)
class RetrievalResult:
    text: str
    metadata: dict[str, Any]
    distance: float

    @property
    def similarity(self) -> float:
        return 1.0 - self.distance


@dataclass(slots=True)
class _Scored:
    document: IndexedDocument
    similarity: float


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """``dot(a, b) / (|a| * |b|)``; 0.0 when either vector has zero norm."""
    if len(a) != len(b):
        raise DimensionMismatchError(len(a), len(b))
    if not a:
        raise DimensionMismatchError(1, 0, "empty vector")
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    similarity = dot / (norm_a * norm_b)
    if math.isnan(similarity):
        return 0.0
    # clamp float drift
    return max(-1.0, min(1.0, similarity))


def rank(query_vector: Sequence[float], documents: Sequence[IndexedDocument]) -> list[_Scored]:
    """Score every document and sort descending; ties keep insertion order."""
    if not query_vector:
        raise DimensionMismatchError(1, 0, "query vector")
    scored = []
    for doc in documents:
        if len(doc.embedding) != len(query_vector):
            raise DimensionMismatchError(len(query_vector), len(doc.embedding), f"stored embedding {doc.chunk_id}")
        scored.append(_Scored(document=doc, similarity=cosine_similarity(query_vector, doc.embedding)))
    scored.sort(key=lambda item: item.similarity, reverse=True)
    return scored


def search(
    query_vector: Sequence[float],
    documents: Sequence[IndexedDocument],
    k: int,
    threshold: float = DEFAULT_THRESHOLD,
) -> list[RetrievalResult]:
    """Top ``k`` passages above ``threshold``, at most one per document id."""
    if not documents:
        warnings.warn("Search requested on an empty index", EmptyIndexWarning, stacklevel=2)
        return []
    if k <= 0:
        return []

    ranked = rank(query_vector, documents)
    relevant = [item for item in ranked if item.similarity > threshold]

    best: dict[Any, _Scored] = {}
    for item in relevant:
        key = item.document.document_id
        current = best.get(key)
        if current is None or item.similarity > current.similarity:
            best[key] = item

    unique = sorted(best.values(), key=lambda item: item.similarity, reverse=True)[:k]
    logger.debug(
        "Searched %s chunks: %s above threshold, %s unique documents, %s returned",
        len(documents),
        len(relevant),
        len(best),
        len(unique),
    )
    return [_to_result(item) for item in unique]


def exhaustive(query_vector: Sequence[float], documents: Sequence[IndexedDocument]) -> list[RetrievalResult]:
    """Every stored chunk ranked by similarity, no threshold and no de-duplication."""
    if not documents:
        warnings.warn("Exhaustive search requested on an empty index", EmptyIndexWarning, stacklevel=2)
        return []
    return [_to_result(item) for item in rank(query_vector, documents)]


def distinct_documents(documents: Sequence[IndexedDocument]) -> int:
    return len({doc.document_id for doc in documents})


def _to_result(item: _Scored) -> RetrievalResult:
    return RetrievalResult(
        text=item.document.text,
        metadata=dict(item.document.metadata),
        distance=1.0 - item.similarity,
    )


__all__ = [
    "RetrievalResult",
    "cosine_similarity",
    "rank",
    "search",
    "exhaustive",
    "distinct_documents",
    "DEFAULT_THRESHOLD",
]
