"""Retrieval orchestration: embed, search, prompt, generate."""

from __future__ import annotations

import contextvars
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Sequence, TypeVar

from cv_screener.core.config import Settings, resolve_embedding_provider, resolve_generation_provider
from cv_screener.core.errors import EmbeddingError, GenerationError, RebuildInProgressError, ScreenerError
from cv_screener.core.logging import get_logger, log_context
from cv_screener.core.metrics import QUERY_COUNT, QUERY_LATENCY
from cv_screener.generation.client import GenerationClient, build_generation_client
from cv_screener.ingest.chunker import chunk_corpus
from cv_screener.ingest.embeddings import EmbeddingClient, build_embedding_client
from cv_screener.ingest.types import IngestReport, SourceDocument
from cv_screener.retrieval.prompts import FALLBACK_ANSWER, QueryKind, build_prompt, classify_query
from cv_screener.retrieval.similarity import DEFAULT_THRESHOLD, RetrievalResult, distinct_documents, search
from cv_screener.store.blob import JsonFileBlobStore
from cv_screener.store.document_store import DocumentStore, IndexedDocument

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class Source:
    display_name: str
    document_id: Any
    relevance: float
    profile: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class Answer:
    answer: str
    query: str
    sources: list[Source] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class RetrievalService:
    """Long-lived entry point for answering questions and managing the index.

    The index snapshot is read from the store on first use and cached.
    ``rebuild_index`` replaces the cached snapshot with the freshly
    embedded set; nothing is ever appended to it.
    """

    def __init__(
        self,
        store: DocumentStore,
        embedder: EmbeddingClient,
        generator: GenerationClient,
        chunk_size: int = 300,
        chunk_overlap: int = 50,
        threshold: float = DEFAULT_THRESHOLD,
        timeout: float = 60.0,
    ) -> None:
        self.store = store
        self.embedder = embedder
        self.generator = generator
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.threshold = threshold
        self.timeout = timeout
        self._documents: list[IndexedDocument] | None = None
        self._lock = threading.Lock()
        self._rebuild_lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="rag-call")

    # Index lifecycle --------------------------------------------------

    def documents(self) -> list[IndexedDocument]:
        with self._lock:
            cached = self._documents
        if cached is not None:
            return cached
        loaded = self.store.load()
        logger.info("Loaded %s documents from existing index", len(loaded))
        with self._lock:
            self._documents = loaded
        return loaded

    def reload(self) -> list[IndexedDocument]:
        with self._lock:
            self._documents = None
        return self.documents()

    def rebuild_index(self, sources: Sequence[SourceDocument]) -> IngestReport:
        """Re-chunk and re-embed every source; failures propagate.

        Only one rebuild runs per service; a concurrent call raises
        ``RebuildInProgressError`` instead of waiting.
        """
        if not self._rebuild_lock.acquire(blocking=False):
            raise RebuildInProgressError("An index rebuild is already running")
        try:
            with log_context(operation="rebuild"):
                chunks = chunk_corpus(sources, self.chunk_size, self.chunk_overlap)
                documents = self.store.rebuild(chunks)
            with self._lock:
                self._documents = documents
        finally:
            self._rebuild_lock.release()
        report = IngestReport(documents=len(sources), chunks=len(documents))
        logger.info("Rebuilt index from %s résumés into %s chunks", report.documents, report.chunks)
        return report

    def ensure_index(self, load_sources: Callable[[], Sequence[SourceDocument]]) -> IngestReport | None:
        """Build the index only when nothing is persisted yet."""
        existing = self.index_size()
        if existing:
            logger.info("Index already contains %s documents", existing)
            return None
        return self.rebuild_index(load_sources())

    def index_size(self) -> int:
        return self.store.count()

    def clear_index(self) -> None:
        self.store.clear()
        with self._lock:
            self._documents = []

    # Query path -------------------------------------------------------

    def retrieve(self, query: str) -> list[RetrievalResult]:
        """Ranked passages for ``query``, one per candidate; errors propagate."""
        kind = classify_query(query)
        documents = self.documents()
        k = self._breadth(kind, documents)
        query_vector = self._call(self.embedder.embed, query, EmbeddingError, "embedding")
        results = search(query_vector, documents, k, threshold=self.threshold)
        logger.info(
            "Retrieved %s passages for %s query (k=%s, chunks=%s)",
            len(results),
            kind.value,
            k,
            len(documents),
        )
        return results

    def answer(self, query: str) -> Answer:
        """Answer ``query`` from the index; never raises for retrieval or model failures."""
        started = time.perf_counter()
        with log_context(operation="answer", query=query):
            logger.info("Processing message")
            try:
                results = self.retrieve(query)
                prompt = build_prompt(query, results)
                text = self._call(self.generator.complete, prompt, GenerationError, "generation")
            except Exception as exc:
                logger.exception("Error processing chat message: %s", exc)
                QUERY_COUNT.labels(outcome="error").inc()
                return Answer(answer=FALLBACK_ANSWER, query=query, error=str(exc) or type(exc).__name__)
            finally:
                QUERY_LATENCY.observe(time.perf_counter() - started)

        QUERY_COUNT.labels(outcome="ok").inc()
        sources = [
            Source(
                display_name=result.metadata.get("display_name", ""),
                document_id=result.metadata.get("document_id"),
                relevance=round(1.0 - result.distance, 3),
                profile=result.metadata.get("profile", {}),
            )
            for result in results
        ]
        return Answer(answer=text, query=query, sources=sources)

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    # ------------------------------------------------------------------

    def _breadth(self, kind: QueryKind, documents: Sequence[IndexedDocument]) -> int:
        # every kind spans the whole corpus: one passage per candidate
        return distinct_documents(documents)

    def _call(
        self,
        fn: Callable[[str], T],
        argument: str,
        error_cls: type[ScreenerError],
        label: str,
    ) -> T:
        context = contextvars.copy_context()
        future = self._executor.submit(context.run, fn, argument)
        try:
            return future.result(timeout=self.timeout)
        except FuturesTimeout as exc:
            future.cancel()
            raise error_cls(f"{label} call timed out after {self.timeout:g}s") from exc


def build_service(settings: Settings) -> RetrievalService:
    """Resolve providers once and wire the long-lived service."""
    embedding_provider = resolve_embedding_provider(settings)
    generation_provider = resolve_generation_provider(settings)
    embedder = build_embedding_client(embedding_provider)
    store = DocumentStore(
        blob=JsonFileBlobStore(settings.index_path),
        embedder=embedder,
        batch_size=settings.batch_size,
        batch_delay=settings.batch_delay_seconds,
        expected_dim=settings.embedding_dim,
    )
    return RetrievalService(
        store=store,
        embedder=embedder,
        generator=build_generation_client(generation_provider),
        chunk_size=settings.chunk_size,
        chunk_overlap=settings.chunk_overlap,
        threshold=settings.similarity_threshold,
        timeout=settings.request_timeout_seconds,
    )


__all__ = ["Answer", "Source", "RetrievalService", "build_service"]
