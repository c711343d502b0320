"""Tests for the persisted document store."""

from pathlib import Path

import pytest

from cv_screener.core.errors import DimensionMismatchError, EmbeddingError, StoreError
from cv_screener.ingest.embeddings import HashedEmbeddingClient
from cv_screener.ingest.types import Chunk
from cv_screener.store.blob import JsonFileBlobStore
from cv_screener.store.document_store import DocumentStore

from helpers import MemoryBlobStore, VocabularyEmbedder


def _chunks(count: int, document_id: int = 1) -> list[Chunk]:
    return [
        Chunk(
            chunk_id=f"{document_id}_{n}",
            document_id=document_id,
            display_name=f"Candidate {document_id}",
            text=f"chunk number {n} mentions python and java",
        )
        for n in range(1, count + 1)
    ]


def _store(tmp_path: Path, embedder=None, **kwargs) -> DocumentStore:
    kwargs.setdefault("sleep", lambda _: None)
    return DocumentStore(
        blob=JsonFileBlobStore(tmp_path / "index.json"),
        embedder=embedder or HashedEmbeddingClient(dim=16),
        **kwargs,
    )


def test_rebuild_persists_and_loads(tmp_path: Path) -> None:
    store = _store(tmp_path)
    built = store.rebuild(_chunks(3))
    loaded = store.load()
    assert store.count() == 3
    assert [doc.chunk_id for doc in loaded] == ["1_1", "1_2", "1_3"]
    assert loaded[0].metadata == {"document_id": 1, "display_name": "Candidate 1", "chunk_id": "1_1"}
    assert loaded[0].embedding == pytest.approx(built[0].embedding)
    assert all(len(doc.embedding) == 16 for doc in loaded)


def test_load_without_index_is_empty(tmp_path: Path) -> None:
    store = _store(tmp_path)
    assert store.load() == []
    assert store.count() == 0


def test_rebuild_replaces_previous_index(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.rebuild(_chunks(5, document_id=1))
    store.rebuild(_chunks(2, document_id=2))
    assert [doc.chunk_id for doc in store.load()] == ["2_1", "2_2"]


def test_rebuild_is_idempotent(tmp_path: Path) -> None:
    store = _store(tmp_path)
    chunks = _chunks(4)
    store.rebuild(chunks)
    first = store.load()
    store.rebuild(chunks)
    second = store.load()
    assert len(first) == len(second)
    assert [doc.metadata for doc in first] == [doc.metadata for doc in second]


def test_batches_are_staged_and_throttled(tmp_path: Path) -> None:
    pauses: list[float] = []
    staging = MemoryBlobStore()
    embedder = VocabularyEmbedder()
    store = DocumentStore(
        blob=MemoryBlobStore(),
        embedder=embedder,
        batch_size=2,
        batch_delay=0.25,
        staging=staging,
        sleep=pauses.append,
    )
    store.rebuild(_chunks(5))
    assert staging.writes == [2, 4, 5]
    assert staging.records is None
    assert pauses == [0.25, 0.25]
    assert len(embedder.calls) == 5
    assert all(name.startswith("embed") for name in embedder.threads)


def test_failed_embedding_keeps_previous_index(tmp_path: Path) -> None:
    good = _store(tmp_path, embedder=VocabularyEmbedder())
    good.rebuild(_chunks(2, document_id=1))

    failing = _store(tmp_path, embedder=VocabularyEmbedder(fail_on="number 3"), batch_size=2)
    with pytest.raises(EmbeddingError):
        failing.rebuild(_chunks(4, document_id=2))

    assert [doc.chunk_id for doc in failing.load()] == ["1_1", "1_2"]
    assert not (tmp_path / "index.json.partial").exists()


def test_inconsistent_embedding_dimensions_abort_rebuild(tmp_path: Path) -> None:
    class RaggedEmbedder(VocabularyEmbedder):
        def embed(self, text: str) -> list[float]:
            vector = super().embed(text)
            return vector + [0.0] if "number 2" in text else vector

    store = _store(tmp_path, embedder=RaggedEmbedder())
    with pytest.raises(DimensionMismatchError):
        store.rebuild(_chunks(3))
    assert store.count() == 0


def test_expected_dimension_is_enforced(tmp_path: Path) -> None:
    with pytest.raises(DimensionMismatchError):
        _store(tmp_path, embedder=HashedEmbeddingClient(dim=8), expected_dim=16).rebuild(_chunks(1))

    _store(tmp_path, embedder=HashedEmbeddingClient(dim=8)).rebuild(_chunks(1))
    with pytest.raises(DimensionMismatchError):
        _store(tmp_path, expected_dim=16).load()


def test_clear_removes_index(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.rebuild(_chunks(2))
    store.clear()
    assert not (tmp_path / "index.json").exists()
    assert store.load() == []


def test_corrupt_index_raises_store_error(tmp_path: Path) -> None:
    (tmp_path / "index.json").write_text("{not json")
    with pytest.raises(StoreError):
        _store(tmp_path).load()

    (tmp_path / "index.json").write_text('[{"id": "1_1"}]')
    with pytest.raises(StoreError):
        _store(tmp_path).load()


def test_candidate_profile_is_persisted_with_chunks(tmp_path: Path) -> None:
    profile = {"email": "ana@example.com", "skills": {"technical": ["Python"]}}
    chunk = Chunk(chunk_id="1_1", document_id=1, display_name="Ana", text="python " * 10, profile=profile)
    store = _store(tmp_path)
    store.rebuild([chunk])
    assert store.load()[0].metadata["profile"] == profile
