"""Tests for chunker."""

from cv_screener.ingest.chunker import MAX_ITERATIONS, build_chunks, chunk_corpus, chunk_text
from cv_screener.ingest.types import SourceDocument


def test_windows_cover_text_without_gaps() -> None:
    text = "abcdefghij" * 100
    chunks = chunk_text(text, window_size=300, overlap=50)
    assert [len(chunk) for chunk in chunks] == [300, 300, 300, 250]
    rebuilt = chunks[0] + "".join(chunk[50:] for chunk in chunks[1:])
    assert rebuilt == text


def test_short_text_yields_nothing() -> None:
    assert chunk_text("") == []
    assert chunk_text("x" * 30) == []
    assert chunk_text("   " + "y" * 29 + "   ") == []
    assert chunk_text("z" * 31) == ["z" * 31]


def test_windows_are_trimmed_and_whitespace_windows_dropped() -> None:
    text = "  " + "a" * 40 + " " * 300
    assert chunk_text(text, window_size=100, overlap=10) == ["a" * 40]


def test_overlap_not_smaller_than_window_terminates() -> None:
    text = "word " * 400
    assert chunk_text(text, window_size=100, overlap=100) == [("word " * 20).strip()]
    assert len(chunk_text(text, window_size=100, overlap=250)) == 1
    assert chunk_text(text, window_size=0, overlap=0) == []


def test_iteration_cap_bounds_output() -> None:
    chunks = chunk_text("x" * 100_000, window_size=40, overlap=0)
    assert len(chunks) == MAX_ITERATIONS


def test_chunking_is_deterministic() -> None:
    text = "Name: Ana\nSummary: Backend developer with a long history of shipping.\n" * 20
    assert chunk_text(text) == chunk_text(text)


def test_build_chunks_assigns_sequential_ids() -> None:
    document = SourceDocument(document_id=7, display_name="Ana", text="Skills: " + "python " * 100)
    chunks = build_chunks(document, window_size=300, overlap=50)
    assert [chunk.chunk_id for chunk in chunks] == ["7_1", "7_2", "7_3"]
    assert all(chunk.document_id == 7 and chunk.display_name == "Ana" for chunk in chunks)


def test_chunk_corpus_keeps_document_order() -> None:
    documents = [
        SourceDocument(document_id=1, display_name="A", text="a" * 40),
        SourceDocument(document_id=2, display_name="B", text="too short"),
        SourceDocument(document_id=3, display_name="C", text="c" * 40),
    ]
    assert [chunk.chunk_id for chunk in chunk_corpus(documents)] == ["1_1", "3_1"]
