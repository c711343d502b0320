"""Offline stand-ins for provider clients and HTTP sessions."""

from __future__ import annotations

import re
import threading
from typing import Any

from cv_screener.core.errors import EmbeddingError
from cv_screener.generation.client import GenerationClient
from cv_screener.ingest.embeddings import EmbeddingClient
from cv_screener.store.blob import BlobStore
from cv_screener.store.document_store import IndexedDocument

VOCABULARY = ("python", "java", "figma", "kubernetes")
_WORD_RE = re.compile(r"\w+")


class VocabularyEmbedder(EmbeddingClient):
    """Bias term plus one presence flag per vocabulary word."""

    name = "vocabulary"
    dim = len(VOCABULARY) + 1

    def __init__(self, fail_on: str | None = None) -> None:
        self.fail_on = fail_on
        self.calls: list[str] = []
        self.threads: set[str] = set()
        self._lock = threading.Lock()

    def embed(self, text: str) -> list[float]:
        with self._lock:
            self.calls.append(text)
            self.threads.add(threading.current_thread().name)
        if self.fail_on and self.fail_on in text:
            raise EmbeddingError("quota exceeded")
        words = set(_WORD_RE.findall(text.lower()))
        return [1.0] + [1.0 if word in words else 0.0 for word in VOCABULARY]


class ScriptedGenerator(GenerationClient):
    name = "scripted"

    def __init__(self, reply: str = "OK", error: Exception | None = None, block: threading.Event | None = None) -> None:
        self.reply = reply
        self.error = error
        self.block = block
        self.prompts: list[str] = []

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.block is not None:
            self.block.wait(5)
        if self.error is not None:
            raise self.error
        return self.reply


class MemoryBlobStore(BlobStore):
    def __init__(self, records: list[dict[str, Any]] | None = None) -> None:
        self.records = records
        self.writes: list[int] = []

    def exists(self) -> bool:
        return self.records is not None

    def read(self) -> list[dict[str, Any]]:
        return list(self.records or [])

    def write(self, records: list[dict[str, Any]]) -> None:
        self.writes.append(len(records))
        self.records = list(records)

    def delete(self) -> None:
        self.records = None


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("no JSON")
        return self._payload


class FakeSession:
    """Records posts and replays a canned response or raises a transport error."""

    def __init__(self, response: FakeResponse | None = None, error: Exception | None = None) -> None:
        self.response = response or FakeResponse()
        self.error = error
        self.calls: list[dict[str, Any]] = []

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"url": url, **kwargs})
        if self.error is not None:
            raise self.error
        return self.response


def indexed(chunk_id: str, document_id: int, vector: list[float], name: str | None = None) -> IndexedDocument:
    return IndexedDocument(
        chunk_id=chunk_id,
        text=f"passage {chunk_id}",
        embedding=vector,
        metadata={
            "document_id": document_id,
            "display_name": name or f"Candidate {document_id}",
            "chunk_id": chunk_id,
        },
    )


__all__ = [
    "VOCABULARY",
    "VocabularyEmbedder",
    "ScriptedGenerator",
    "MemoryBlobStore",
    "FakeResponse",
    "FakeSession",
    "indexed",
]
