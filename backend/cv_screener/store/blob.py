"""Durable blob storage for the persisted index."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any

import orjson

from cv_screener.core.errors import StoreError


class BlobStore:
    """Read/write store for one structured collection at a fixed key."""

    def exists(self) -> bool:  # pragma: no cover - interface
        raise NotImplementedError

    def read(self) -> list[dict[str, Any]]:  # pragma: no cover - interface
        raise NotImplementedError

    def write(self, records: list[dict[str, Any]]) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def delete(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError


class JsonFileBlobStore(BlobStore):
    """JSON array on the local filesystem, replaced atomically on write."""

    def __init__(self, path: Path) -> None:
        self.path = path.expanduser()

    def sibling(self, suffix: str) -> "JsonFileBlobStore":
        return JsonFileBlobStore(self.path.with_name(self.path.name + suffix))

    def exists(self) -> bool:
        return self.path.is_file()

    def read(self) -> list[dict[str, Any]]:
        if not self.exists():
            return []
        try:
            data = orjson.loads(self.path.read_bytes())
        except orjson.JSONDecodeError as exc:
            raise StoreError(f"Index file {self.path} is not valid JSON") from exc
        if not isinstance(data, list):
            raise StoreError(f"Index file {self.path} must hold a JSON array")
        return data

    def write(self, records: list[dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = orjson.dumps(records, option=orjson.OPT_INDENT_2)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(payload)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def delete(self) -> None:
        self.path.unlink(missing_ok=True)

    def __repr__(self) -> str:
        return f"JsonFileBlobStore({str(self.path)!r})"


__all__ = ["BlobStore", "JsonFileBlobStore"]
