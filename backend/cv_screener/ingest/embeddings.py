"""Embedding clients."""

from __future__ import annotations

import hashlib
import math
import re
from typing import Any

import requests

from cv_screener.core.config import ProviderConfig
from cv_screener.core.errors import ConfigurationError, EmbeddingError
from cv_screener.core.logging import get_logger

logger = get_logger(__name__)

_TOKEN_RE = re.compile(r"\w+")


class EmbeddingClient:
    """Turns text into a fixed-length vector."""

    name: str = "base"
    dim: int | None = None

    def embed(self, text: str) -> list[float]:  # pragma: no cover - interface
        raise NotImplementedError


class HashedEmbeddingClient(EmbeddingClient):
    """Deterministic bag-of-words embedding for offline use."""

    name = "hashed"

    def __init__(self, dim: int = 384) -> None:
        self.dim = dim

    def embed(self, text: str) -> list[float]:
        vector = [0.0] * self.dim
        for token in _tokenize(text):
            vector[_hash_token(token, self.dim)] += 1.0
        _normalize(vector)
        return vector


class _HttpEmbeddingClient(EmbeddingClient):
    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str,
        timeout: float = 60.0,
        dim: int | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.dim = dim
        self.session = session or requests.Session()

    def _post(self, url: str, payload: dict[str, Any], **kwargs: Any) -> dict[str, Any]:
        try:
            resp = self.session.post(url, json=payload, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise EmbeddingError(f"{self.name} embedding request failed: {exc}") from exc
        if resp.status_code in (401, 403):
            raise EmbeddingError(f"{self.name} embedding request unauthenticated ({resp.status_code})")
        if not resp.ok:
            raise EmbeddingError(f"{self.name} embedding request failed ({resp.status_code}): {resp.text[:200]}")
        try:
            return resp.json()
        except ValueError as exc:
            raise EmbeddingError(f"{self.name} returned a non-JSON embedding response") from exc


class GoogleEmbeddingClient(_HttpEmbeddingClient):
    """Generative Language API ``embedContent``."""

    name = "google"

    def embed(self, text: str) -> list[float]:
        url = f"{self.base_url}/models/{self.model}:embedContent"
        payload = {
            "model": f"models/{self.model}",
            "content": {"parts": [{"text": text}]},
        }
        data = self._post(url, payload, params={"key": self.api_key})
        try:
            values = data["embedding"]["values"]
        except (KeyError, TypeError) as exc:
            raise EmbeddingError("google embedding response missing 'embedding.values'") from exc
        return _as_vector(values, self.name)


class OpenAIEmbeddingClient(_HttpEmbeddingClient):
    """OpenAI-compatible ``/embeddings`` endpoint."""

    name = "openai"

    def embed(self, text: str) -> list[float]:
        data = self._post(
            f"{self.base_url}/embeddings",
            {"model": self.model, "input": text},
            headers={"Authorization": f"Bearer {self.api_key}"},
        )
        try:
            values = data["data"][0]["embedding"]
        except (KeyError, IndexError, TypeError) as exc:
            raise EmbeddingError("openai embedding response missing 'data[0].embedding'") from exc
        return _as_vector(values, self.name)


def build_embedding_client(provider: ProviderConfig) -> EmbeddingClient:
    """Construct the client for an already-resolved provider."""
    if provider.kind == "hashed":
        return HashedEmbeddingClient(dim=provider.dim or 384)
    if not provider.api_key or not provider.base_url:
        raise ConfigurationError(f"Embedding provider '{provider.kind}' is missing credentials")
    if provider.kind == "google":
        client_cls: type[_HttpEmbeddingClient] = GoogleEmbeddingClient
    elif provider.kind == "openai":
        client_cls = OpenAIEmbeddingClient
    else:
        raise ConfigurationError(f"Provider '{provider.kind}' does not offer embeddings")
    logger.info("Using %s embeddings (%s)", provider.kind, provider.model)
    return client_cls(
        api_key=provider.api_key,
        model=provider.model,
        base_url=provider.base_url,
        timeout=provider.timeout,
        dim=provider.dim,
    )


def _as_vector(values: Any, provider: str) -> list[float]:
    if not isinstance(values, list) or not values:
        raise EmbeddingError(f"{provider} returned an empty embedding")
    try:
        return [float(value) for value in values]
    except (TypeError, ValueError) as exc:
        raise EmbeddingError(f"{provider} returned a non-numeric embedding") from exc


def _tokenize(text: str) -> list[str]:
    return _TOKEN_RE.findall(text.lower())


def _hash_token(token: str, dim: int) -> int:
    digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big") % dim


def _normalize(vector: list[float]) -> None:
    norm = math.sqrt(sum(value * value for value in vector))
    if norm == 0:
        return
    inv = 1.0 / norm
    for idx, value in enumerate(vector):
        vector[idx] = value * inv


__all__ = [
    "EmbeddingClient",
    "HashedEmbeddingClient",
    "GoogleEmbeddingClient",
    "OpenAIEmbeddingClient",
    "build_embedding_client",
]
