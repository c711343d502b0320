"""Application configuration handling."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Mapping

import yaml
from pydantic import BaseModel, Field, field_validator

from cv_screener.core.errors import ConfigurationError

ENV_PREFIX = "CVS_"
DEFAULT_CONFIG_PATH = Path("~/.config/cv-screener/config.yaml")

# Provider credentials keep their conventional, unprefixed names.
_CREDENTIAL_ENV: Mapping[str, str] = {
    "GOOGLE_AI_API_KEY": "google_api_key",
    "OPENAI_API_KEY": "openai_api_key",
    "OPENROUTER_API_KEY": "openrouter_api_key",
}

_YAML_KEY_MAP: Mapping[tuple[str, ...], str] = {
    ("storage", "index_path"): "index_path",
    ("storage", "corpus_path"): "corpus_path",
    ("embeddings", "provider"): "embedding_provider",
    ("embeddings", "dim"): "embedding_dim",
    ("embeddings", "google_model"): "google_embedding_model",
    ("embeddings", "openai_model"): "openai_embedding_model",
    ("generation", "provider"): "generation_provider",
    ("generation", "google_model"): "google_chat_model",
    ("generation", "openai_model"): "openai_chat_model",
    ("generation", "openrouter_model"): "openrouter_chat_model",
    ("generation", "temperature"): "temperature",
    ("ingest", "chunk_size"): "chunk_size",
    ("ingest", "chunk_overlap"): "chunk_overlap",
    ("ingest", "batch_size"): "batch_size",
    ("ingest", "batch_delay_seconds"): "batch_delay_seconds",
    ("retrieval", "similarity_threshold"): "similarity_threshold",
    ("retrieval", "request_timeout_seconds"): "request_timeout_seconds",
    ("ingest", "auto_ingest"): "auto_ingest",
}

ProviderKind = Literal["google", "openai", "openrouter", "hashed"]

OPENAI_BASE_URL = "https://api.openai.com/v1"
OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
GOOGLE_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class Settings(BaseModel):
    """Runtime configuration loaded from YAML file and environment variables."""

    index_path: Path = Field(default=Path.home() / ".cv-screener" / "vector_store.json")
    corpus_path: Path = Field(default=Path("cv-generator") / "generated-cvs" / "cv_data.json")

    embedding_provider: Literal["auto", "google", "openai", "hashed"] = "auto"
    embedding_dim: int | None = None
    google_embedding_model: str = "embedding-001"
    openai_embedding_model: str = "text-embedding-ada-002"
    hashed_embedding_dim: int = 384

    generation_provider: Literal["auto", "google", "openai", "openrouter"] = "auto"
    google_chat_model: str = "gemini-1.5-flash"
    openai_chat_model: str = "gpt-3.5-turbo"
    openrouter_chat_model: str = "openai/gpt-3.5-turbo"
    temperature: float = 0.7
    max_output_tokens: int = 2048

    google_api_key: str | None = None
    openai_api_key: str | None = None
    openrouter_api_key: str | None = None

    chunk_size: int = Field(default=300, ge=1)
    chunk_overlap: int = Field(default=50, ge=0)
    batch_size: int = Field(default=15, ge=1)
    batch_delay_seconds: float = Field(default=0.05, ge=0)
    similarity_threshold: float = 0.1
    request_timeout_seconds: float = Field(default=60.0, gt=0)
    auto_ingest: bool = True

    model_config = {
        "validate_assignment": True,
        "extra": "ignore",
    }

    @field_validator("index_path", "corpus_path", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        if isinstance(value, Path):
            return value.expanduser()
        if isinstance(value, str):
            return Path(value).expanduser()
        raise TypeError("paths must be a path or string")

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> "Settings":
        """Load YAML config and overlay env vars; fall back to defaults."""
        config_path = cls._resolve_config_path(path)
        data: dict[str, Any] = {}
        if config_path and config_path.exists():
            with config_path.open("r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
            data.update(_flatten_yaml(raw))
        data.update(_load_env_overrides())
        return cls(**data)

    @staticmethod
    def _resolve_config_path(path: Path | None) -> Path | None:
        if path is not None:
            return path.expanduser()
        env_path = os.environ.get(f"{ENV_PREFIX}CONFIG")
        if env_path:
            return Path(env_path).expanduser()
        resolved_default = DEFAULT_CONFIG_PATH.expanduser()
        return resolved_default if resolved_default.exists() else None


class ProviderConfig(BaseModel):
    """A single resolved provider; `kind` selects the client implementation."""

    kind: ProviderKind
    model: str
    api_key: str | None = None
    base_url: str | None = None
    dim: int | None = None
    temperature: float = 0.7
    max_output_tokens: int = 2048
    timeout: float = 60.0

    model_config = {"frozen": True}


def resolve_embedding_provider(settings: Settings) -> ProviderConfig:
    """Pick the embedding provider once; google is preferred over openai."""
    choice = settings.embedding_provider
    timeout = settings.request_timeout_seconds
    if choice == "hashed":
        return ProviderConfig(kind="hashed", model="hashed", dim=settings.hashed_embedding_dim, timeout=timeout)
    if choice in ("auto", "google") and settings.google_api_key:
        return ProviderConfig(
            kind="google",
            model=settings.google_embedding_model,
            api_key=settings.google_api_key,
            base_url=GOOGLE_BASE_URL,
            dim=settings.embedding_dim,
            timeout=timeout,
        )
    if choice in ("auto", "openai") and settings.openai_api_key:
        return ProviderConfig(
            kind="openai",
            model=settings.openai_embedding_model,
            api_key=settings.openai_api_key,
            base_url=OPENAI_BASE_URL,
            dim=settings.embedding_dim,
            timeout=timeout,
        )
    if choice == "auto":
        raise ConfigurationError("No embedding API key found. Set GOOGLE_AI_API_KEY or OPENAI_API_KEY")
    raise ConfigurationError(f"Embedding provider '{choice}' selected but its API key is not set")


def resolve_generation_provider(settings: Settings) -> ProviderConfig:
    """Pick the chat provider once: google, then openai, then openrouter."""
    choice = settings.generation_provider
    common = {
        "temperature": settings.temperature,
        "max_output_tokens": settings.max_output_tokens,
        "timeout": settings.request_timeout_seconds,
    }
    if choice in ("auto", "google") and settings.google_api_key:
        return ProviderConfig(
            kind="google",
            model=settings.google_chat_model,
            api_key=settings.google_api_key,
            base_url=GOOGLE_BASE_URL,
            **common,
        )
    if choice in ("auto", "openai") and settings.openai_api_key:
        return ProviderConfig(
            kind="openai",
            model=settings.openai_chat_model,
            api_key=settings.openai_api_key,
            base_url=OPENAI_BASE_URL,
            **common,
        )
    if choice in ("auto", "openrouter") and settings.openrouter_api_key:
        return ProviderConfig(
            kind="openrouter",
            model=settings.openrouter_chat_model,
            api_key=settings.openrouter_api_key,
            base_url=OPENROUTER_BASE_URL,
            **common,
        )
    if choice == "auto":
        raise ConfigurationError(
            "No LLM API key provided. Set GOOGLE_AI_API_KEY, OPENAI_API_KEY, or OPENROUTER_API_KEY"
        )
    raise ConfigurationError(f"Generation provider '{choice}' selected but its API key is not set")


def _flatten_yaml(raw: Mapping[str, Any], prefix: tuple[str, ...] = ()) -> dict[str, Any]:
    """Flatten nested YAML configuration to Settings field names."""
    flat: dict[str, Any] = {}
    for key, value in raw.items():
        next_prefix = prefix + (key,)
        if isinstance(value, Mapping):
            flat.update(_flatten_yaml(value, prefix=next_prefix))
        else:
            mapped_key = _YAML_KEY_MAP.get(next_prefix)
            if mapped_key:
                flat[mapped_key] = value
            elif key in Settings.model_fields:
                flat[key] = value
    return flat


def _load_env_overrides() -> dict[str, Any]:
    """Map CVS_-prefixed variables and provider credentials into Settings fields."""
    overrides: dict[str, Any] = {}
    for env_name, field_name in _CREDENTIAL_ENV.items():
        value = os.environ.get(env_name)
        if value:
            overrides[field_name] = value
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        field_name = key[len(ENV_PREFIX) :].lower()
        if field_name in Settings.model_fields:
            overrides[field_name] = value
    return overrides


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings accessor for dependency injection."""
    return Settings.from_yaml()


__all__ = [
    "Settings",
    "ProviderConfig",
    "get_settings",
    "resolve_embedding_provider",
    "resolve_generation_provider",
]
