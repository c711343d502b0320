"""Language model clients."""

from __future__ import annotations

from typing import Any

import requests

from cv_screener.core.config import ProviderConfig
from cv_screener.core.errors import ConfigurationError, GenerationError
from cv_screener.core.logging import get_logger

logger = get_logger(__name__)

PING_PROMPT = 'Reply with only "OK" if you can read this message.'


class GenerationClient:
    """Turns a prompt into model text."""

    name: str = "base"

    def complete(self, prompt: str) -> str:  # pragma: no cover - interface
        raise NotImplementedError

    def ping(self) -> bool:
        """Connectivity check; never raises."""
        try:
            return self.complete(PING_PROMPT).strip() == "OK"
        except GenerationError as exc:
            logger.error("LLM connection test failed: %s", exc)
            return False


class _HttpGenerationClient(GenerationClient):
    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str,
        temperature: float = 0.7,
        max_output_tokens: int = 2048,
        timeout: float = 60.0,
        session: requests.Session | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.timeout = timeout
        self.session = session or requests.Session()

    def _post(self, url: str, payload: dict[str, Any], **kwargs: Any) -> dict[str, Any]:
        try:
            resp = self.session.post(url, json=payload, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise GenerationError(f"{self.name} request failed: {exc}") from exc
        if resp.status_code in (401, 403):
            raise GenerationError(f"{self.name} request unauthenticated ({resp.status_code})")
        if not resp.ok:
            raise GenerationError(f"{self.name} request failed ({resp.status_code}): {resp.text[:200]}")
        try:
            return resp.json()
        except ValueError as exc:
            raise GenerationError(f"{self.name} returned a non-JSON response") from exc


class GeminiGenerationClient(_HttpGenerationClient):
    """Gemini ``generateContent``."""

    name = "google"

    def complete(self, prompt: str) -> str:
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_output_tokens,
            },
        }
        data = self._post(
            f"{self.base_url}/models/{self.model}:generateContent",
            payload,
            params={"key": self.api_key},
        )
        try:
            parts = data["candidates"][0]["content"]["parts"]
            return "".join(part.get("text", "") for part in parts)
        except (KeyError, IndexError, TypeError, AttributeError) as exc:
            raise GenerationError("google response missing candidate text") from exc


class ChatCompletionsClient(_HttpGenerationClient):
    """OpenAI-compatible ``/chat/completions`` (OpenAI, OpenRouter)."""

    def __init__(self, *args: Any, name: str = "openai", **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.name = name

    def complete(self, prompt: str) -> str:
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature,
            "max_tokens": self.max_output_tokens,
        }
        data = self._post(
            f"{self.base_url}/chat/completions",
            payload,
            headers={"Authorization": f"Bearer {self.api_key}"},
        )
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise GenerationError(f"{self.name} response missing 'choices[0].message.content'") from exc
        if not isinstance(content, str):
            raise GenerationError(f"{self.name} returned non-text content")
        return content


def build_generation_client(provider: ProviderConfig) -> GenerationClient:
    """Construct the client for an already-resolved provider."""
    if not provider.api_key or not provider.base_url:
        raise ConfigurationError(f"Generation provider '{provider.kind}' is missing credentials")
    options = {
        "api_key": provider.api_key,
        "model": provider.model,
        "base_url": provider.base_url,
        "temperature": provider.temperature,
        "max_output_tokens": provider.max_output_tokens,
        "timeout": provider.timeout,
    }
    logger.info("Using %s for generation (%s)", provider.kind, provider.model)
    if provider.kind == "google":
        return GeminiGenerationClient(**options)
    if provider.kind in ("openai", "openrouter"):
        return ChatCompletionsClient(name=provider.kind, **options)
    raise ConfigurationError(f"Provider '{provider.kind}' does not offer text generation")


__all__ = [
    "GenerationClient",
    "GeminiGenerationClient",
    "ChatCompletionsClient",
    "build_generation_client",
]
