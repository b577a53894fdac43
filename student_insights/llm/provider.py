"""Gemini REST adapter used by the insight generation stage.

One HTTP call per ``generate``; retry policy lives in
``student_insights.llm.generation``.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from student_insights.core.config import GenerationConfig, Settings, get_settings
from student_insights.core.tracing import get_tracing_headers

logger = structlog.get_logger(__name__)

OVERLOADED_STATUS_CODE = 503


class GenerationProviderError(Exception):
    """A single generation call failed.

    ``status_code`` is the HTTP status returned by the provider, or None when
    no response was received or the response could not be used.
    """

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)

    @property
    def is_overloaded(self) -> bool:
        return self.status_code == OVERLOADED_STATUS_CODE


def _extract_text(data: Any) -> str:
    """Join the text parts of the first candidate."""
    if not isinstance(data, dict):
        return ""
    candidates = data.get("candidates") or []
    if not candidates or not isinstance(candidates[0], dict):
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(
        part["text"] for part in parts if isinstance(part, dict) and isinstance(part.get("text"), str)
    ).strip()


class GeminiProvider:
    """Async client for the Gemini ``generateContent`` endpoint."""

    def __init__(self, config: GenerationConfig) -> None:
        self.model = config.model
        self._api_key = config.api_key.get_secret_value()
        self._url = f"{config.base_url.rstrip('/')}/models/{config.model}:generateContent"
        self._timeout = config.timeout_seconds
        self._client: httpx.AsyncClient | None = None

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout))
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def generate(self, prompt: str) -> str:
        """Send ``prompt`` and return the generated text."""
        if not self.is_configured:
            raise GenerationProviderError("GEMINI_API_KEY is not configured")

        client = await self._get_client()
        headers = {"x-goog-api-key": self._api_key, **get_tracing_headers()}
        payload = {"contents": [{"parts": [{"text": prompt}]}]}

        try:
            response = await client.post(self._url, json=payload, headers=headers)
        except httpx.RequestError as e:
            raise GenerationProviderError(f"Gemini request failed: {e}") from e

        if response.is_error:
            raise GenerationProviderError(
                f"Gemini returned HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            text = _extract_text(response.json())
        except ValueError as e:
            raise GenerationProviderError("Gemini returned a non-JSON body") from e
        if not text:
            raise GenerationProviderError("Gemini response contained no text")
        return text


def get_generation_provider(settings: Settings | None = None) -> GeminiProvider:
    """Return the configured Gemini provider."""
    active = settings or get_settings()
    return GeminiProvider(active.generation)
