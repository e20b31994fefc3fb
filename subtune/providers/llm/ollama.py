"""Ollama translation backend (`/api/generate`)."""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt

from subtune.error_codes import ErrorCode
from subtune.exceptions import BackendUnavailableError
from subtune.providers.llm._retry import (
    RetryableBackendError,
    log_retry,
    raise_for_status,
    wait_retry,
)
from subtune.providers.llm.base import build_translation_prompt
from subtune.utils.llm_json import extract_translation_text

logger = logging.getLogger(__name__)

DEFAULT_OLLAMA_ENDPOINT = "http://localhost:11434"


class OllamaTranslationBackend:
    """Translates through a local Ollama server using JSON-formatted generation."""

    def __init__(
        self,
        model: str,
        endpoint: str | None = None,
        *,
        timeout: float = 300.0,
        temperature: float | None = None,
        provider: str = "ollama",
    ) -> None:
        self.provider = provider
        self.model = model
        self.endpoint = (str(endpoint or "").strip() or DEFAULT_OLLAMA_ENDPOINT).rstrip("/")
        self.timeout = float(timeout)
        self.temperature = temperature
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> OllamaTranslationBackend:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @retry(
        retry=retry_if_exception_type(RetryableBackendError),
        stop=stop_after_attempt(3),
        wait=wait_retry,
        before_sleep=log_retry(logger),
        reraise=True,
    )
    async def _generate(self, prompt: str) -> str:
        payload: dict[str, Any] = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "format": "json",
        }
        if self.temperature is not None:
            payload["options"] = {"temperature": float(self.temperature)}

        client = await self._get_client()
        started = time.perf_counter()
        try:
            response = await client.post(f"{self.endpoint}/api/generate", json=payload)
        except httpx.TimeoutException as exc:
            raise RetryableBackendError(
                self.provider, f"request timed out: {exc}", error_code=ErrorCode.BACKEND_TIMEOUT
            ) from exc
        except httpx.TransportError as exc:
            raise RetryableBackendError(self.provider, f"transport error: {exc}") from exc

        raise_for_status(self.provider, response)
        try:
            data = response.json()
        except ValueError as exc:
            raise BackendUnavailableError(self.provider, "response is not JSON") from exc
        text = data.get("response") if isinstance(data, dict) else None
        if not isinstance(text, str):
            raise BackendUnavailableError(self.provider, "response has no 'response' field")

        logger.debug(
            "ollama call (model=%s, latency_ms=%s, chars=%s)",
            self.model,
            int((time.perf_counter() - started) * 1000),
            len(text),
        )
        return text

    async def translate(
        self,
        text: str,
        *,
        source_language: str,
        target_language: str,
        context: str | None = None,
    ) -> str:
        prompt = build_translation_prompt(
            text,
            source_language=source_language,
            target_language=target_language,
            context=context,
        )
        raw = await self._generate(prompt)
        return extract_translation_text(raw)

    async def check_available(self) -> bool:
        """Return True when the server answers and the model is pulled."""
        client = await self._get_client()
        try:
            response = await client.post(f"{self.endpoint}/api/show", json={"name": self.model})
        except httpx.HTTPError as exc:
            logger.warning("ollama unavailable (endpoint=%s, error=%s)", self.endpoint, exc)
            return False
        if response.status_code != 200:
            logger.warning(
                "ollama model not available (model=%s, status=%s)",
                self.model,
                response.status_code,
            )
            return False
        return True
