"""OpenAI-compatible translation backend (`/chat/completions`)."""

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

DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"
_SYSTEM_PROMPT = "You translate subtitles. Reply with JSON only."


class OpenAICompatTranslationBackend:
    """OpenAI-compatible API backend (OpenAI, vLLM, Ollama `/v1`, etc.)."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        *,
        timeout: float = 300.0,
        temperature: float = 0.3,
        provider: str = "openai_compat",
    ) -> None:
        self.provider = provider
        self.api_key = api_key
        self.model = model
        self.base_url = (str(base_url or "").strip() or DEFAULT_OPENAI_BASE_URL).rstrip("/")
        self.timeout = float(timeout)
        self.temperature = float(temperature)
        self._client: httpx.AsyncClient | None = None

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> OpenAICompatTranslationBackend:
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
    async def _chat_completion(self, prompt: str) -> str:
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": _SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature,
            "stream": False,
        }
        client = await self._get_client()
        started = time.perf_counter()
        try:
            response = await client.post(
                f"{self.base_url}/chat/completions",
                headers=self._headers(),
                json=payload,
            )
        except httpx.TimeoutException as exc:
            raise RetryableBackendError(
                self.provider, f"request timed out: {exc}", error_code=ErrorCode.BACKEND_TIMEOUT
            ) from exc
        except httpx.TransportError as exc:
            raise RetryableBackendError(self.provider, f"transport error: {exc}") from exc

        raise_for_status(self.provider, response)
        try:
            result = response.json()
            content = result["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise BackendUnavailableError(self.provider, f"unexpected response shape: {exc}") from exc
        if not isinstance(content, str):
            raise BackendUnavailableError(self.provider, "completion content is not text")

        usage = result.get("usage") if isinstance(result, dict) else None
        logger.debug(
            "llm call (provider=%s, model=%s, latency_ms=%s, total_tokens=%s)",
            self.provider,
            self.model,
            int((time.perf_counter() - started) * 1000),
            usage.get("total_tokens") if isinstance(usage, dict) else None,
        )
        return content

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
        raw = await self._chat_completion(prompt)
        return extract_translation_text(raw)
