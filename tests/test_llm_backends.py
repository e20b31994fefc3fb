from __future__ import annotations

import json

import httpx
import pytest
from tenacity import wait_none

from subtune.exceptions import BackendUnavailableError
from subtune.providers.llm.base import build_translation_prompt
from subtune.providers.llm.ollama import OllamaTranslationBackend
from subtune.providers.llm.openai_compat import OpenAICompatTranslationBackend
from subtune.utils.llm_json import clean_translation_response, extract_translation_text


def test_prompt_names_target_language_and_context() -> None:
    prompt = build_translation_prompt(
        "Good morning",
        source_language="en",
        target_language="ja",
        context="Previous lines:\nHello",
    )
    assert "Japanese" in prompt
    assert "(language code: ja)" in prompt
    assert "[Context for reference - DO NOT translate this part]" in prompt
    assert "Good morning" in prompt


def test_short_prompt_without_context() -> None:
    prompt = build_translation_prompt("Hi", source_language="en", target_language="fr")
    assert 'Text to translate: "Hi"' in prompt
    assert "Context" not in prompt


def test_clean_translation_response_skips_chatter() -> None:
    raw = "Here are some options:\n**Option 1**\n- literal\nBonjour tout le monde\n"
    assert clean_translation_response(raw) == "Bonjour tout le monde"


def test_extract_translation_text_handles_json_and_code_blocks() -> None:
    assert extract_translation_text('{"text": " こんにちは "}') == "こんにちは"
    assert extract_translation_text('```json\n{"text": "hola"}\n```') == "hola"
    assert extract_translation_text("<think>hmm</think>{\"translation\": \"ciao\"}") == "ciao"
    assert extract_translation_text("Translation:\nGuten Tag") == "Guten Tag"


@pytest.mark.asyncio
async def test_ollama_translate_posts_generate_request() -> None:
    seen: dict = {}

    def _handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["payload"] = json.loads(request.content)
        return httpx.Response(200, json={"response": json.dumps({"text": "Bonjour"}), "done": True})

    backend = OllamaTranslationBackend(model="llama3.2:3b", endpoint="http://ollama.test/")
    backend._client = httpx.AsyncClient(transport=httpx.MockTransport(_handler))
    async with backend:
        text = await backend.translate("Hello", source_language="en", target_language="fr")

    assert text == "Bonjour"
    assert seen["path"] == "/api/generate"
    assert seen["payload"]["model"] == "llama3.2:3b"
    assert seen["payload"]["format"] == "json"
    assert seen["payload"]["stream"] is False
    assert backend._client is None


@pytest.mark.asyncio
async def test_ollama_client_error_is_not_retried() -> None:
    calls = {"n": 0}

    def _handler(request: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        return httpx.Response(404, json={"error": "model not found"})

    backend = OllamaTranslationBackend(model="missing", endpoint="http://ollama.test")
    backend._client = httpx.AsyncClient(transport=httpx.MockTransport(_handler))
    try:
        with pytest.raises(BackendUnavailableError) as excinfo:
            await backend.translate("Hello", source_language="en", target_language="fr")
    finally:
        await backend.close()

    assert calls["n"] == 1
    assert "404" in str(excinfo.value)


@pytest.mark.asyncio
async def test_ollama_retries_server_errors(monkeypatch) -> None:
    monkeypatch.setattr(OllamaTranslationBackend._generate.retry, "wait", wait_none())
    responses = [
        httpx.Response(503, text="loading"),
        httpx.Response(200, json={"response": '{"text": "Hallo"}'}),
    ]

    def _handler(request: httpx.Request) -> httpx.Response:
        return responses.pop(0)

    backend = OllamaTranslationBackend(model="m", endpoint="http://ollama.test")
    backend._client = httpx.AsyncClient(transport=httpx.MockTransport(_handler))
    try:
        assert await backend.translate("Hello", source_language="en", target_language="de") == "Hallo"
    finally:
        await backend.close()
    assert responses == []


@pytest.mark.asyncio
async def test_ollama_check_available() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/show"
        name = json.loads(request.content)["name"]
        return httpx.Response(200 if name == "present" else 404, json={})

    transport = httpx.MockTransport(_handler)
    present = OllamaTranslationBackend(model="present", endpoint="http://ollama.test")
    present._client = httpx.AsyncClient(transport=transport)
    missing = OllamaTranslationBackend(model="absent", endpoint="http://ollama.test")
    missing._client = httpx.AsyncClient(transport=transport)
    try:
        assert await present.check_available() is True
        assert await missing.check_available() is False
    finally:
        await present.close()
        await missing.close()


@pytest.mark.asyncio
async def test_openai_compat_translate_parses_chat_completion() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer k"
        payload = json.loads(request.content)
        assert payload["stream"] is False
        assert "Spanish" in payload["messages"][1]["content"]
        return httpx.Response(
            200,
            json={
                "choices": [{"message": {"role": "assistant", "content": '{"text": "Hola"}'}}],
                "usage": {"total_tokens": 12},
            },
        )

    backend = OpenAICompatTranslationBackend(api_key="k", model="gpt-4o-mini", base_url="https://example.com/v1")
    backend._client = httpx.AsyncClient(transport=httpx.MockTransport(_handler))
    try:
        text = await backend.translate("Hello", source_language="en", target_language="es")
    finally:
        await backend.close()
    assert text == "Hola"


@pytest.mark.asyncio
async def test_openai_compat_malformed_response_is_backend_error() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"choices": []})

    backend = OpenAICompatTranslationBackend(api_key="", model="m", base_url="https://example.com/v1")
    backend._client = httpx.AsyncClient(transport=httpx.MockTransport(_handler))
    try:
        with pytest.raises(BackendUnavailableError):
            await backend.translate("Hello", source_language="en", target_language="es")
    finally:
        await backend.close()
