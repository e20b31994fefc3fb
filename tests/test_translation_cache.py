from __future__ import annotations

import pytest

from subtune.services.translation_cache import TranslationCache, cache_key


@pytest.mark.asyncio
async def test_cache_round_trip(tmp_path) -> None:
    cache = TranslationCache(tmp_path, model="llama3.2:3b")
    assert await cache.get("Hello", target_language="ja") is None

    await cache.put("Hello", "こんにちは", target_language="ja")

    assert await cache.get("Hello", target_language="ja") == "こんにちは"
    assert await cache.get("Hello", target_language="ko") is None
    assert await cache.get("Hello", target_language="ja", context="Previous lines:\nHi") is None


@pytest.mark.asyncio
async def test_cache_is_scoped_by_model(tmp_path) -> None:
    await TranslationCache(tmp_path, model="a").put("Hello", "Hola", target_language="es")
    assert await TranslationCache(tmp_path, model="b").get("Hello", target_language="es") is None


@pytest.mark.asyncio
async def test_corrupt_entry_is_a_miss(tmp_path) -> None:
    cache = TranslationCache(tmp_path, model="m")
    key = cache_key(model="m", target_language="es", context=None, text="Hello")
    path = tmp_path / key[:2] / f"{key}.json"
    path.parent.mkdir(parents=True)
    path.write_text("{not json", encoding="utf-8")
    assert await cache.get("Hello", target_language="es") is None
