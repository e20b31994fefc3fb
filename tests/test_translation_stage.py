from __future__ import annotations

import pytest

from subtune.config import TranslationMode
from subtune.error_codes import ErrorCode
from subtune.exceptions import BackendUnavailableError, TranslationError
from subtune.models.quality import RejectReason
from subtune.models.segment import Segment, SegmentSet
from subtune.pipeline.stage_runners import run_translation
from subtune.services.translation_cache import TranslationCache
from subtune.stages.translation import TranslationStage, plan_units

_LOOP = " ".join(["la"] * 20)


def _segments(spans: list[tuple[float, float]], texts: list[str] | None = None) -> SegmentSet:
    texts = texts or [f"source line {i}" for i in range(len(spans))]
    segs = tuple(
        Segment(id=i, start=s, end=e, text=t) for i, ((s, e), t) in enumerate(zip(spans, texts))
    )
    return SegmentSet(segments=segs, language="en")


def _gapped() -> SegmentSet:
    # gaps between consecutive segments: 0.5, 3.0, 1.0
    return _segments([(0.0, 2.0), (2.5, 4.0), (7.0, 9.0), (10.0, 12.0)])


class _StubTranslator:
    def __init__(self, replies=None) -> None:
        self.replies = list(replies or [])
        self.calls: list[dict] = []

    async def translate(self, text, *, source_language, target_language, context=None):
        self.calls.append(
            {"text": text, "source": source_language, "target": target_language, "context": context}
        )
        if self.replies:
            reply = self.replies.pop(0)
            if isinstance(reply, Exception):
                raise reply
            return reply
        return f"[{target_language}] {text}"


def test_nlp_plan_splits_only_at_large_gap() -> None:
    units = plan_units(_gapped(), TranslationMode.NLP, gap_threshold=2.0)
    assert [u.segment_ids for u in units] == [(0, 1), (2, 3)]
    assert units[0].text == "source line 0 source line 1"
    assert (units[1].start, units[1].end) == (7.0, 12.0)


def test_nlp_plan_closes_long_sentences() -> None:
    segments = _segments([(0.0, 1.0), (1.0, 2.0), (2.0, 3.0)], ["a" * 10, "b" * 10, "c" * 10])
    units = plan_units(segments, TranslationMode.NLP, gap_threshold=2.0, max_chars=15)
    assert [u.segment_ids for u in units] == [(0, 1), (2,)]


def test_context_plan_includes_neighbours_only() -> None:
    segments = _segments([(float(i), i + 0.9) for i in range(5)])
    units = plan_units(segments, TranslationMode.CONTEXT, context_window_size=1)
    assert [u.segment_ids for u in units] == [(0,), (1,), (2,), (3,), (4,)]
    assert units[2].text == "source line 2"
    assert "source line 1" in units[2].context and "source line 3" in units[2].context
    assert "source line 0" not in units[2].context
    assert plan_units(segments, TranslationMode.CONTEXT, context_window_size=0)[2].context is None


@pytest.mark.asyncio
@pytest.mark.parametrize("mode", ["simple", "context", "nlp"])
async def test_timings_are_preserved_in_every_mode(settings, mode: str) -> None:
    source = _gapped()
    backend = _StubTranslator()

    report = await run_translation(source, "fr", mode, settings, backend=backend)

    assert report.ok
    assert report.segments.language == "fr"
    assert [(s.id, s.start, s.end) for s in report.segments] == [(s.id, s.start, s.end) for s in source]
    assert all(s.text.strip() for s in report.segments)


@pytest.mark.asyncio
async def test_nlp_translation_is_redistributed_over_segments(settings) -> None:
    backend = _StubTranslator(["Bonjour à tous, bienvenue.", "Merci beaucoup, au revoir."])
    report = await run_translation(_gapped(), "fr", TranslationMode.NLP, settings, backend=backend)

    assert len(backend.calls) == 2
    assert [s.text for s in report.segments] == [
        "Bonjour à tous,",
        "bienvenue.",
        "Merci beaucoup,",
        "au revoir.",
    ]


@pytest.mark.asyncio
async def test_failing_unit_is_retried_max_retries_times(settings) -> None:
    settings.translate.max_retries = 3
    source = _segments([(0.0, 2.0)], ["hello there"])
    backend = _StubTranslator([_LOOP] * 10)

    report = await run_translation(source, "fr", "simple", settings, backend=backend)

    assert len(backend.calls) == settings.translate.max_retries + 1
    assert report.backend_calls == 4
    assert len(report.failures) == 1
    failure = report.failures[0]
    assert failure.attempts == 4
    assert failure.error_code == ErrorCode.TRANSLATION_UNIT_FAILED
    assert report.segments[0].text == "hello there"
    assert report.segments.language_of(report.segments[0]) == "en"


@pytest.mark.asyncio
async def test_unit_accepted_on_second_attempt_uses_two_calls(settings) -> None:
    source = _segments([(0.0, 2.0)], ["hello there"])
    backend = _StubTranslator([_LOOP, "bonjour"])

    report = await run_translation(source, "fr", "simple", settings, backend=backend)

    assert len(backend.calls) == 2
    assert report.ok
    assert report.segments[0].text == "bonjour"
    assert [a.attempt_number for a in report.attempts] == [1, 2]
    assert not report.attempts[0].quality.accepted


@pytest.mark.asyncio
async def test_partial_failure_keeps_other_units(settings) -> None:
    settings.translate.max_retries = 0
    settings.concurrency.translation = 1
    source = _segments([(0.0, 2.0), (2.0, 4.0)], ["first", "second"])
    backend = _StubTranslator([BackendUnavailableError("ollama", "down"), "deuxième"])

    report = await run_translation(source, "fr", "simple", settings, backend=backend)

    assert [s.text for s in report.segments] == ["first", "deuxième"]
    assert report.failed_segment_ids == [0]
    assert report.failures[0].error_code == ErrorCode.BACKEND_UNAVAILABLE


@pytest.mark.asyncio
async def test_backend_down_for_every_unit_is_fatal(settings) -> None:
    source = _segments([(0.0, 2.0), (2.0, 4.0)], ["first", "second"])
    backend = _StubTranslator([BackendUnavailableError("ollama", "down")] * 2)

    with pytest.raises(TranslationError):
        await run_translation(source, "fr", "simple", settings, backend=backend)


@pytest.mark.asyncio
async def test_blank_segments_skip_the_backend(settings) -> None:
    source = _segments([(0.0, 1.0), (1.0, 2.0)], ["  ", "hello"])
    backend = _StubTranslator()

    report = await run_translation(source, "fr", "simple", settings, backend=backend)

    assert [c["text"] for c in backend.calls] == ["hello"]
    assert report.segments[0].text == "  "


@pytest.mark.asyncio
async def test_source_language_is_forwarded(settings) -> None:
    backend = _StubTranslator()
    await run_translation(
        _segments([(0.0, 1.0)]), "ja", "simple", settings, backend=backend, source_language="de"
    )
    assert backend.calls[0]["source"] == "de"
    assert backend.calls[0]["target"] == "ja"


@pytest.mark.asyncio
async def test_cache_hit_skips_backend(settings, tmp_path) -> None:
    cache = TranslationCache(tmp_path / "cache", model="m")
    source = _segments([(0.0, 2.0)], ["hello there"])

    first = TranslationStage(settings, backend=_StubTranslator(["bonjour"]), cache=cache)
    await first.translate(source, "fr")

    backend = _StubTranslator()
    report = await TranslationStage(settings, backend=backend, cache=cache).translate(source, "fr")

    assert backend.calls == []
    assert report.backend_calls == 0
    assert report.segments[0].text == "bonjour"


@pytest.mark.asyncio
async def test_stage_execute_translates_every_target(settings) -> None:
    stage = TranslationStage(settings, backend=_StubTranslator())
    context = await stage.execute({"segments": _gapped(), "target_languages": ["fr", "ja"]})

    assert sorted(context["translations"]) == ["fr", "ja"]
    assert context["translation_failures"] == {"fr": [], "ja": []}


def test_nlp_plan_splits_long_units_at_sentence_boundaries() -> None:
    texts = ["we walked for hours and hours", "until it got dark. Then we", "went home"]
    segments = _segments([(0.0, 1.0), (1.0, 2.0), (2.0, 3.0)], texts)
    units = plan_units(segments, TranslationMode.NLP, gap_threshold=2.0, soft_max_chars=40)
    assert [u.segment_ids for u in units] == [(0, 1), (2,)]


class _ContextOverflowTranslator(_StubTranslator):
    async def translate(self, text, *, source_language, target_language, context=None):
        self.calls.append({"text": text, "context": context})
        if context:
            return "Ligne précédente, ligne suivante et ma ligne, toutes traduites ensemble. " * 2
        return "la ligne deux"


@pytest.mark.asyncio
async def test_context_mode_drops_context_when_reply_is_too_long(settings) -> None:
    segments = _segments([(0.0, 2.0), (2.0, 4.0), (4.0, 6.0)], ["line one", "line two", "line three"])
    backend = _ContextOverflowTranslator()
    stage = TranslationStage(settings, backend=backend)

    report = await stage.translate(segments, "fr", mode="context")

    assert report.ok
    assert [s.text for s in report.segments] == ["la ligne deux"] * 3
    assert report.backend_calls == 6
    with_context = [c for c in backend.calls if c["context"]]
    without_context = [c for c in backend.calls if not c["context"]]
    assert len(with_context) == 3 and len(without_context) == 3


@pytest.mark.asyncio
async def test_echoed_source_is_rejected_and_retried(settings) -> None:
    source = _segments([(0.0, 2.0)], ["hello there friend"])
    backend = _StubTranslator(["Hello there, friend!", "bonjour mon ami"])

    report = await run_translation(source, "fr", "simple", settings, backend=backend)

    assert len(backend.calls) == 2
    assert report.segments[0].text == "bonjour mon ami"
    assert report.attempts[0].quality.reason is RejectReason.UNTRANSLATED


@pytest.mark.asyncio
async def test_echo_counts_against_the_retry_budget_and_is_not_cached(settings, tmp_path) -> None:
    settings.translate.max_retries = 1
    cache = TranslationCache(tmp_path / "cache", model="m")
    source = _segments([(0.0, 2.0)], ["hello there friend"])
    backend = _StubTranslator(["hello there friend"] * 5)

    report = await TranslationStage(settings, backend=backend, cache=cache).translate(source, "fr")

    assert len(backend.calls) == 2
    assert report.failures[0].quality.reason is RejectReason.UNTRANSLATED
    assert await cache.get("hello there friend", target_language="fr") is None


@pytest.mark.asyncio
async def test_single_word_may_stay_unchanged(settings) -> None:
    source = _segments([(0.0, 1.0)], ["Tokyo"])
    report = await run_translation(source, "fr", "simple", settings, backend=_StubTranslator(["Tokyo"]))
    assert report.ok
