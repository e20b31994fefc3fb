from __future__ import annotations

import pytest

from subtune.models.segment import Segment, SegmentSet, SegmentSetBuilder
from subtune.models.serializers import (
    deserialize_segment_set,
    serialize_segment_set,
    serialize_tune_result,
)
from subtune.models.tuning import TempoCandidate, TuneResult


def test_segment_requires_positive_duration() -> None:
    with pytest.raises(ValueError):
        Segment(id=0, start=1.0, end=1.0, text="x")
    with pytest.raises(ValueError):
        Segment(id=0, start=0.0, end=1.0, text="x", confidence=1.5)


def test_segment_set_rejects_unordered_segments() -> None:
    with pytest.raises(ValueError):
        SegmentSet(
            segments=(
                Segment(id=0, start=2.0, end=3.0, text="b"),
                Segment(id=1, start=0.0, end=1.0, text="a"),
            ),
            language="en",
        )


def test_builder_assigns_ids_then_sorts_by_start() -> None:
    segs = (
        SegmentSetBuilder(language="en")
        .add(2.0, 3.0, " second ")
        .add(0.0, 1.0, "first")
        .build()
    )
    assert [(s.id, s.text) for s in segs] == [(1, "first"), (0, "second")]
    assert segs.duration == 3.0


def test_with_texts_keeps_timings_and_input_untouched() -> None:
    original = SegmentSetBuilder(language="en").add(0.0, 1.0, "hello").add(1.0, 2.0, "world").build()
    translated = original.with_texts({0: "hola"}, language="es", segment_languages={1: "en"})

    assert [s.text for s in original] == ["hello", "world"]
    assert [s.text for s in translated] == ["hola", "world"]
    assert [(s.start, s.end) for s in translated] == [(0.0, 1.0), (1.0, 2.0)]
    assert translated.language_of(translated[0]) == "es"
    assert translated.language_of(translated[1]) == "en"


def test_rescaled_multiplies_timestamps() -> None:
    segs = SegmentSetBuilder(language="en").add(1.0, 2.0, "a").build().rescaled(1.1)
    assert segs[0].start == pytest.approx(1.1)
    assert segs[0].end == pytest.approx(2.2)
    assert segs.duration == pytest.approx(2.2)
    with pytest.raises(ValueError):
        segs.rescaled(0)


def test_segment_set_json_shape() -> None:
    segs = SegmentSetBuilder(language="ja", backend_info="whisper_cpp:base").add(0.0, 1.5, "こんにちは").build()
    data = serialize_segment_set(segs)
    assert data["segments"][0] == {
        "id": 0,
        "start": 0.0,
        "end": 1.5,
        "text": "こんにちは",
        "confidence": None,
        "language": None,
    }
    assert deserialize_segment_set(data) == segs


def test_tune_result_serializes_infinite_smoothness_as_null() -> None:
    failed = TempoCandidate(tempo_percent=90, smoothness_score=float("inf"), segment_count=0, error="boom")
    result = TuneResult(best_tempo=90, best=failed, candidates=(failed,), exploration_model="base")
    data = serialize_tune_result(result)
    assert data["candidates"][0]["smoothness_score"] is None
    assert data["candidates"][0]["accepted"] is False
    assert "tempo=90% error=boom" in result.describe()
