from __future__ import annotations

import pytest

from subtune.models.quality import QualityThresholds, RejectReason
from subtune.models.segment import Segment, SegmentSet
from subtune.services.quality_validator import QualityValidator
from subtune.utils.text_quality import duplicate_text_ratio, repetition_ratio, tokenize


def _set(texts: list[str], *, seconds: float = 2.0, confidence: float | None = None) -> SegmentSet:
    segs = [
        Segment(id=i, start=i * seconds, end=(i + 1) * seconds, text=t, confidence=confidence)
        for i, t in enumerate(texts)
    ]
    return SegmentSet(segments=tuple(segs), language="en")


_CLEAN = [
    "Welcome back to the channel everyone.",
    "Today we are looking at a new recipe.",
    "First we need some flour and water.",
    "Mix them slowly until the dough forms.",
    "Then let it rest for about an hour.",
]


def test_tokenize_lowercases_and_drops_punctuation() -> None:
    assert tokenize("Hello, World! I'm here.") == ["hello", "world", "im", "here"]


def test_tokenize_splits_cjk_per_character() -> None:
    assert tokenize("こんにちは 世界") == ["こ", "ん", "に", "ち", "は", "世", "界"]


def test_repetition_ratio_detects_loops() -> None:
    assert repetition_ratio(["la"] * 10) == pytest.approx(0.9)
    assert repetition_ratio(tokenize("the quick brown fox jumps over the lazy dog")) == 0.0


def test_duplicate_text_ratio_counts_repeated_lines() -> None:
    assert duplicate_text_ratio(["I don't know."] * 10) == pytest.approx(0.9)
    assert duplicate_text_ratio(["a b", "c d"]) == 0.0


def test_clean_transcript_is_accepted() -> None:
    score = QualityValidator().validate(_set(_CLEAN))
    assert score.accepted
    assert score.repetition_ratio == 0.0
    assert score.aggregate_score >= 0.9


@pytest.mark.parametrize("min_score", [0.0, 0.5, 0.9, 1.0])
def test_repetition_above_threshold_always_rejected(min_score: float) -> None:
    looping = " ".join(["thank you"] * 10)
    segments = _set([_CLEAN[0], looping, _CLEAN[2]])
    thresholds = QualityThresholds(min_quality_score=min_score)

    score = QualityValidator().validate(segments, thresholds)

    assert not score.accepted
    assert score.reason is RejectReason.HALLUCINATED
    assert score.repetition_ratio > thresholds.repetitive_segment_threshold
    assert score.flagged_segment_ids == (1,)


def test_repeated_identical_segments_are_hallucinated() -> None:
    score = QualityValidator().validate(_set(["I don't know."] * 10))
    assert score.reason is RejectReason.HALLUCINATED


def test_dense_output_is_rejected() -> None:
    burst = " ".join(f"w{i}" for i in range(60))
    score = QualityValidator().validate(_set([burst], seconds=1.0))
    assert score.reason is RejectReason.ABNORMAL_DENSITY
    assert score.token_rate == pytest.approx(60.0)


def test_low_confidence_drops_aggregate_below_minimum() -> None:
    thresholds = QualityThresholds(min_quality_score=0.9)
    score = QualityValidator(thresholds).validate(_set(_CLEAN, confidence=0.1))
    assert score.reason is RejectReason.LOW_SCORE
    assert score.aggregate_score < 0.9


def test_empty_input_scores_zero() -> None:
    validator = QualityValidator()
    empty = SegmentSet(segments=(), language="en")

    for score in (validator.validate(empty), validator.validate("   "), validator.validate(_set(["", " "]))):
        assert score.aggregate_score == 0.0
        assert score.reason is RejectReason.EMPTY


def test_validation_is_idempotent() -> None:
    validator = QualityValidator()
    segments = _set(_CLEAN + ["la la la la la la"])
    assert validator.validate(segments) == validator.validate(segments)
    assert validator.validate_text("bonjour", duration=1.0) == validator.validate_text("bonjour", duration=1.0)


def test_validate_text_uses_duration_for_density() -> None:
    text = " ".join(f"w{i}" for i in range(60))
    validator = QualityValidator()
    assert validator.validate_text(text).accepted
    assert validator.validate_text(text, duration=0.5).reason is RejectReason.ABNORMAL_DENSITY
