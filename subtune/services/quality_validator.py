"""Quality gate for transcriptions and translations.

The validator is a pure function of its input: the same SegmentSet (or text)
and thresholds always produce the same QualityScore. Verdicts are checked in
a fixed order so that a hallucinated transcript is reported as such even when
its aggregate score would otherwise pass:

1. empty (no tokens at all)
2. hallucinated (repetition ratio above `repetitive_segment_threshold`)
3. abnormal density (tokens per second above `max_tokens_threshold`)
4. low score (aggregate below `min_quality_score`)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from subtune.models.quality import QualityScore, QualityThresholds, RejectReason, Verdict
from subtune.models.segment import SegmentSet
from subtune.utils.text_quality import (
    duplicate_text_ratio,
    repetition_ratio,
    token_rate,
    tokenize,
)

logger = logging.getLogger(__name__)

_WEIGHTS_WITH_CONFIDENCE = (0.5, 0.3, 0.2)
_WEIGHTS_WITHOUT_CONFIDENCE = (0.625, 0.375)


@dataclass(frozen=True)
class _Measured:
    segment_id: int | None
    token_count: int
    repetition: float
    rate: float


def _density_component(rate: float, limit: float) -> float:
    if limit <= 0:
        return 1.0
    return 1.0 - min(1.0, rate / limit) ** 2


class QualityValidator:
    """Scores SegmentSets and single texts against QualityThresholds."""

    def __init__(self, thresholds: QualityThresholds | None = None) -> None:
        self.thresholds = thresholds or QualityThresholds()

    def validate(
        self,
        subject: SegmentSet | str,
        thresholds: QualityThresholds | None = None,
    ) -> QualityScore:
        if isinstance(subject, SegmentSet):
            return self.validate_segments(subject, thresholds)
        return self.validate_text(str(subject), thresholds=thresholds)

    def validate_segments(
        self,
        segments: SegmentSet,
        thresholds: QualityThresholds | None = None,
    ) -> QualityScore:
        th = thresholds or self.thresholds
        non_blank = [s for s in segments if not s.is_blank]
        measured = [self._measure(s.text, s.duration, th, segment_id=int(s.id)) for s in non_blank]
        duplicate = duplicate_text_ratio([s.text for s in non_blank])
        confidences = [float(s.confidence) for s in non_blank if s.confidence is not None]
        score = self._score(measured, duplicate, confidences, th)
        logger.debug(
            "quality (segments=%s, tokens=%s, %s)",
            len(segments),
            score.token_count,
            score.describe(),
        )
        return score

    def validate_text(
        self,
        text: str,
        *,
        duration: float | None = None,
        confidence: float | None = None,
        thresholds: QualityThresholds | None = None,
    ) -> QualityScore:
        th = thresholds or self.thresholds
        measured = [self._measure(text, duration, th, segment_id=None)]
        confidences = [float(confidence)] if confidence is not None else []
        return self._score(measured, 0.0, confidences, th)

    @staticmethod
    def _measure(
        text: str,
        duration: float | None,
        th: QualityThresholds,
        *,
        segment_id: int | None,
    ) -> _Measured:
        tokens = tokenize(text)
        return _Measured(
            segment_id=segment_id,
            token_count=len(tokens),
            repetition=repetition_ratio(tokens, ngram_size=th.ngram_size, window=th.window),
            rate=token_rate(len(tokens), duration),
        )

    @staticmethod
    def _score(
        measured: Sequence[_Measured],
        duplicate_ratio: float,
        confidences: Sequence[float],
        th: QualityThresholds,
    ) -> QualityScore:
        total_tokens = sum(m.token_count for m in measured)
        if total_tokens == 0:
            return QualityScore(
                repetition_ratio=0.0,
                token_rate=0.0,
                aggregate_score=0.0,
                verdict=Verdict.reject(RejectReason.EMPTY, "no tokens"),
                token_count=0,
            )

        worst_repetition = max(m.repetition for m in measured)
        rep_ratio = max(worst_repetition, duplicate_ratio)
        mean_repetition = sum(m.repetition * m.token_count for m in measured) / total_tokens
        rate = max(m.rate for m in measured)

        rep_component = 1.0 - max(mean_repetition, duplicate_ratio)
        density_component = _density_component(rate, float(th.max_tokens_threshold))
        if confidences:
            w_rep, w_density, w_conf = _WEIGHTS_WITH_CONFIDENCE
            conf_component = sum(confidences) / len(confidences)
            aggregate = w_rep * rep_component + w_density * density_component + w_conf * conf_component
        else:
            w_rep, w_density = _WEIGHTS_WITHOUT_CONFIDENCE
            aggregate = w_rep * rep_component + w_density * density_component
        aggregate = max(0.0, min(1.0, aggregate))

        flagged = tuple(
            int(m.segment_id)
            for m in measured
            if m.segment_id is not None
            and (m.repetition > th.repetitive_segment_threshold or m.rate > th.max_tokens_threshold)
        )

        if rep_ratio > th.repetitive_segment_threshold:
            verdict = Verdict.reject(
                RejectReason.HALLUCINATED,
                f"repetition {rep_ratio:.3f} > {th.repetitive_segment_threshold}",
            )
        elif rate > th.max_tokens_threshold:
            verdict = Verdict.reject(
                RejectReason.ABNORMAL_DENSITY,
                f"{rate:.2f} tokens/s > {th.max_tokens_threshold}",
            )
        elif aggregate < th.min_quality_score:
            verdict = Verdict.reject(
                RejectReason.LOW_SCORE,
                f"score {aggregate:.3f} < {th.min_quality_score}",
            )
        else:
            verdict = Verdict.accept()

        return QualityScore(
            repetition_ratio=rep_ratio,
            token_rate=rate,
            aggregate_score=aggregate,
            verdict=verdict,
            token_count=total_tokens,
            flagged_segment_ids=flagged,
        )

