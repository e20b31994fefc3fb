"""Tempo exploration models."""

from __future__ import annotations

import math
from dataclasses import dataclass

from subtune.models.quality import QualityScore
from subtune.models.segment import SegmentSet


@dataclass(frozen=True)
class TempoCandidate:
    """One exploration run at a given tempo.

    A candidate carries either a quality score (the backend answered) or an
    error message (the backend failed); only quality-accepted candidates are
    eligible for selection.
    """

    tempo_percent: int
    smoothness_score: float
    segment_count: int
    quality: QualityScore | None = None
    error: str | None = None

    @property
    def accepted(self) -> bool:
        return self.error is None and self.quality is not None and self.quality.accepted

    def describe(self) -> str:
        smooth = "inf" if math.isinf(self.smoothness_score) else f"{self.smoothness_score:.4f}"
        if self.error is not None:
            return f"tempo={self.tempo_percent}% error={self.error}"
        verdict = self.quality.verdict if self.quality is not None else "n/a"
        return (
            f"tempo={self.tempo_percent}% smoothness={smooth} "
            f"segments={self.segment_count} verdict={verdict}"
        )


@dataclass(frozen=True)
class TuneResult:
    best_tempo: int
    best: TempoCandidate
    candidates: tuple[TempoCandidate, ...]
    exploration_model: str

    def describe(self) -> str:
        lines = [f"exploration (model={self.exploration_model}, best={self.best_tempo}%)"]
        for c in self.candidates:
            marker = "*" if c.tempo_percent == self.best_tempo else " "
            lines.append(f" {marker} {c.describe()}")
        return "\n".join(lines)


@dataclass(frozen=True)
class TranscriptionResult:
    """Validated output of the transcription stage."""

    segments: SegmentSet
    detected_language: str
    source_language: str  # language assumed by translation (may be the fallback)
    tempo_percent: int
    model: str
    quality: QualityScore
    tuning: TuneResult | None = None

    @property
    def used_fallback_language(self) -> bool:
        return self.detected_language != self.source_language
