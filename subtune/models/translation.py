"""Translation attempt and report models."""

from __future__ import annotations

from dataclasses import dataclass, field

from subtune.error_codes import ErrorCode
from subtune.models.quality import QualityScore
from subtune.models.segment import SegmentSet


@dataclass(frozen=True)
class TranslationUnit:
    """Text sent to the backend in one request, mapped to one or more source segments."""

    id: int
    segment_ids: tuple[int, ...]
    text: str
    start: float
    end: float
    context: str | None = None

    @property
    def duration(self) -> float:
        return max(0.0, float(self.end) - float(self.start))


@dataclass(frozen=True)
class TranslationAttempt:
    source_segment_ids: tuple[int, ...]
    translated_text: str
    attempt_number: int
    quality: QualityScore


@dataclass(frozen=True)
class UnitFailure:
    unit_id: int
    segment_ids: tuple[int, ...]
    reason: str
    attempts: int
    error_code: ErrorCode | str = ErrorCode.TRANSLATION_UNIT_FAILED
    quality: QualityScore | None = None

    def describe(self) -> str:
        ids = ",".join(str(i) for i in self.segment_ids)
        return f"unit={self.unit_id} segments=[{ids}] attempts={self.attempts} reason={self.reason}"


@dataclass(frozen=True)
class TranslationReport:
    segments: SegmentSet
    target_language: str
    source_language: str
    mode: str
    failures: tuple[UnitFailure, ...] = field(default_factory=tuple)
    attempts: tuple[TranslationAttempt, ...] = field(default_factory=tuple)
    backend_calls: int = 0

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def failed_segment_ids(self) -> list[int]:
        return sorted({i for f in self.failures for i in f.segment_ids})
