"""Quality gate value types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class RejectReason(str, Enum):
    EMPTY = "empty"
    HALLUCINATED = "hallucinated"
    ABNORMAL_DENSITY = "abnormal_density"
    LOW_SCORE = "low_score"
    UNTRANSLATED = "untranslated"


@dataclass(frozen=True)
class QualityThresholds:
    repetitive_segment_threshold: float = 0.8
    max_tokens_threshold: float = 50.0  # tokens per second
    min_quality_score: float = 0.7
    ngram_size: int = 3
    window: int = 32


@dataclass(frozen=True)
class Verdict:
    reason: RejectReason | None = None
    detail: str = ""

    @property
    def accepted(self) -> bool:
        return self.reason is None

    @classmethod
    def accept(cls) -> Verdict:
        return cls()

    @classmethod
    def reject(cls, reason: RejectReason, detail: str = "") -> Verdict:
        return cls(reason=reason, detail=detail)

    def __str__(self) -> str:
        if self.reason is None:
            return "accept"
        if self.detail:
            return f"reject({self.reason.value}: {self.detail})"
        return f"reject({self.reason.value})"


@dataclass(frozen=True)
class QualityScore:
    """Result of one quality gate evaluation.

    `repetition_ratio` is the worst per-segment ratio (or the duplicate-segment
    ratio when higher); `token_rate` is the densest segment's tokens per second.
    """

    repetition_ratio: float
    token_rate: float
    aggregate_score: float
    verdict: Verdict
    token_count: int = 0
    flagged_segment_ids: tuple[int, ...] = field(default_factory=tuple)

    @property
    def accepted(self) -> bool:
        return self.verdict.accepted

    @property
    def reason(self) -> RejectReason | None:
        return self.verdict.reason

    def describe(self) -> str:
        return (
            f"score={self.aggregate_score:.3f}, repetition={self.repetition_ratio:.3f}, "
            f"token_rate={self.token_rate:.2f}/s, verdict={self.verdict}"
        )
