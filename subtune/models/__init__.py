"""Core data models for subtune."""

from subtune.models.quality import QualityScore, QualityThresholds, RejectReason, Verdict
from subtune.models.segment import Segment, SegmentSet, SegmentSetBuilder
from subtune.models.translation import (
    TranslationAttempt,
    TranslationReport,
    TranslationUnit,
    UnitFailure,
)
from subtune.models.tuning import TempoCandidate, TranscriptionResult, TuneResult

__all__ = [
    "QualityScore",
    "QualityThresholds",
    "RejectReason",
    "Segment",
    "SegmentSet",
    "SegmentSetBuilder",
    "TempoCandidate",
    "TranscriptionResult",
    "TranslationAttempt",
    "TranslationReport",
    "TranslationUnit",
    "TuneResult",
    "UnitFailure",
    "Verdict",
]
