"""Pipeline context typing.

Stages share one context dict. This module names the stable keys.
"""

from __future__ import annotations

from typing import TypedDict

from subtune.models.segment import SegmentSet
from subtune.models.translation import TranslationReport, UnitFailure
from subtune.models.tuning import TranscriptionResult


class PipelineContext(TypedDict, total=False):
    media_path: str
    audio_path: str
    transcription_mode: str
    translation_mode: str

    transcription: TranscriptionResult
    segments: SegmentSet
    detected_language: str
    source_language: str
    tempo: int

    target_languages: list[str]
    translations: dict[str, TranslationReport]
    translation_failures: dict[str, list[UnitFailure]]
