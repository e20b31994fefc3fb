"""Pipeline factories."""

from __future__ import annotations

from subtune.config import Settings
from subtune.pipeline.executor import PipelineExecutor
from subtune.providers.asr.base import TranscriptionBackend
from subtune.providers.llm.base import TranslationBackend
from subtune.services.quality_validator import QualityValidator
from subtune.stages import TranscriptionStage, TranslationStage


def create_subtitle_pipeline(
    config: Settings,
    *,
    transcription_backend: TranscriptionBackend | None = None,
    translation_backend: TranslationBackend | None = None,
) -> PipelineExecutor:
    """Transcription followed by translation into every `target_languages` entry."""
    validator = QualityValidator(config.quality_thresholds())
    stages = [
        TranscriptionStage(config, backend=transcription_backend, validator=validator),
        TranslationStage(config, backend=translation_backend, validator=validator),
    ]
    return PipelineExecutor(stages)
