"""Processing stages."""

from subtune.stages.base import Stage
from subtune.stages.transcription import TranscriptionStage
from subtune.stages.translation import TranslationStage, plan_units

__all__ = ["Stage", "TranscriptionStage", "TranslationStage", "plan_units"]
