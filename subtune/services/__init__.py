"""Quality gate, tempo exploration and cache services."""

from subtune.services.quality_validator import QualityValidator
from subtune.services.tempo_explorer import TempoExplorer, select_best
from subtune.services.transcription_cache import TranscriptionCache
from subtune.services.translation_cache import TranslationCache

__all__ = [
    "QualityValidator",
    "TempoExplorer",
    "TranscriptionCache",
    "TranslationCache",
    "select_best",
]
