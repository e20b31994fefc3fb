"""subtune exception hierarchy."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from subtune.error_codes import ErrorCode

if TYPE_CHECKING:
    from subtune.models.quality import QualityScore
    from subtune.models.tuning import TempoCandidate


class SubTuneError(Exception):
    """Base error for subtune."""


class ConfigurationError(SubTuneError):
    """Raised when configuration or inputs are invalid."""


class BackendUnavailableError(SubTuneError):
    """Raised when an external collaborator (process or network) fails."""

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        error_code: ErrorCode | str | None = ErrorCode.BACKEND_UNAVAILABLE,
    ) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message
        self.error_code = error_code


class StageExecutionError(SubTuneError):
    """Raised when a pipeline stage cannot produce a usable result."""

    def __init__(
        self,
        stage: str,
        message: str,
        *,
        error_code: ErrorCode | str | None = None,
    ) -> None:
        super().__init__(f"{stage}: {message}")
        self.stage = stage
        self.message = message
        self.error_code = error_code


class TranscriptionError(StageExecutionError):
    """Fatal failure of the transcription stage."""

    def __init__(self, message: str, *, error_code: ErrorCode | str | None = None) -> None:
        super().__init__("transcription", message, error_code=error_code)


class ExplorationExhaustedError(TranscriptionError):
    """No tempo candidate passed the quality gate."""

    def __init__(self, candidates: Sequence[TempoCandidate]) -> None:
        self.candidates = tuple(candidates)
        lines = "; ".join(c.describe() for c in self.candidates) or "no candidates"
        super().__init__(
            f"all {len(self.candidates)} tempo candidates rejected ({lines})",
            error_code=ErrorCode.EXPLORATION_EXHAUSTED,
        )


class TranscriptionRejectedError(TranscriptionError):
    """The final transcription pass failed the quality gate."""

    def __init__(self, quality: QualityScore, *, tempo_percent: int, model: str) -> None:
        self.quality = quality
        self.tempo_percent = int(tempo_percent)
        self.model = model
        super().__init__(
            f"final pass rejected (model={model}, tempo={tempo_percent}%, {quality.describe()})",
            error_code=ErrorCode.TRANSCRIPTION_REJECTED,
        )


class LanguageUnsupportedError(TranscriptionError):
    """Detected language is outside the acceptable set and no fallback is configured."""

    def __init__(self, language: str, acceptable: Sequence[str]) -> None:
        self.language = language
        self.acceptable = tuple(acceptable)
        super().__init__(
            f"detected language {language!r} is not acceptable and no fallback_language is set",
            error_code=ErrorCode.LANGUAGE_UNSUPPORTED,
        )


class TranslationError(StageExecutionError):
    """Fatal failure of the translation stage."""

    def __init__(self, message: str, *, error_code: ErrorCode | str | None = None) -> None:
        super().__init__("translation", message, error_code=error_code)


class TranslationUnitFailedError(SubTuneError):
    """One translation unit exhausted its budget; recorded by the stage, never propagated."""

    def __init__(
        self,
        unit_id: int,
        reason: str,
        *,
        attempts: int,
        quality: QualityScore | None = None,
        error_code: ErrorCode | str = ErrorCode.TRANSLATION_UNIT_FAILED,
    ) -> None:
        super().__init__(f"unit {unit_id}: {reason} (attempts={attempts})")
        self.unit_id = int(unit_id)
        self.reason = reason
        self.attempts = int(attempts)
        self.quality = quality
        self.error_code = error_code
