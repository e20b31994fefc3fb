"""Entry points for callers that drive one stage at a time."""

from __future__ import annotations

from subtune.config import Settings, TranscriptionMode, TranslationMode
from subtune.models.segment import SegmentSet
from subtune.models.translation import TranslationReport
from subtune.models.tuning import TranscriptionResult
from subtune.pipeline.executor import close_backend
from subtune.providers.asr.base import TranscriptionBackend
from subtune.providers.llm.base import TranslationBackend
from subtune.stages import TranscriptionStage, TranslationStage


async def run_transcription(
    audio_path: str,
    mode: TranscriptionMode | str | None = None,
    settings: Settings | None = None,
    *,
    backend: TranscriptionBackend | None = None,
) -> TranscriptionResult:
    """Transcribe one audio file.

    Raises:
        TranscriptionError: exploration exhausted, final pass rejected, or
            unsupported language without a fallback.
        BackendUnavailableError: the final pass could not be run.
    """
    settings = settings or Settings()
    stage = TranscriptionStage(settings, backend=backend)
    try:
        return await stage.transcribe(audio_path, mode=mode)
    finally:
        if backend is None:
            await close_backend(stage.backend)


async def run_translation(
    segments: SegmentSet,
    target_language: str,
    mode: TranslationMode | str | None = None,
    settings: Settings | None = None,
    *,
    backend: TranslationBackend | None = None,
    source_language: str | None = None,
) -> TranslationReport:
    """Translate a SegmentSet; per-unit failures are listed on the report.

    Raises:
        TranslationError: every unit failed because the backend was unavailable.
    """
    settings = settings or Settings()
    stage = TranslationStage(settings, backend=backend)
    try:
        return await stage.translate(
            segments,
            target_language,
            mode=mode,
            source_language=source_language,
        )
    finally:
        if backend is None:
            await close_backend(stage.backend)
