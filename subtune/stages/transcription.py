"""Transcription stage: single-pass or tempo-tuned, always quality gated."""

from __future__ import annotations

import logging
from typing import cast

from subtune.config import Settings, TranscriptionMode
from subtune.exceptions import (
    ConfigurationError,
    LanguageUnsupportedError,
    TranscriptionRejectedError,
)
from subtune.models.tuning import TranscriptionResult, TuneResult
from subtune.pipeline.context import PipelineContext
from subtune.providers.asr.base import TranscriptionBackend
from subtune.providers.registry import get_transcription_backend
from subtune.services.quality_validator import QualityValidator
from subtune.services.tempo_explorer import TempoExplorer
from subtune.stages.base import Stage
from subtune.utils.languages import normalize_language
from subtune.utils.tempo import NEUTRAL_TEMPO

logger = logging.getLogger(__name__)


def parse_transcription_mode(value: TranscriptionMode | str | None, default: TranscriptionMode) -> TranscriptionMode:
    raw = default if value is None or value == "" else value
    try:
        return TranscriptionMode(str(getattr(raw, "value", raw)).strip().lower())
    except ValueError as exc:
        raise ConfigurationError(f"Unknown transcription mode: {raw!r}") from exc


class TranscriptionStage(Stage):
    """Transcribe `audio_path` into a validated SegmentSet.

    Simple mode makes one pass at 100% tempo with the transcribe model. Tuned
    mode first explores the tempo grid with the exploration model and then
    makes the final pass at the winning tempo. The final pass must pass the
    quality gate; there is no retry and no fallback to Simple mode.

    Inputs:
      - audio_path
      - transcription_mode (optional, defaults to settings)

    Outputs:
      - transcription, segments, detected_language, source_language, tempo
    """

    name = "transcription"

    def __init__(
        self,
        settings: Settings,
        *,
        backend: TranscriptionBackend | None = None,
        validator: QualityValidator | None = None,
    ) -> None:
        self.settings = settings
        self.backend = backend or get_transcription_backend(settings.transcription_backend_config())
        self.validator = validator or QualityValidator(settings.quality_thresholds())

    def validate_input(self, context: PipelineContext) -> bool:
        return bool(context.get("audio_path"))

    async def execute(self, context: PipelineContext) -> PipelineContext:
        context = cast(PipelineContext, dict(context))
        result = await self.transcribe(
            context["audio_path"],
            mode=context.get("transcription_mode"),
        )
        context["transcription"] = result
        context["segments"] = result.segments
        context["detected_language"] = result.detected_language
        context["source_language"] = result.source_language
        context["tempo"] = result.tempo_percent
        return context

    async def transcribe(
        self,
        audio_path: str,
        *,
        mode: TranscriptionMode | str | None = None,
    ) -> TranscriptionResult:
        cfg = self.settings.transcriber
        resolved = parse_transcription_mode(mode, cfg.mode)
        language_hint = normalize_language(cfg.language) or None

        tuning: TuneResult | None = None
        tempo = NEUTRAL_TEMPO
        if resolved is TranscriptionMode.TUNED:
            explorer = TempoExplorer(
                self.backend,
                self.validator,
                explore_model=cfg.explore_model,
                temperature=cfg.temperature,
                max_concurrency=self.settings.concurrency.exploration,
            )
            tuning = await explorer.explore(
                audio_path,
                min_tempo=cfg.explore_range_min,
                max_tempo=cfg.explore_range_max,
                steps=cfg.explore_steps,
                language_hint=language_hint,
            )
            tempo = tuning.best_tempo

        logger.info(
            "transcription final pass (mode=%s, model=%s, tempo=%s)",
            resolved.value,
            cfg.transcribe_model,
            tempo,
        )
        segments = await self.backend.transcribe(
            audio_path,
            model=cfg.transcribe_model,
            tempo_percent=tempo,
            temperature=cfg.temperature,
            language_hint=language_hint,
        )
        quality = self.validator.validate_segments(segments)
        if not quality.accepted:
            raise TranscriptionRejectedError(quality, tempo_percent=tempo, model=cfg.transcribe_model)

        detected = normalize_language(segments.language) or "unknown"
        source = self.resolve_source_language(detected)
        logger.info(
            "transcription accepted (segments=%s, detected=%s, source=%s, %s)",
            len(segments),
            detected,
            source,
            quality.describe(),
        )
        return TranscriptionResult(
            segments=segments,
            detected_language=detected,
            source_language=source,
            tempo_percent=tempo,
            model=cfg.transcribe_model,
            quality=quality,
            tuning=tuning,
        )

    def resolve_source_language(self, detected: str) -> str:
        """Language assumed by translation for this transcript.

        An explicit `TRANSLATE_SOURCE_LANGUAGE` wins; otherwise the detected
        language if acceptable, else the fallback language.
        """
        override = normalize_language(self.settings.translate.source_language)
        if override:
            return override

        acceptable = self.settings.transcriber.acceptable_language_list()
        if detected in acceptable:
            return detected

        fallback = normalize_language(self.settings.transcriber.fallback_language)
        if not fallback:
            raise LanguageUnsupportedError(detected, acceptable)
        logger.warning(
            "detected language not acceptable, using fallback (detected=%s, fallback=%s)",
            detected,
            fallback,
        )
        return fallback
