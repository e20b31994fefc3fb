"""Translation stage: per-unit translate, validate and retry."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from typing import cast

from subtune.config import Settings, TranslationMode
from subtune.error_codes import ErrorCode
from subtune.exceptions import (
    BackendUnavailableError,
    ConfigurationError,
    TranslationError,
    TranslationUnitFailedError,
)
from subtune.models.quality import QualityScore, RejectReason, Verdict
from subtune.models.segment import Segment, SegmentSet
from subtune.models.translation import (
    TranslationAttempt,
    TranslationReport,
    TranslationUnit,
    UnitFailure,
)
from subtune.pipeline.context import PipelineContext
from subtune.providers.llm.base import TranslationBackend
from subtune.providers.registry import get_translation_backend
from subtune.services.quality_validator import QualityValidator
from subtune.services.translation_cache import TranslationCache
from subtune.stages.base import Stage
from subtune.utils.languages import normalize_language
from subtune.utils.sentence_merger import merge_segments
from subtune.utils.text_quality import tokenize
from subtune.utils.translation_distributor import distribute_translation

logger = logging.getLogger(__name__)

# A context-mode reply this many times longer than its source line has
# translated the reference lines too.
_CONTEXT_OVERFLOW_RATIO = 5

# Single words (names, numbers, interjections) may legitimately stay as-is.
_ECHO_MIN_TOKENS = 2


def _is_echo(translated: str, source_text: str) -> bool:
    tokens = tokenize(translated)
    return len(tokens) >= _ECHO_MIN_TOKENS and tokens == tokenize(source_text)


def parse_translation_mode(value: TranslationMode | str | None, default: TranslationMode) -> TranslationMode:
    raw = default if value is None or value == "" else value
    try:
        return TranslationMode(str(getattr(raw, "value", raw)).strip().lower())
    except ValueError as exc:
        raise ConfigurationError(f"Unknown translation mode: {raw!r}") from exc


def _unit_for(unit_id: int, segments: Sequence[Segment], context: str | None = None) -> TranslationUnit:
    return TranslationUnit(
        id=unit_id,
        segment_ids=tuple(int(s.id) for s in segments),
        text=" ".join(s.text.strip() for s in segments),
        start=float(segments[0].start),
        end=float(segments[-1].end),
        context=context,
    )


def _context_text(before: Sequence[Segment], after: Sequence[Segment]) -> str | None:
    parts: list[str] = []
    if before:
        parts.append("Previous lines:\n" + "\n".join(s.text.strip() for s in before))
    if after:
        parts.append("Following lines:\n" + "\n".join(s.text.strip() for s in after))
    return "\n\n".join(parts) or None


def plan_units(
    segments: SegmentSet,
    mode: TranslationMode,
    *,
    context_window_size: int = 2,
    gap_threshold: float = 2.0,
    max_chars: int | None = None,
    soft_max_chars: int | None = None,
) -> list[TranslationUnit]:
    """Split a SegmentSet into translation units; blank segments never become units.

    - simple: one unit per segment
    - context: one unit per segment with up to `context_window_size`
      neighbouring lines on each side as reference context
    - nlp: consecutive segments merged into sentences (see `merge_segments`)
    """
    spoken = [s for s in segments if not s.is_blank]
    match mode:
        case TranslationMode.SIMPLE:
            return [_unit_for(i, [seg]) for i, seg in enumerate(spoken)]
        case TranslationMode.CONTEXT:
            window = max(0, int(context_window_size))
            units: list[TranslationUnit] = []
            for i, seg in enumerate(spoken):
                before = spoken[max(0, i - window) : i] if window else []
                after = spoken[i + 1 : i + 1 + window] if window else []
                units.append(_unit_for(i, [seg], _context_text(before, after)))
            return units
        case TranslationMode.NLP:
            groups = merge_segments(
                spoken,
                gap_threshold=gap_threshold,
                max_chars=max_chars,
                soft_max_chars=soft_max_chars,
            )
            return [_unit_for(i, group) for i, group in enumerate(groups)]
    raise ConfigurationError(f"Unknown translation mode: {mode!r}")


@dataclass
class _UnitOutcome:
    unit: TranslationUnit
    texts: dict[int, str] = field(default_factory=dict)
    attempts: list[TranslationAttempt] = field(default_factory=list)
    backend_calls: int = 0
    failure: UnitFailure | None = None


class TranslationStage(Stage):
    """Translate a SegmentSet into each requested target language.

    Each unit is sent to the backend, checked by the quality gate and resent
    on rejection, up to `max_retries` extra times with no delay. A unit that
    runs out of attempts (or hits a backend error) is reported as a
    UnitFailure and keeps its source text; the stage still returns a full
    SegmentSet. Timings are never changed.

    A reply that only repeats the source text is rejected like any other
    low-quality reply. In context mode a reply far longer than its line means
    the reference lines were translated too; the context is dropped for the
    remaining attempts of that unit.

    Inputs:
      - segments
      - target_languages
      - source_language (optional, defaults to the SegmentSet language)

    Outputs:
      - translations: {language: TranslationReport}
      - translation_failures: {language: [UnitFailure, ...]}
    """

    name = "translation"

    def __init__(
        self,
        settings: Settings,
        *,
        backend: TranslationBackend | None = None,
        validator: QualityValidator | None = None,
        cache: TranslationCache | None = None,
    ) -> None:
        self.settings = settings
        self.backend = backend or get_translation_backend(settings.translation_backend_config())
        self.validator = validator or QualityValidator(settings.quality_thresholds())
        if cache is None and settings.translate.cache_dir:
            cache = TranslationCache(settings.translate.cache_dir, model=settings.translate.model)
        self.cache = cache

    def validate_input(self, context: PipelineContext) -> bool:
        return context.get("segments") is not None

    async def execute(self, context: PipelineContext) -> PipelineContext:
        context = cast(PipelineContext, dict(context))
        segments = context["segments"]
        translations: dict[str, TranslationReport] = dict(context.get("translations") or {})
        failures: dict[str, list[UnitFailure]] = dict(context.get("translation_failures") or {})
        for language in context.get("target_languages") or []:
            report = await self.translate(
                segments,
                language,
                mode=context.get("translation_mode"),
                source_language=context.get("source_language"),
            )
            translations[language] = report
            failures[language] = list(report.failures)
        context["translations"] = translations
        context["translation_failures"] = failures
        return context

    async def translate(
        self,
        segments: SegmentSet,
        target_language: str,
        *,
        mode: TranslationMode | str | None = None,
        source_language: str | None = None,
    ) -> TranslationReport:
        cfg = self.settings.translate
        resolved = parse_translation_mode(mode, cfg.mode)
        target = normalize_language(target_language)
        if not target:
            raise ConfigurationError("target_language is required")
        source = (
            normalize_language(source_language)
            or normalize_language(cfg.source_language)
            or normalize_language(segments.language)
            or "unknown"
        )

        units = plan_units(
            segments,
            resolved,
            context_window_size=cfg.context_window_size,
            gap_threshold=cfg.nlp_gap_threshold,
            max_chars=cfg.nlp_max_sentence_chars,
            soft_max_chars=cfg.nlp_soft_sentence_chars,
        )
        logger.info(
            "translation start (mode=%s, source=%s, target=%s, segments=%s, units=%s)",
            resolved.value,
            source,
            target,
            len(segments),
            len(units),
        )

        semaphore = asyncio.Semaphore(max(1, int(self.settings.concurrency.translation)))
        unit_segments = {int(s.id): s for s in segments}
        outcomes = await asyncio.gather(
            *(
                self._run_unit(unit, unit_segments, source, target, semaphore)
                for unit in units
            )
        )

        texts: dict[int, str] = {}
        languages: dict[int, str] = {}
        failures: list[UnitFailure] = []
        attempts: list[TranslationAttempt] = []
        calls = 0
        for outcome in outcomes:
            attempts.extend(outcome.attempts)
            calls += outcome.backend_calls
            if outcome.failure is None:
                texts.update(outcome.texts)
                continue
            failures.append(outcome.failure)
            for seg_id in outcome.unit.segment_ids:
                languages[seg_id] = source

        if units and len(failures) == len(units) and all(
            f.error_code == ErrorCode.BACKEND_UNAVAILABLE for f in failures
        ):
            raise TranslationError(
                f"translation backend failed for every unit (target={target}): {failures[0].reason}",
                error_code=ErrorCode.BACKEND_UNAVAILABLE,
            )

        translated = segments.with_texts(
            texts,
            language=target,
            backend_info=f"translation:{resolved.value}",
            segment_languages=languages,
        )
        report = TranslationReport(
            segments=translated,
            target_language=target,
            source_language=source,
            mode=resolved.value,
            failures=tuple(failures),
            attempts=tuple(attempts),
            backend_calls=calls,
        )
        if failures:
            logger.warning(
                "translation finished with failures (target=%s, failed_units=%s, failed_segments=%s)",
                target,
                len(failures),
                report.failed_segment_ids,
            )
        else:
            logger.info("translation done (target=%s, units=%s, backend_calls=%s)", target, len(units), calls)
        return report

    def _accept(self, unit: TranslationUnit, text: str, unit_segments: dict[int, Segment]) -> dict[int, str]:
        if len(unit.segment_ids) == 1:
            return {unit.segment_ids[0]: text.strip()}
        return distribute_translation(text, [unit_segments[i] for i in unit.segment_ids])

    def _validate(self, text: str, unit: TranslationUnit, source: str, target: str) -> QualityScore:
        quality = self.validator.validate_text(text, duration=unit.duration)
        if quality.accepted and source not in (target, "unknown") and _is_echo(text, unit.text):
            return replace(
                quality,
                verdict=Verdict.reject(RejectReason.UNTRANSLATED, f"reply repeats the {source} source"),
            )
        return quality

    async def _run_unit(
        self,
        unit: TranslationUnit,
        unit_segments: dict[int, Segment],
        source: str,
        target: str,
        semaphore: asyncio.Semaphore,
    ) -> _UnitOutcome:
        outcome = _UnitOutcome(unit=unit)
        async with semaphore:
            try:
                await self._translate_unit(outcome, unit_segments, source, target)
            except TranslationUnitFailedError as exc:
                logger.warning("translation unit failed (%s)", exc)
                outcome.failure = UnitFailure(
                    unit_id=unit.id,
                    segment_ids=unit.segment_ids,
                    reason=exc.reason,
                    attempts=exc.attempts,
                    error_code=exc.error_code,
                    quality=exc.quality,
                )
        return outcome

    async def _translate_unit(
        self,
        outcome: _UnitOutcome,
        unit_segments: dict[int, Segment],
        source: str,
        target: str,
    ) -> None:
        unit = outcome.unit
        if self.cache is not None:
            cached = await self.cache.get(unit.text, target_language=target, context=unit.context)
            if cached is not None and self._validate(cached, unit, source, target).accepted:
                logger.debug("translation cache hit (unit=%s)", unit.id)
                outcome.texts = self._accept(unit, cached, unit_segments)
                return

        max_attempts = int(self.settings.translate.max_retries) + 1
        context = unit.context
        quality: QualityScore | None = None
        for attempt in range(1, max_attempts + 1):
            outcome.backend_calls += 1
            try:
                translated = await self.backend.translate(
                    unit.text,
                    source_language=source,
                    target_language=target,
                    context=context,
                )
            except BackendUnavailableError as exc:
                raise TranslationUnitFailedError(
                    unit.id,
                    f"backend error: {exc}",
                    attempts=attempt,
                    quality=quality,
                    error_code=ErrorCode.BACKEND_UNAVAILABLE,
                ) from exc

            if context and len(translated) > _CONTEXT_OVERFLOW_RATIO * len(unit.text):
                # The model translated the reference lines as well.
                logger.info(
                    "translation too long, dropping context (unit=%s, attempt=%s/%s, chars=%s)",
                    unit.id,
                    attempt,
                    max_attempts,
                    len(translated),
                )
                context = None
                continue

            quality = self._validate(translated, unit, source, target)
            outcome.attempts.append(
                TranslationAttempt(
                    source_segment_ids=unit.segment_ids,
                    translated_text=translated,
                    attempt_number=attempt,
                    quality=quality,
                )
            )
            if quality.accepted:
                outcome.texts = self._accept(unit, translated, unit_segments)
                if self.cache is not None:
                    await self.cache.put(unit.text, translated, target_language=target, context=unit.context)
                return
            logger.info(
                "translation rejected (unit=%s, attempt=%s/%s, %s)",
                unit.id,
                attempt,
                max_attempts,
                quality.describe(),
            )

        raise TranslationUnitFailedError(
            unit.id,
            f"quality rejected: {quality.verdict if quality else 'context overflow'}",
            attempts=max_attempts,
            quality=quality,
        )
