"""Tempo exploration: transcribe at several playback speeds and keep the smoothest.

Every tempo in the configured grid is transcribed with the cheap exploration
model (bounded by a semaphore), scored by the QualityValidator and by segment
smoothness. Selection only ever considers candidates the quality gate
accepted. Ties on smoothness prefer the tempo closest to 100%, then the lower
tempo, so the result does not depend on completion order.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Sequence

from subtune.exceptions import BackendUnavailableError, ExplorationExhaustedError
from subtune.models.quality import QualityThresholds
from subtune.models.tuning import TempoCandidate, TuneResult
from subtune.providers.asr.base import TranscriptionBackend
from subtune.services.quality_validator import QualityValidator
from subtune.utils.tempo import NEUTRAL_TEMPO, generate_tempo_range, segment_smoothness

logger = logging.getLogger(__name__)

_SMOOTHNESS_EPS = 1e-9


def _same_smoothness(a: float, b: float) -> bool:
    if math.isinf(a) or math.isinf(b):
        return math.isinf(a) and math.isinf(b)
    return abs(a - b) <= _SMOOTHNESS_EPS


def select_best(candidates: Sequence[TempoCandidate]) -> TempoCandidate | None:
    """Return the accepted candidate with the lowest smoothness score, or None."""
    best: TempoCandidate | None = None
    for cand in candidates:
        if not cand.accepted:
            continue
        if best is None:
            best = cand
            continue
        if _same_smoothness(cand.smoothness_score, best.smoothness_score):
            key = (abs(cand.tempo_percent - NEUTRAL_TEMPO), cand.tempo_percent)
            best_key = (abs(best.tempo_percent - NEUTRAL_TEMPO), best.tempo_percent)
            if key < best_key:
                best = cand
        elif cand.smoothness_score < best.smoothness_score:
            best = cand
    return best


class TempoExplorer:
    def __init__(
        self,
        backend: TranscriptionBackend,
        validator: QualityValidator,
        *,
        explore_model: str,
        temperature: float = 0.0,
        max_concurrency: int = 2,
        thresholds: QualityThresholds | None = None,
    ) -> None:
        self.backend = backend
        self.validator = validator
        self.explore_model = explore_model
        self.temperature = float(temperature)
        self.max_concurrency = max(1, int(max_concurrency))
        self.thresholds = thresholds

    async def _try_tempo(
        self,
        audio_path: str,
        tempo: int,
        semaphore: asyncio.Semaphore,
        language_hint: str | None,
    ) -> TempoCandidate:
        async with semaphore:
            try:
                segments = await self.backend.transcribe(
                    audio_path,
                    model=self.explore_model,
                    tempo_percent=tempo,
                    temperature=self.temperature,
                    language_hint=language_hint,
                )
            except BackendUnavailableError as exc:
                logger.warning("tempo candidate failed (tempo=%s, error=%s)", tempo, exc)
                return TempoCandidate(
                    tempo_percent=tempo,
                    smoothness_score=math.inf,
                    segment_count=0,
                    error=str(exc),
                )

        quality = self.validator.validate_segments(segments, self.thresholds)
        candidate = TempoCandidate(
            tempo_percent=tempo,
            smoothness_score=segment_smoothness(segments),
            segment_count=len(segments),
            quality=quality,
        )
        logger.info(
            "tempo candidate (tempo=%s, smoothness=%.4f, segments=%s, accepted=%s)",
            tempo,
            candidate.smoothness_score,
            candidate.segment_count,
            candidate.accepted,
        )
        return candidate

    async def explore(
        self,
        audio_path: str,
        *,
        min_tempo: int,
        max_tempo: int,
        steps: int,
        language_hint: str | None = None,
    ) -> TuneResult:
        """Try every tempo in the grid and return the best accepted candidate.

        Raises:
            ExplorationExhaustedError: no candidate passed the quality gate.
        """
        tempos = generate_tempo_range(min_tempo, max_tempo, steps)
        logger.info(
            "exploring tempos (model=%s, tempos=%s, concurrency=%s)",
            self.explore_model,
            tempos,
            self.max_concurrency,
        )
        semaphore = asyncio.Semaphore(self.max_concurrency)
        candidates = await asyncio.gather(
            *(self._try_tempo(audio_path, t, semaphore, language_hint) for t in tempos)
        )

        best = select_best(candidates)
        if best is None:
            raise ExplorationExhaustedError(candidates)

        result = TuneResult(
            best_tempo=best.tempo_percent,
            best=best,
            candidates=tuple(candidates),
            exploration_model=self.explore_model,
        )
        logger.info("%s", result.describe())
        return result
