"""Tempo grid generation and segment smoothness scoring."""

from __future__ import annotations

import math
from collections.abc import Iterable

from subtune.models.segment import Segment

NEUTRAL_TEMPO = 100


def _round_half_down(value: float) -> int:
    # 1e-9 absorbs float noise such as 89.99999999 for an exact 90.
    return int(math.ceil(value - 0.5 - 1e-9))


def generate_tempo_range(min_tempo: int, max_tempo: int, steps: int) -> list[int]:
    """Return `steps` evenly spaced integer tempos across [min_tempo, max_tempo] inclusive.

    Values are rounded to the nearest integer with ties going to the lower
    value; duplicates produced by narrow ranges are dropped.
    """
    lo, hi = int(min_tempo), int(max_tempo)
    if lo > hi:
        raise ValueError(f"min_tempo ({lo}) must be <= max_tempo ({hi})")
    if steps <= 1 or lo == hi:
        if lo <= NEUTRAL_TEMPO <= hi:
            return [NEUTRAL_TEMPO]
        return [_round_half_down((lo + hi) / 2.0)]

    step = (hi - lo) / float(steps - 1)
    out: list[int] = []
    for i in range(int(steps)):
        value = min(hi, max(lo, _round_half_down(lo + i * step)))
        if value not in out:
            out.append(value)
    return out


def segment_smoothness(segments: Iterable[Segment]) -> float:
    """Coefficient of variation of segment durations (lower is smoother).

    Fewer than two timed segments cannot be judged and score infinity.
    """
    durations = [float(s.end) - float(s.start) for s in segments]
    durations = [d for d in durations if d > 0.0]
    if len(durations) < 2:
        return math.inf
    mean = sum(durations) / len(durations)
    if mean <= 0.0:
        return math.inf
    variance = sum((d - mean) ** 2 for d in durations) / len(durations)
    return math.sqrt(variance) / mean
