"""Serialization helpers for segment sets stored as JSON."""

from __future__ import annotations

import math
from typing import Any

from subtune.models.segment import Segment, SegmentSet
from subtune.models.translation import TranslationReport
from subtune.models.tuning import TuneResult


def serialize_segments(segs: SegmentSet | list[Segment]) -> list[dict[str, Any]]:
    return [
        {
            "id": int(s.id),
            "start": float(s.start),
            "end": float(s.end),
            "text": str(s.text),
            "confidence": s.confidence,
            "language": s.language,
        }
        for s in segs
    ]


def deserialize_segments(items: list[dict[str, Any]]) -> list[Segment]:
    out: list[Segment] = []
    for item in items:
        confidence = item.get("confidence")
        out.append(
            Segment(
                id=int(item["id"]),
                start=float(item["start"]),
                end=float(item["end"]),
                text=str(item.get("text") or ""),
                confidence=float(confidence) if confidence is not None else None,
                language=item.get("language"),
            )
        )
    return out


def serialize_segment_set(segment_set: SegmentSet) -> dict[str, Any]:
    return {
        "language": segment_set.language,
        "duration": segment_set.duration,
        "backend_info": segment_set.backend_info,
        "segments": serialize_segments(segment_set),
    }


def deserialize_segment_set(data: dict[str, Any]) -> SegmentSet:
    duration = data.get("duration")
    return SegmentSet(
        segments=tuple(deserialize_segments(list(data.get("segments") or []))),
        language=str(data.get("language") or "unknown"),
        duration=float(duration) if duration is not None else None,
        backend_info=data.get("backend_info"),
    )


def serialize_tune_result(result: TuneResult) -> dict[str, Any]:
    return {
        "best_tempo": int(result.best_tempo),
        "exploration_model": result.exploration_model,
        "candidates": [
            {
                "tempo_percent": int(c.tempo_percent),
                "smoothness_score": None if math.isinf(c.smoothness_score) else float(c.smoothness_score),
                "segment_count": int(c.segment_count),
                "accepted": bool(c.accepted),
                "verdict": str(c.quality.verdict) if c.quality is not None else None,
                "error": c.error,
            }
            for c in result.candidates
        ],
    }


def serialize_translation_report(report: TranslationReport) -> dict[str, Any]:
    return {
        "target_language": report.target_language,
        "source_language": report.source_language,
        "mode": report.mode,
        "backend_calls": int(report.backend_calls),
        "segments": serialize_segment_set(report.segments),
        "failures": [
            {
                "unit_id": int(f.unit_id),
                "segment_ids": [int(i) for i in f.segment_ids],
                "reason": f.reason,
                "attempts": int(f.attempts),
                "error_code": str(getattr(f.error_code, "value", f.error_code)),
            }
            for f in report.failures
        ],
    }
