"""Pipeline orchestration.

Stages import `subtune.pipeline.context` for type hints, so the heavier
modules here are loaded lazily to avoid circular imports.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from subtune.pipeline.executor import PipelineExecutor
    from subtune.pipeline.factory import create_subtitle_pipeline
    from subtune.pipeline.stage_runners import run_transcription, run_translation

__all__ = ["PipelineExecutor", "create_subtitle_pipeline", "run_transcription", "run_translation"]


def __getattr__(name: str) -> Any:
    if name == "PipelineExecutor":
        from subtune.pipeline.executor import PipelineExecutor

        return PipelineExecutor
    if name == "create_subtitle_pipeline":
        from subtune.pipeline.factory import create_subtitle_pipeline

        return create_subtitle_pipeline
    if name in ("run_transcription", "run_translation"):
        from subtune.pipeline import stage_runners

        return getattr(stage_runners, name)
    raise AttributeError(name)
