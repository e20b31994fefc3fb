"""Pipeline executor."""

from __future__ import annotations

import logging
import time
from typing import Any

from subtune.exceptions import StageExecutionError
from subtune.pipeline.context import PipelineContext
from subtune.stages.base import Stage

logger = logging.getLogger(__name__)


async def close_backend(backend: Any) -> None:
    """Release a backend's resources (HTTP clients) when it has any."""
    close = getattr(backend, "close", None)
    if close is not None:
        await close()


class PipelineExecutor:
    """Runs stages one after another over a shared context."""

    def __init__(self, stages: list[Stage]):
        self.stages = stages

    async def run(self, initial_context: PipelineContext) -> PipelineContext:
        context: PipelineContext = dict(initial_context)  # type: ignore[assignment]
        for stage in self.stages:
            if not stage.validate_input(context):
                raise StageExecutionError(stage.name, "input validation failed")
            started = time.monotonic()
            context = await stage.execute(context)
            logger.info(
                "stage done (stage=%s, elapsed_s=%.2f)",
                stage.name,
                time.monotonic() - started,
            )
        return context

    async def close(self) -> None:
        for stage in self.stages:
            await close_backend(getattr(stage, "backend", None))
