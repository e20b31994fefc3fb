"""Stage abstractions for pipeline execution."""

from __future__ import annotations

from abc import ABC, abstractmethod

from subtune.pipeline.context import PipelineContext


class Stage(ABC):
    """Pipeline stage base class."""

    name: str

    @abstractmethod
    async def execute(self, context: PipelineContext) -> PipelineContext:
        """Run the stage and return an updated copy of the context."""

    @abstractmethod
    def validate_input(self, context: PipelineContext) -> bool:
        """Return True when the context carries what the stage needs."""
