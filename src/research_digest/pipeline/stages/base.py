"""Stage contract for the research graph."""

from abc import ABC, abstractmethod
from typing import Any

import structlog

from research_digest.models import StageId, stage_key
from research_digest.pipeline.state import PipelineState


class Stage(ABC):
    """One unit of work in the stage graph.

    Implementations only transform the state. Timing, error capture and
    progress delivery are done by ``StageGraph.execute``, so ``execute``
    may simply raise on failure.
    """

    stage_id: StageId | str
    # Set when the stage pushes its own success event (detached work)
    reports_own_progress: bool = False

    @abstractmethod
    def execute(self, state: PipelineState) -> PipelineState:
        """Run the stage and return the next state."""

    def next_stages(self, state: PipelineState, declared_edges: list[str]) -> list[str]:
        """Choose which declared outgoing edges to follow.

        Args:
            state: State after this stage ran (or the input state on failure).
            declared_edges: Statically declared successors, in insertion order.

        Returns:
            Subset of ``declared_edges``. Empty makes the stage terminal.
        """
        return list(declared_edges)

    def progress_payload(self, state: PipelineState) -> Any:
        """Payload of the progress event pushed after the stage succeeds."""
        return None

    def _log(self, state: PipelineState):
        return structlog.get_logger(type(self).__module__).bind(
            run_id=state.run_id,
            stage=stage_key(self.stage_id),
        )
