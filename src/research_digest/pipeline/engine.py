"""Stage graph execution engine.

Stages run one at a time in breadth-first order from the entry stage.
Each stage id runs at most once per run, so cyclic edge sets terminate.
Failures are caught per stage, timed and recorded in the state, and the
traversal continues with the state the failed stage received.
"""

import time
from collections import deque

import structlog

from research_digest.models import StageId, stage_key
from research_digest.pipeline.progress import emit_progress, has_progress_events
from research_digest.pipeline.stages.base import Stage
from research_digest.pipeline.state import PipelineState

logger = structlog.get_logger(__name__)


class StageGraph:
    """Directed graph of stages with conditional routing."""

    def __init__(self, entry: StageId | str):
        self.entry = stage_key(entry)
        self._stages: dict[str, Stage] = {}
        self._edges: dict[str, list[str]] = {}

    # =========================================================================
    # Builder
    # =========================================================================

    def add_stage(self, stage: Stage) -> "StageGraph":
        """Register a stage implementation under its id.

        Progress events are named after stage ids, so only ids that are
        ``EventType`` values reach a progress sink. Other ids are logged
        as a warning here and run without progress events.
        """
        key = stage_key(stage.stage_id)
        if not has_progress_events(key):
            logger.warning("stage_progress_unsupported", stage=key)
        self._stages[key] = stage
        return self

    def add_edge(self, source: StageId | str, target: StageId | str) -> "StageGraph":
        """Declare ``target`` as a successor of ``source``. Duplicates are ignored."""
        targets = self._edges.setdefault(stage_key(source), [])
        if stage_key(target) not in targets:
            targets.append(stage_key(target))
        return self

    def remove_stage(self, stage: StageId | str) -> "StageGraph":
        """Unregister a stage and every edge touching it."""
        key = stage_key(stage)
        self._stages.pop(key, None)
        self._edges.pop(key, None)
        for targets in self._edges.values():
            if key in targets:
                targets.remove(key)
        return self

    def remove_edge(self, source: StageId | str, target: StageId | str) -> "StageGraph":
        targets = self._edges.get(stage_key(source), [])
        if stage_key(target) in targets:
            targets.remove(stage_key(target))
        return self

    @property
    def stages(self) -> dict[str, Stage]:
        return dict(self._stages)

    @property
    def edges(self) -> dict[str, list[str]]:
        return {source: list(targets) for source, targets in self._edges.items()}

    def validate(self) -> list[str]:
        """Check the graph shape.

        Returns:
            Ids of registered stages not reachable from the entry stage.
            Each is also logged as a warning.

        Raises:
            ValueError: If the entry stage is not registered.
        """
        if self.entry not in self._stages:
            raise ValueError(f"Entry stage {self.entry} is not registered")

        reachable = {self.entry}
        frontier = [self.entry]
        while frontier:
            for target in self._edges.get(frontier.pop(), []):
                if target not in reachable:
                    reachable.add(target)
                    frontier.append(target)

        unreachable = [key for key in self._stages if key not in reachable]
        for key in unreachable:
            logger.warning("stage_unreachable", stage=key, entry=self.entry)
        return unreachable

    # =========================================================================
    # Execution
    # =========================================================================

    def execute(self, state: PipelineState) -> PipelineState:
        """Run the graph from the entry stage until no stage is pending.

        Args:
            state: Initial state.

        Returns:
            State after the last stage ran.
        """
        queue: deque[str] = deque([self.entry])
        visited: set[str] = set()
        run_log = logger.bind(run_id=state.run_id)

        run_log.info("graph_execution_start", entry=self.entry, topic=state.topic)

        while queue:
            key = queue.popleft()
            if key in visited:
                continue

            stage = self._stages.get(key)
            if stage is None:
                run_log.warning("stage_not_registered", stage=key)
                visited.add(key)
                continue

            state = self._run_stage(stage, key, state)
            visited.add(key)

            declared = list(self._edges.get(key, []))
            state, chosen = self._route(stage, key, state, declared)
            for target in chosen:
                if target not in visited:
                    queue.append(target)

            run_log.debug("stage_routing", stage=key, declared=declared, chosen=chosen)

        run_log.info(
            "graph_execution_complete",
            stages_run=len(state.stage_durations),
            stage_durations=state.stage_durations,
            errors=state.stage_errors,
            total_seconds=round(state.elapsed_seconds, 3),
        )
        return state

    def _run_stage(self, stage: Stage, key: str, state: PipelineState) -> PipelineState:
        """Run one stage inside the timed, error-capturing envelope."""
        input_state = state.with_updates(current_stage=key)
        stage_start = time.perf_counter()
        logger.info("stage_start", run_id=state.run_id, stage=key)

        try:
            result = stage.execute(input_state)
        except Exception as e:
            duration = time.perf_counter() - stage_start
            message = str(e) or type(e).__name__
            logger.error(
                "stage_failed",
                run_id=state.run_id,
                stage=key,
                error=message,
                duration_ms=round(duration * 1000),
            )
            failed = input_state.record_duration(key, duration).record_error(key, message)
            emit_progress(failed.progress_sink, key, {"error": message})
            return failed

        duration = time.perf_counter() - stage_start
        result = result.record_duration(key, duration)
        logger.info("stage_complete", run_id=state.run_id, stage=key, duration_ms=round(duration * 1000))

        if not stage.reports_own_progress:
            emit_progress(result.progress_sink, key, self._payload(stage, result))
        return result

    def _route(
        self,
        stage: Stage,
        key: str,
        state: PipelineState,
        declared: list[str],
    ) -> tuple[PipelineState, list[str]]:
        """Ask the stage for its successors, keeping only declared edges.

        A routing failure makes the stage terminal and is recorded as its
        error unless the stage already failed.
        """
        try:
            chosen = [stage_key(t) for t in stage.next_stages(state, declared)]
        except Exception as e:
            message = str(e) or type(e).__name__
            logger.error("stage_routing_failed", run_id=state.run_id, stage=key, error=message)
            if state.error_for(key) is None:
                state = state.record_error(key, message)
            return state, []

        undeclared = [t for t in chosen if t not in declared]
        if undeclared:
            logger.warning("undeclared_edges_ignored", run_id=state.run_id, stage=key, targets=undeclared)
        return state, [t for t in chosen if t in declared]

    @staticmethod
    def _payload(stage: Stage, state: PipelineState):
        try:
            return stage.progress_payload(state)
        except Exception as e:
            logger.warning("progress_payload_failed", stage=stage_key(stage.stage_id), error=str(e))
            return None
