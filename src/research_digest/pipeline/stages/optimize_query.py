"""Query refinement stage."""

from research_digest.capabilities import RefineQuery
from research_digest.models import StageId
from research_digest.pipeline.stages.base import Stage
from research_digest.pipeline.state import PipelineState


class OptimizeQueryStage(Stage):
    """Rewrite the topic into a search query.

    A blank answer falls back to the topic itself.
    """

    stage_id = StageId.OPTIMIZE_QUERY

    def __init__(self, refine_query: RefineQuery):
        self.refine_query = refine_query

    def execute(self, state: PipelineState) -> PipelineState:
        log = self._log(state)
        query = (self.refine_query(state.topic) or "").strip()
        if not query:
            log.warning("empty_query_refinement", topic=state.topic)
            query = state.topic

        log.info("query_optimized", topic=state.topic, optimized_query=query)
        return state.with_updates(optimized_query=query)

    def progress_payload(self, state: PipelineState):
        return state.optimized_query
