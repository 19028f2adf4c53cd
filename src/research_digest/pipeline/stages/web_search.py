"""Web search stage."""

from research_digest.capabilities import Search
from research_digest.models import StageId
from research_digest.pipeline.stages.base import Stage
from research_digest.pipeline.state import PipelineState


class WebSearchStage(Stage):
    """Search the web with the optimized query (or the raw topic).

    More candidates than documents are requested so the fetch stage can
    replace pages that fail to download or structure.

    Args:
        search: Search capability.
        candidate_factor: Candidates requested per wanted document.
        max_candidates: Upper bound on candidates requested.
    """

    stage_id = StageId.WEB_SEARCH

    def __init__(self, search: Search, candidate_factor: int = 4, max_candidates: int = 100):
        self.search = search
        self.candidate_factor = candidate_factor
        self.max_candidates = max_candidates

    def execute(self, state: PipelineState) -> PipelineState:
        log = self._log(state)
        query = state.optimized_query or state.topic
        count = min(max(state.result_count * self.candidate_factor, state.result_count), self.max_candidates)

        log.info("searching", query=query, candidates_requested=count, result_count=state.result_count)
        results = self.search(query, count)

        log.info("search_results_received", count=len(results))
        return state.with_updates(search_results=results)

    def next_stages(self, state: PipelineState, declared_edges: list[str]) -> list[str]:
        if state.search_results is None:
            return []
        if state.skip_expensive_stages:
            return [edge for edge in declared_edges if edge != StageId.FETCH_CONTENT.value]
        return list(declared_edges)

    def progress_payload(self, state: PipelineState):
        return state.search_results
