"""Document fetch stage."""

from concurrent.futures import Executor

from research_digest.extraction.coordinator import DocumentLoader, collect_documents
from research_digest.models import StageId
from research_digest.pipeline.stages.base import Stage
from research_digest.pipeline.state import PipelineState


class FetchContentStage(Stage):
    """Fetch and structure the top search results into documents."""

    stage_id = StageId.FETCH_CONTENT

    def __init__(self, load_document: DocumentLoader, executor: Executor, min_document_chars: int = 150):
        self.load_document = load_document
        self.executor = executor
        self.min_document_chars = min_document_chars

    def execute(self, state: PipelineState) -> PipelineState:
        log = self._log(state)
        candidates = state.search_results or []

        documents = collect_documents(
            target_count=state.result_count,
            candidates=candidates,
            load_document=self.load_document,
            executor=self.executor,
            min_document_chars=self.min_document_chars,
        )

        log.info(
            "content_fetched",
            documents=len(documents),
            target=state.result_count,
            candidates=len(candidates),
            total_chars=sum(d.total_characters for d in documents),
        )
        return state.with_updates(structured_documents=documents)

    def next_stages(self, state: PipelineState, declared_edges: list[str]) -> list[str]:
        if state.skip_expensive_stages:
            return []
        return list(declared_edges)

    def progress_payload(self, state: PipelineState):
        return state.structured_documents
