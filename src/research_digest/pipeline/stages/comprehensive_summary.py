"""Comprehensive summary stage."""

from research_digest.capabilities import Summarize
from research_digest.extraction.formatter import format_document
from research_digest.models import StageId
from research_digest.pipeline.stages.base import Stage
from research_digest.pipeline.state import PipelineState

NO_CONTENT_SUMMARY = "Unable to generate comprehensive summary - no content fetched."


def _available_quick_summary(state: PipelineState) -> str | None:
    if state.quick_summary:
        return state.quick_summary
    job = state.quick_summary_job
    if job is None or not job.done() or job.cancelled() or job.exception() is not None:
        return None
    return job.result()


def fallback_summary(state: PipelineState) -> str:
    """Labelled summary used when no document could be fetched."""
    summary = NO_CONTENT_SUMMARY
    quick = _available_quick_summary(state)
    if quick:
        summary += f"\n\nQuick summary: {quick}"
    return summary


class ComprehensiveSummaryStage(Stage):
    """Summarize the structured documents into the final report."""

    stage_id = StageId.COMPREHENSIVE_SUMMARY

    def __init__(self, summarize: Summarize):
        self.summarize = summarize

    def execute(self, state: PipelineState) -> PipelineState:
        log = self._log(state)
        documents = state.structured_documents

        if not documents:
            log.warning("no_documents_for_summary")
            return state.with_updates(final_summary=fallback_summary(state))

        formatted = [format_document(d) for d in documents]
        source_urls = [d.url for d in documents]

        log.info(
            "summarizing_documents",
            documents=len(documents),
            total_chars=sum(len(f) for f in formatted),
        )
        summary = self.summarize(state.topic, formatted, source_urls)

        log.info("comprehensive_summary_complete", length=len(summary or ""))
        return state.with_updates(final_summary=summary)

    def next_stages(self, state: PipelineState, declared_edges: list[str]) -> list[str]:
        return []

    def progress_payload(self, state: PipelineState):
        return state.final_summary
