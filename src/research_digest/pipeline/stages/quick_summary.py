"""Detached quick summary stage."""

import time
from concurrent.futures import Executor

from research_digest.capabilities import QuickSummarize
from research_digest.models import EventType, StageId
from research_digest.pipeline.progress import emit_progress
from research_digest.pipeline.stages.base import Stage
from research_digest.pipeline.state import PipelineState


class QuickSummaryStage(Stage):
    """Summarize search snippets in the background.

    ``execute`` only dispatches the work and returns at once with the
    pending future stored in ``quick_summary_job``. The job pushes its own
    ``quick_summary`` progress event when the text is ready, which may be
    after later stages have run.
    """

    stage_id = StageId.QUICK_SUMMARY
    reports_own_progress = True

    def __init__(self, quick_summarize: QuickSummarize, executor: Executor):
        self.quick_summarize = quick_summarize
        self.executor = executor

    def execute(self, state: PipelineState) -> PipelineState:
        snippets = [r.snippet for r in state.search_results or [] if r.snippet and r.snippet.strip()]
        self._log(state).info("quick_summary_dispatched", snippets=len(snippets))

        job = self.executor.submit(self._summarize, state, snippets)
        return state.with_updates(quick_summary_job=job)

    def _summarize(self, state: PipelineState, snippets: list[str]) -> str:
        log = self._log(state)
        started = time.perf_counter()
        try:
            summary = self.quick_summarize(state.topic, snippets)
        except Exception as e:
            log.error("quick_summary_failed", error=str(e))
            raise

        log.info(
            "quick_summary_complete",
            length=len(summary or ""),
            duration_ms=round((time.perf_counter() - started) * 1000),
        )
        emit_progress(state.progress_sink, EventType.QUICK_SUMMARY, summary)
        return summary

    def next_stages(self, state: PipelineState, declared_edges: list[str]) -> list[str]:
        return []
