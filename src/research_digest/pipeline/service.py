"""Research run service: synchronous and streaming entry points."""

import json
import queue
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Callable, Iterator

import structlog

from research_digest.capabilities import Capabilities
from research_digest.config.settings import Settings, get_settings
from research_digest.extraction.structurer import ExtractionConfig, structure_document
from research_digest.extraction.url_rules import should_skip_url
from research_digest.models import (
    EventType,
    FinalResult,
    ProgressEvent,
    StageId,
    StructuredDocument,
    stage_key,
)
from research_digest.pipeline.graph import build_research_graph
from research_digest.pipeline.state import PipelineState, ProgressSink

logger = structlog.get_logger(__name__)

# Stages whose failure leaves nothing to report
CRITICAL_STAGES = (StageId.WEB_SEARCH,)

_END_OF_STREAM = object()


class ResearchPipelineError(Exception):
    """Research run failed in a stage with no recovery path."""

    def __init__(self, stage: str, message: str):
        self.stage = stage
        self.message = message
        super().__init__(f"Stage '{stage}' failed: {message}")


class ResearchService:
    """Runs the research graph over bounded worker pools.

    Args:
        capabilities: Collaborator functions used by the stages.
        settings: Optional custom settings.
        on_close: Callables invoked by ``close`` (e.g. HTTP client cleanup).
    """

    def __init__(
        self,
        capabilities: Capabilities,
        settings: Settings | None = None,
        on_close: list[Callable[[], None]] | None = None,
    ):
        self.settings = settings or get_settings()
        self.capabilities = capabilities
        self.extraction_config = ExtractionConfig.from_settings(self.settings)
        self._on_close = list(on_close or [])

        self._fetch_pool = ThreadPoolExecutor(
            max_workers=self.settings.fetch_workers,
            thread_name_prefix="research-fetch",
        )
        self._task_pool = ThreadPoolExecutor(
            max_workers=self.settings.background_workers,
            thread_name_prefix="research-task",
        )
        self._run_pool = ThreadPoolExecutor(
            max_workers=self.settings.background_workers,
            thread_name_prefix="research-run",
        )

        self.graph = build_research_graph(
            capabilities,
            load_document=self.load_document,
            fetch_executor=self._fetch_pool,
            task_executor=self._task_pool,
            settings=self.settings,
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        """Release the worker pools and collaborator resources."""
        self._run_pool.shutdown(wait=True)
        self._task_pool.shutdown(wait=True)
        self._fetch_pool.shutdown(wait=True)
        for callback in self._on_close:
            try:
                callback()
            except Exception as e:
                logger.warning("service_close_callback_failed", error=str(e))

    def __enter__(self) -> "ResearchService":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # =========================================================================
    # Document loading
    # =========================================================================

    def load_document(self, url: str) -> StructuredDocument | None:
        """Fetch one URL and structure it. None when unusable."""
        if should_skip_url(url):
            logger.debug("url_skipped", url=url)
            return None

        html = self.capabilities.fetch_page(url)
        if not html:
            return None
        return structure_document(html, url, self.extraction_config)

    # =========================================================================
    # Runs
    # =========================================================================

    def run(
        self,
        topic: str,
        result_count: int | None = None,
        skip_expensive_stages: bool = False,
    ) -> FinalResult:
        """Run the research graph and wait for the result.

        Args:
            topic: Research topic.
            result_count: Number of documents wanted. Defaults to settings.
            skip_expensive_stages: Stop after search and quick summary.

        Returns:
            Final result, including the quick summary when it finished
            within ``quick_summary_timeout_seconds``.

        Raises:
            ResearchPipelineError: If a critical stage failed.
            pydantic.ValidationError: If ``result_count`` is below 1.
        """
        return self._execute(topic, result_count, skip_expensive_stages, progress_sink=None)

    def run_streaming(
        self,
        topic: str,
        result_count: int | None = None,
        skip_expensive_stages: bool = False,
    ) -> Iterator[ProgressEvent]:
        """Run the research graph in the background and stream progress.

        The run starts immediately. The returned iterator yields one event
        per completed stage, the ``quick_summary`` event whenever the
        detached summary finishes, and ends with exactly one ``complete``
        (payload: the final result as JSON) or ``error`` (payload:
        ``{"stage", "message"}``) event.
        """
        events: queue.Queue = queue.Queue()

        def background_run() -> None:
            try:
                result = self._execute(topic, result_count, skip_expensive_stages, progress_sink=events.put)
                events.put(ProgressEvent(event_type=EventType.COMPLETE, data=result.model_dump_json()))
            except ResearchPipelineError as e:
                events.put(_error_event(e.stage, e.message))
            except Exception as e:
                logger.error("research_run_failed", topic=topic, error=str(e))
                events.put(_error_event(None, str(e) or type(e).__name__))
            finally:
                events.put(_END_OF_STREAM)

        self._run_pool.submit(background_run)

        def stream() -> Iterator[ProgressEvent]:
            while True:
                event = events.get()
                if event is _END_OF_STREAM:
                    return
                yield event
                if event.event_type in (EventType.COMPLETE, EventType.ERROR):
                    return

        return stream()

    def _execute(
        self,
        topic: str,
        result_count: int | None,
        skip_expensive_stages: bool,
        progress_sink: ProgressSink | None,
    ) -> FinalResult:
        state = PipelineState.initial(
            topic=topic,
            result_count=self.settings.default_result_count if result_count is None else result_count,
            skip_expensive_stages=skip_expensive_stages,
            progress_sink=progress_sink,
        )
        logger.info(
            "research_run_start",
            run_id=state.run_id,
            topic=topic,
            result_count=state.result_count,
            skip_expensive_stages=skip_expensive_stages,
        )

        final_state = self.graph.execute(state)

        for stage in CRITICAL_STAGES:
            message = final_state.error_for(stage)
            if message is not None:
                logger.error("research_run_aborted", run_id=state.run_id, stage=stage_key(stage), error=message)
                raise ResearchPipelineError(stage_key(stage), message)

        result = self._merge_quick_summary(final_state, final_state.to_final_result())

        logger.info(
            "research_run_complete",
            run_id=state.run_id,
            documents=len(result.structured_documents),
            has_quick_summary=result.quick_summary is not None,
            has_final_summary=result.final_summary is not None,
            total_seconds=round(final_state.elapsed_seconds, 3),
        )
        return result

    def _merge_quick_summary(self, state: PipelineState, result: FinalResult) -> FinalResult:
        """Wait (bounded) for the detached quick summary and merge it."""
        job = state.quick_summary_job
        if job is None or result.quick_summary:
            return result

        key = stage_key(StageId.QUICK_SUMMARY)
        try:
            result.quick_summary = job.result(timeout=self.settings.quick_summary_timeout_seconds)
        except FutureTimeoutError:
            logger.warning("quick_summary_timeout", run_id=state.run_id, timeout=self.settings.quick_summary_timeout_seconds)
        except Exception as e:
            logger.warning("quick_summary_unavailable", run_id=state.run_id, error=str(e))
            result.stage_errors.setdefault(key, str(e) or type(e).__name__)
        return result


def _error_event(stage: str | None, message: str) -> ProgressEvent:
    return ProgressEvent(
        event_type=EventType.ERROR,
        data=json.dumps({"stage": stage, "message": message}),
    )


def create_research_service(settings: Settings | None = None) -> ResearchService:
    """Create a service wired to Ollama, SearxNG and the HTTP page fetcher."""
    from research_digest.fetching.http_fetcher import PageFetcher
    from research_digest.llm.chains import (
        run_quick_summary_chain,
        run_query_refinement_chain,
        run_summary_chain,
    )
    from research_digest.search.searxng import SearxngClient

    settings = settings or get_settings()
    search_client = SearxngClient(settings)
    fetcher = PageFetcher(settings)

    capabilities = Capabilities(
        refine_query=run_query_refinement_chain,
        search=search_client.search,
        quick_summarize=run_quick_summary_chain,
        summarize=run_summary_chain,
        fetch_page=fetcher.fetch,
    )
    return ResearchService(capabilities, settings, on_close=[search_client.close, fetcher.close])
