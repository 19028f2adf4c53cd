"""Research graph wiring.

    optimizing_query -> searching -> quick_summary
                                  -> fetching_content -> comprehensive_summary
"""

from concurrent.futures import Executor

from research_digest.capabilities import Capabilities
from research_digest.config.settings import Settings, get_settings
from research_digest.extraction.coordinator import DocumentLoader
from research_digest.models import StageId
from research_digest.pipeline.engine import StageGraph
from research_digest.pipeline.stages import (
    ComprehensiveSummaryStage,
    FetchContentStage,
    OptimizeQueryStage,
    QuickSummaryStage,
    WebSearchStage,
)


def build_research_graph(
    capabilities: Capabilities,
    load_document: DocumentLoader,
    fetch_executor: Executor,
    task_executor: Executor,
    settings: Settings | None = None,
) -> StageGraph:
    """Build the five-stage research graph.

    Args:
        capabilities: Collaborator functions used by the stages.
        load_document: Fetches and structures one URL.
        fetch_executor: Bounded pool for per-URL fetch work.
        task_executor: Pool running the detached quick summary.
        settings: Optional custom settings.

    Returns:
        Graph with ``optimizing_query`` as entry stage.
    """
    settings = settings or get_settings()

    graph = (
        StageGraph(entry=StageId.OPTIMIZE_QUERY)
        .add_stage(OptimizeQueryStage(capabilities.refine_query))
        .add_stage(
            WebSearchStage(
                capabilities.search,
                candidate_factor=settings.search_candidate_factor,
                max_candidates=settings.search_max_results,
            )
        )
        .add_stage(QuickSummaryStage(capabilities.quick_summarize, task_executor))
        .add_stage(FetchContentStage(load_document, fetch_executor, settings.min_document_chars))
        .add_stage(ComprehensiveSummaryStage(capabilities.summarize))
        .add_edge(StageId.OPTIMIZE_QUERY, StageId.WEB_SEARCH)
        .add_edge(StageId.WEB_SEARCH, StageId.QUICK_SUMMARY)
        .add_edge(StageId.WEB_SEARCH, StageId.FETCH_CONTENT)
        .add_edge(StageId.FETCH_CONTENT, StageId.COMPREHENSIVE_SUMMARY)
    )
    graph.validate()
    return graph
