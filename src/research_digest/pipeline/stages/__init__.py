"""Research stages."""

from .base import Stage
from .comprehensive_summary import ComprehensiveSummaryStage
from .fetch_content import FetchContentStage
from .optimize_query import OptimizeQueryStage
from .quick_summary import QuickSummaryStage
from .web_search import WebSearchStage

__all__ = [
    "Stage",
    "OptimizeQueryStage",
    "WebSearchStage",
    "QuickSummaryStage",
    "FetchContentStage",
    "ComprehensiveSummaryStage",
]
