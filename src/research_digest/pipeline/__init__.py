"""Research pipeline: state, stage graph engine and run service."""

from .state import PipelineState
from .engine import StageGraph
from .graph import build_research_graph
from .service import ResearchPipelineError, ResearchService, create_research_service

__all__ = [
    "PipelineState",
    "StageGraph",
    "build_research_graph",
    "ResearchPipelineError",
    "ResearchService",
    "create_research_service",
]
