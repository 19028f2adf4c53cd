"""Enumeration types for the research pipeline."""

from enum import Enum


class StageId(str, Enum):
    """Identifiers of the research stages, also used as progress event names."""

    OPTIMIZE_QUERY = "optimizing_query"
    WEB_SEARCH = "searching"
    QUICK_SUMMARY = "quick_summary"
    FETCH_CONTENT = "fetching_content"
    COMPREHENSIVE_SUMMARY = "comprehensive_summary"


class EventType(str, Enum):
    """Progress event names delivered to streaming consumers."""

    OPTIMIZING_QUERY = "optimizing_query"
    SEARCHING = "searching"
    QUICK_SUMMARY = "quick_summary"
    FETCHING_CONTENT = "fetching_content"
    COMPREHENSIVE_SUMMARY = "comprehensive_summary"
    COMPLETE = "complete"
    ERROR = "error"


def stage_key(stage: "StageId | str") -> str:
    """Normalize a stage id to the plain string used as a mapping key."""
    return stage.value if isinstance(stage, Enum) else str(stage)
