"""Pydantic data models for the research pipeline."""

from .enums import EventType, StageId, stage_key
from .search import SearchResult
from .document import Section, StructuredDocument, Subsection
from .result import FinalResult, ProgressEvent

__all__ = [
    "EventType",
    "StageId",
    "stage_key",
    "SearchResult",
    "Section",
    "Subsection",
    "StructuredDocument",
    "FinalResult",
    "ProgressEvent",
]
