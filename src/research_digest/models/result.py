"""Models for the run outputs: final result and progress events."""

from pydantic import BaseModel, Field

from .document import StructuredDocument
from .enums import EventType
from .search import SearchResult


class FinalResult(BaseModel):
    """Externally observed outcome of one research run."""

    topic: str = Field(..., description="Topic as requested")
    optimized_query: str | None = Field(default=None, description="Query used for searching")
    search_results: list[SearchResult] = Field(default_factory=list)
    quick_summary: str | None = Field(default=None, description="Preliminary snippet-based summary")
    structured_documents: list[StructuredDocument] = Field(default_factory=list)
    final_summary: str | None = Field(default=None, description="Comprehensive summary")
    stage_durations: dict[str, float] = Field(default_factory=dict, description="Seconds per stage id")
    stage_errors: dict[str, str] = Field(default_factory=dict, description="Error message per failed stage id")


class ProgressEvent(BaseModel):
    """One message on the progress stream."""

    event_type: EventType = Field(..., description="Event name")
    data: str | None = Field(default=None, description="Serialized payload, JSON for structured values")
