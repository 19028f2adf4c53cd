"""Immutable state snapshot passed between research stages."""

import uuid
from concurrent.futures import Future
from datetime import datetime
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field

from research_digest.models import (
    FinalResult,
    ProgressEvent,
    SearchResult,
    StageId,
    StructuredDocument,
    stage_key,
)

ProgressSink = Callable[[ProgressEvent], None]


class PipelineState(BaseModel):
    """Snapshot of one research run.

    Every transition returns a new instance; an instance handed to a stage
    is never changed afterwards. Bookkeeping mappings are append-only: a
    stage id recorded once can not be recorded again in the same run.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    # Input
    topic: str = Field(..., description="Research topic")
    result_count: int = Field(default=5, ge=1, description="Number of documents wanted")
    skip_expensive_stages: bool = Field(default=False, description="Stop after search and quick summary")

    # Derived
    optimized_query: str | None = None
    search_results: list[SearchResult] | None = None
    quick_summary: str | None = None
    quick_summary_job: Future | None = Field(default=None, exclude=True)
    structured_documents: list[StructuredDocument] = Field(default_factory=list)
    final_summary: str | None = None

    # Bookkeeping
    stage_durations: dict[str, float] = Field(default_factory=dict)
    stage_errors: dict[str, str] = Field(default_factory=dict)
    started_at: datetime = Field(default_factory=datetime.now)
    current_stage: str | None = None
    run_id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    progress_sink: ProgressSink | None = Field(default=None, exclude=True)

    @classmethod
    def initial(
        cls,
        topic: str,
        result_count: int = 5,
        skip_expensive_stages: bool = False,
        progress_sink: ProgressSink | None = None,
    ) -> "PipelineState":
        """Create the state a run starts from.

        Args:
            topic: Research topic.
            result_count: Number of documents wanted (>= 1).
            skip_expensive_stages: Skip fetch and comprehensive summary.
            progress_sink: Optional receiver of progress events.

        Returns:
            Fresh state stamped with the start time and a run id.
        """
        return cls(
            topic=topic,
            result_count=result_count,
            skip_expensive_stages=skip_expensive_stages,
            progress_sink=progress_sink,
        )

    def with_updates(self, **changes: Any) -> "PipelineState":
        """Return a copy with the given fields replaced.

        Raises:
            ValueError: If bookkeeping fields are passed, or more documents
                than ``result_count`` are supplied.
        """
        for name in ("stage_durations", "stage_errors"):
            if name in changes:
                raise ValueError(f"{name} is append-only, use record_duration/record_error")

        documents = changes.get("structured_documents")
        if documents is not None:
            if len(documents) > self.result_count:
                raise ValueError(
                    f"{len(documents)} documents exceed result_count={self.result_count}"
                )
            changes["structured_documents"] = list(documents)
        if changes.get("search_results") is not None:
            changes["search_results"] = list(changes["search_results"])

        return self.model_copy(update=changes)

    def record_duration(self, stage: StageId | str, seconds: float) -> "PipelineState":
        """Return a copy with the elapsed time of ``stage`` recorded."""
        key = stage_key(stage)
        if key in self.stage_durations:
            raise ValueError(f"Duration already recorded for stage {key}")
        return self.model_copy(update={"stage_durations": {**self.stage_durations, key: seconds}})

    def record_error(self, stage: StageId | str, message: str) -> "PipelineState":
        """Return a copy with the failure message of ``stage`` recorded."""
        key = stage_key(stage)
        if key in self.stage_errors:
            raise ValueError(f"Error already recorded for stage {key}")
        return self.model_copy(update={"stage_errors": {**self.stage_errors, key: message}})

    def has_completed(self, stage: StageId | str) -> bool:
        """True when ``stage`` ran in this run, successfully or not."""
        return stage_key(stage) in self.stage_durations

    def error_for(self, stage: StageId | str) -> str | None:
        """Recorded failure message of ``stage``, if any."""
        return self.stage_errors.get(stage_key(stage))

    @property
    def elapsed_seconds(self) -> float:
        return (datetime.now() - self.started_at).total_seconds()

    def to_final_result(self, quick_summary: str | None = None) -> FinalResult:
        """Project this state onto the externally observed result.

        Args:
            quick_summary: Quick summary text produced outside the engine,
                used when the state itself carries none.
        """
        return FinalResult(
            topic=self.topic,
            optimized_query=self.optimized_query,
            search_results=list(self.search_results or []),
            quick_summary=self.quick_summary or quick_summary,
            structured_documents=list(self.structured_documents),
            final_summary=self.final_summary,
            stage_durations=dict(self.stage_durations),
            stage_errors=dict(self.stage_errors),
        )
