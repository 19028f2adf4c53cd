"""Models for web search results."""

from pydantic import BaseModel, ConfigDict, Field


class SearchResult(BaseModel):
    """A single ranked hit returned by the search backend."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., description="Result URL")
    title: str = Field(default="", description="Result title")
    snippet: str = Field(default="", description="Text snippet shown by the engine")
    engine: str | None = Field(default=None, description="Engine that produced the hit")
    score: float | None = Field(default=None, description="Relevance score reported by the backend")
