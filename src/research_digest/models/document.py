"""Models for structured documents produced from fetched HTML."""

from pydantic import BaseModel, ConfigDict, Field


class Subsection(BaseModel):
    """A heading nested below a section heading, with its Markdown content."""

    model_config = ConfigDict(frozen=True)

    heading: str = Field(..., description="Subsection heading text")
    content: str = Field(default="", description="Markdown content")


class Section(BaseModel):
    """A top-level section of a structured document."""

    model_config = ConfigDict(frozen=True)

    heading: str = Field(..., description="Section heading text")
    content: str = Field(default="", description="Markdown content before the first subsection")
    subsections: list[Subsection] = Field(default_factory=list, description="Nested subsections in order")

    @property
    def total_characters(self) -> int:
        """Characters of content in this section and its subsections."""
        return len(self.content) + sum(len(s.content) for s in self.subsections)


class StructuredDocument(BaseModel):
    """Normalized, quality-filtered section tree of one web page."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., description="Source URL")
    title: str = Field(default="Untitled", description="Page title")
    main_heading: str | None = Field(default=None, description="Text of the first h1, if any")
    sections: list[Section] = Field(default_factory=list, description="Sections in document order")
    total_characters: int = Field(default=0, ge=0, description="Content characters over all sections")
    has_structure: bool = Field(default=False, description="True when sections came from headings")
    engine: str | None = Field(default=None, description="Search engine that surfaced the URL")
    score: float | None = Field(default=None, description="Search relevance score")
