"""HTML structuring and batch document collection."""

from .coordinator import collect_documents
from .formatter import format_document
from .structurer import ExtractionConfig, choose_heading_tag, structure_document
from .url_rules import resolve_fetch_url, should_skip_url

__all__ = [
    "ExtractionConfig",
    "choose_heading_tag",
    "collect_documents",
    "format_document",
    "resolve_fetch_url",
    "should_skip_url",
    "structure_document",
]
