"""Pluggable collaborator functions the research stages call.

The stages only see these callables, never a concrete LLM, search
backend or HTTP client. Defaults are wired in
``research_digest.pipeline.service.create_research_service``.
"""

from dataclasses import dataclass
from typing import Callable

from research_digest.models import SearchResult

RefineQuery = Callable[[str], str]
Search = Callable[[str, int], list[SearchResult]]
QuickSummarize = Callable[[str, list[str]], str]
Summarize = Callable[[str, list[str], list[str]], str]
FetchPage = Callable[[str], "str | None"]


@dataclass(frozen=True)
class Capabilities:
    """Bundle of collaborator functions for one research service.

    Attributes:
        refine_query: topic -> optimized search query.
        search: (query, count) -> ranked search results.
        quick_summarize: (topic, snippets) -> preliminary summary.
        summarize: (topic, formatted documents, source urls) -> final summary.
        fetch_page: url -> HTML body, or None when the page is unavailable.
    """

    refine_query: RefineQuery
    search: Search
    quick_summarize: QuickSummarize
    summarize: Summarize
    fetch_page: FetchPage
