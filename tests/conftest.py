"""Pytest configuration and fixtures."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from research_digest.capabilities import Capabilities
from research_digest.config.settings import Settings
from research_digest.models import SearchResult

LONG_PARAGRAPH = (
    "Quantum computers use qubits that can hold superpositions of states, "
    "which lets certain algorithms explore many possibilities at once."
)


def article_html(title: str, sections: dict[str, str], heading_tag: str = "h2") -> str:
    """Build a simple article page with one heading per section."""
    body = "".join(
        f"<{heading_tag}>{heading}</{heading_tag}><p>{text}</p>"
        for heading, text in sections.items()
    )
    return (
        f"<html><head><title>{title}</title></head><body>"
        f"<nav><a href='/'>Home</a></nav>"
        f"<article><h1>{title}</h1>{body}</article>"
        f"<footer>Copyright</footer></body></html>"
    )


class FakeWeb:
    """In-memory web: URL -> HTML, recording every fetch."""

    def __init__(self, pages: dict[str, str] | None = None):
        self.pages = dict(pages or {})
        self.fetched: list[str] = []

    def fetch_page(self, url: str) -> str | None:
        self.fetched.append(url)
        return self.pages.get(url)


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from any local .env file."""
    return Settings(
        _env_file=None,
        fetch_workers=4,
        background_workers=2,
        quick_summary_timeout_seconds=5.0,
    )


@pytest.fixture
def executor():
    """Small thread pool shut down after the test."""
    pool = ThreadPoolExecutor(max_workers=4)
    yield pool
    pool.shutdown(wait=True)


@pytest.fixture
def web_pages() -> dict[str, str]:
    """Five fetchable article pages."""
    return {
        f"https://example.com/article-{i}": article_html(
            f"Article {i}",
            {
                "Background": LONG_PARAGRAPH,
                "Applications": LONG_PARAGRAPH + f" Article {i} covers chemistry simulation.",
            },
        )
        for i in range(1, 6)
    }


@pytest.fixture
def search_results(web_pages) -> list[SearchResult]:
    """Ranked results pointing at the fake web pages."""
    return [
        SearchResult(
            url=url,
            title=f"Result {i}",
            snippet=f"Snippet about quantum computing number {i}",
            engine="duckduckgo" if i % 2 else "bing",
            score=1.0 / i,
        )
        for i, url in enumerate(web_pages, 1)
    ]


@pytest.fixture
def fake_web(web_pages) -> FakeWeb:
    return FakeWeb(web_pages)


@pytest.fixture
def make_capabilities(fake_web, search_results):
    """Factory for capabilities backed by fakes; keyword args override single functions."""

    def factory(**overrides) -> Capabilities:
        def search(query: str, count: int) -> list[SearchResult]:
            return search_results[:count]

        functions = {
            "refine_query": lambda topic: f"{topic} explained",
            "search": search,
            "quick_summarize": lambda topic, snippets: f"Quick look at {topic} from {len(snippets)} snippets",
            "summarize": lambda topic, documents, urls: f"Summary of {topic} from {len(documents)} sources",
            "fetch_page": fake_web.fetch_page,
        }
        functions.update(overrides)
        return Capabilities(**functions)

    return factory


@pytest.fixture
def build_article():
    """The ``article_html`` page builder."""
    return article_html


@pytest.fixture
def long_paragraph() -> str:
    return LONG_PARAGRAPH
