"""Unit tests for URL filtering and fetch URL rewriting."""

import pytest

from research_digest.extraction.url_rules import has_binary_extension, resolve_fetch_url, should_skip_url


class TestShouldSkipUrl:
    """Tests for the URL pre-filter."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://www.youtube.com/watch?v=abc",
            "https://youtu.be/abc",
            "https://x.com/someone/status/1",
            "https://twitter.com/someone",
            "https://www.linkedin.com/posts/someone-123",
            "https://www.nytimes.com/2024/01/01/science/quantum.html",
            "https://www.ft.com/content/abc-123",
            "https://www.oreilly.com/library/view/quantum-computing/123/",
            "https://www.ibm.com/docs/en/quantum",
            "https://www.slideshare.net/deck/quantum",
            "https://medium.com/p/abc123",
            "https://example.com/paper.PDF",
        ],
    )
    def test_skipped(self, url):
        assert should_skip_url(url)

    @pytest.mark.parametrize(
        "url",
        [
            "https://en.wikipedia.org/wiki/Quantum_computing",
            "https://www.ibm.com/topics/quantum-computing",
            "https://www.linkedin.com/pulse/quantum-article",
            "https://netflix.com/title/1",
            "https://microsoft.com/quantum",
            "https://medium.com/@author/quantum-explained-1a2b",
            "https://example.com/pdf-guide",
        ],
    )
    def test_kept(self, url):
        assert not should_skip_url(url)


class TestBinaryExtension:
    """Tests for file extension detection."""

    def test_query_string_ignored(self):
        assert has_binary_extension("https://example.com/slides.pptx?download=1")
        assert not has_binary_extension("https://example.com/page?file=a.pdf")


class TestResolveFetchUrl:
    """Tests for mirror rewriting."""

    @pytest.mark.parametrize(
        "url",
        ["https://www.reddit.com/r/QuantumComputing/comments/1", "https://reddit.com/r/QuantumComputing/comments/1"],
    )
    def test_reddit_uses_old_mirror(self, url):
        assert resolve_fetch_url(url) == "https://old.reddit.com/r/QuantumComputing/comments/1"

    def test_old_reddit_unchanged(self):
        url = "https://old.reddit.com/r/QuantumComputing"
        assert resolve_fetch_url(url) == url

    def test_other_hosts_unchanged(self):
        url = "https://example.com/a?b=c"
        assert resolve_fetch_url(url) == url
