"""Unit tests for the HTML document structurer."""

import pytest

from research_digest.extraction import structurer
from research_digest.extraction.formatter import format_document
from research_digest.extraction.structurer import ExtractionConfig, choose_heading_tag, structure_document
from research_digest.models import Section, StructuredDocument, Subsection

URL = "https://example.com/quantum"


def _page(body: str, title: str | None = "Quantum Computing") -> str:
    head = f"<head><title>{title}</title></head>" if title else "<head></head>"
    return f"<html>{head}<body>{body}</body></html>"


class TestHeadingChoice:
    """Tests for the h2/h3 heuristic."""

    @pytest.mark.parametrize(
        "h2_texts, h3_count, expected",
        [
            (["Overview", "Subscribe", "Subscribe"], 9, "h3"),
            (["History", "Hardware"], 3, "h2"),
            (["History", "Hardware"], 6, "h3"),
            (["Menu", "Menu", "Menu"], 1, "h3"),
            (["History"], 0, "h2"),
            ([], 4, "h3"),
            ([], 0, None),
        ],
    )
    def test_choice(self, h2_texts, h3_count, expected):
        assert choose_heading_tag(h2_texts, h3_count) == expected

    def test_h3_dominant_document(self, long_paragraph):
        steps = "".join(f"<h3>Step {i}</h3><p>{long_paragraph}</p>" for i in range(1, 10))
        html = _page(
            f"<article><h2>Overview</h2>{steps}"
            "<h2>Subscribe</h2><p>Join us</p><h2>Subscribe</h2><p>Join us</p></article>"
        )

        document = structure_document(html, URL)

        assert [s.heading for s in document.sections] == [f"Step {i}" for i in range(1, 10)]
        assert document.has_structure is True


class TestSections:
    """Tests for sibling-walk section extraction."""

    def test_article_sections(self, build_article, long_paragraph):
        html = build_article("Quantum", {"Background": long_paragraph, "Applications": long_paragraph})

        document = structure_document(html, URL)

        assert document.title == "Quantum"
        assert document.main_heading == "Quantum"
        assert [s.heading for s in document.sections] == ["Background", "Applications"]
        assert document.sections[0].content == long_paragraph
        assert document.total_characters == 2 * len(long_paragraph)
        assert "Home" not in document.sections[0].content

    def test_short_section_dropped(self, long_paragraph):
        html = _page(
            f"<article><h2>Background</h2><p>{long_paragraph}</p>"
            "<h2>Trivia</h2><p>This line is forty characters long!!!!!</p></article>"
        )

        document = structure_document(html, URL)

        assert [s.heading for s in document.sections] == ["Background"]

    def test_all_sections_dropped(self):
        html = _page("<article><h2>Tiny</h2><p>short text</p></article>")
        assert structure_document(html, URL) is None

    def test_subsections(self, long_paragraph):
        html = _page(
            f"<article><h2>Background</h2><p>{long_paragraph}</p>"
            f"<h3>Details</h3><p>{long_paragraph}</p>"
            "<h3>Aside</h3><p>too short</p></article>"
        )

        section = structure_document(html, URL).sections[0]

        assert section.content == long_paragraph
        assert [s.heading for s in section.subsections] == ["Details"]
        assert section.total_characters == 2 * len(long_paragraph)

    def test_introduction_before_first_heading(self, long_paragraph):
        html = _page(
            f"<article><p>{long_paragraph}</p><h2>Background</h2><p>{long_paragraph}</p></article>"
        )

        document = structure_document(html, URL)

        assert [s.heading for s in document.sections] == ["Introduction", "Background"]

    def test_section_content_capped(self, long_paragraph):
        html = _page(f"<article><h2>Background</h2><p>{long_paragraph}</p></article>")

        document = structure_document(html, URL, ExtractionConfig(max_section_chars=60))

        assert document.sections[0].content == long_paragraph[:60] + "..."


class TestFallbacks:
    """Tests for nested layouts and heading-less pages."""

    def test_nested_layout_uses_document_position(self, long_paragraph):
        html = _page(
            "<article>"
            "<div class='wrap'><h2>Alpha</h2></div>"
            f"<div class='body'><p>{long_paragraph} Alpha.</p></div>"
            "<div class='wrap'><h2>Beta</h2></div>"
            f"<div class='body'><p>{long_paragraph} Beta.</p><ul><li>one</li></ul></div>"
            "</article>"
        )

        sections = structure_document(html, URL).sections

        assert [s.heading for s in sections] == ["Alpha", "Beta"]
        assert sections[0].content == f"{long_paragraph} Alpha."
        assert sections[1].content == f"{long_paragraph} Beta.\n\n- one"

    def test_no_headings_gives_main_content(self, long_paragraph):
        html = _page(
            f"<article><p>Share</p><p>{long_paragraph}</p><p>{long_paragraph}</p><p>Follow</p></article>"
        )

        document = structure_document(html, URL)

        assert len(document.sections) == 1
        assert document.sections[0].heading == "Main Content"
        assert document.sections[0].content == f"{long_paragraph}\n\n{long_paragraph}"
        assert document.has_structure is False

    def test_main_content_capped(self, long_paragraph):
        html = _page(f"<article><p>{long_paragraph}</p></article>")

        document = structure_document(html, URL, ExtractionConfig(max_content_chars=100))

        assert document.sections[0].content == long_paragraph[:100] + "..."

    def test_container_broadened_to_body(self, long_paragraph):
        html = _page(
            f"<main><p>{long_paragraph}</p></main>"
            f"<div><h2>Details</h2><p>{long_paragraph}</p></div>"
        )

        document = structure_document(html, URL)

        assert [s.heading for s in document.sections] == ["Introduction", "Details"]


class TestEncyclopediaPages:
    """Tests for Wikipedia-specific handling."""

    def test_parser_output_container(self, long_paragraph):
        html = _page(
            "<div id='mw-navigation'>Main page Contents</div>"
            "<h1>Quantum computing</h1>"
            "<div class='mw-parser-output'>"
            "<div class='hatnote'>For other uses, see Quantum (disambiguation).</div>"
            "<p>From Wikipedia, the free encyclopedia A quantum computer is a computer that "
            "exploits quantum mechanical phenomena.</p>"
            "<table class='infobox'><tr><th>Field</th></tr><tr><td>Physics</td></tr></table>"
            "<h2>History<span class='mw-editsection'>[edit]</span></h2>"
            f"<p>{long_paragraph}</p>"
            "<div class='reflist'>1. A reference</div>"
            "</div>"
            "<div class='catlinks'>Categories: Quantum</div>",
            title="Quantum computing - Wikipedia",
        )

        document = structure_document(html, "https://en.wikipedia.org/wiki/Quantum_computing")

        assert document.main_heading == "Quantum computing"
        assert [s.heading for s in document.sections] == ["Introduction", "History"]
        assert document.sections[0].content.startswith("A quantum computer")
        assert "Physics" not in document.sections[0].content
        assert "reference" not in document.sections[1].content


class TestStructureDocument:
    """Tests for the public entry point."""

    def test_skipped_url(self, build_article, long_paragraph):
        html = build_article("Video", {"Background": long_paragraph})
        assert structure_document(html, "https://www.youtube.com/watch?v=abc") is None

    @pytest.mark.parametrize("html", ["", "   \n"])
    def test_empty_html(self, html):
        assert structure_document(html, URL) is None

    def test_untitled(self, long_paragraph):
        html = _page(f"<article><h2>Background</h2><p>{long_paragraph}</p></article>", title=None)

        document = structure_document(html, URL)

        assert document.title == "Untitled"
        assert document.main_heading is None

    def test_failure_yields_none(self, monkeypatch, build_article, long_paragraph):
        def broken(html, url, config):
            raise RuntimeError("parser exploded")

        monkeypatch.setattr(structurer, "_structure", broken)

        assert structure_document(build_article("A", {"B": long_paragraph}), URL) is None


class TestFormatDocument:
    """Tests for the summarizer text rendering."""

    def test_layout(self):
        document = StructuredDocument(
            url=URL,
            title="Quantum",
            main_heading="Quantum computing",
            sections=[
                Section(
                    heading="Background",
                    content="Qubits.",
                    subsections=[Subsection(heading="Details", content="Superposition.")],
                )
            ],
            total_characters=21,
        )

        assert format_document(document) == (
            "=== Quantum ===\n"
            f"Source: {URL}\n"
            "\n"
            "## Quantum computing\n"
            "\n"
            "### Background\n"
            "Qubits.\n"
            "\n"
            "#### Details\n"
            "Superposition.\n"
        )


class TestContainerChoice:
    """Tests for boilerplate removal and the container fallbacks."""

    def test_content_class_container(self, long_paragraph):
        html = _page(
            f"<div class='promo-box'><p>{long_paragraph} Promo.</p></div>"
            f"<div class='entry-content'><h2>Background</h2><p>{long_paragraph}</p></div>"
        )

        document = structure_document(html, URL)

        assert [s.heading for s in document.sections] == ["Background"]
        assert "Promo" not in format_document(document)

    def test_largest_candidate_block(self, long_paragraph):
        html = _page(
            f"<div class='post-teaser'><p>{long_paragraph} Teaser.</p></div>"
            "<div class='page-content-area'>"
            f"<h2>Background</h2><p>{long_paragraph}</p>"
            f"<h2>Applications</h2><p>{long_paragraph}</p>"
            "</div>"
        )

        document = structure_document(html, URL)

        assert [s.heading for s in document.sections] == ["Background", "Applications"]
        assert "Teaser" not in format_document(document)

    def test_boilerplate_blocks_removed(self, long_paragraph):
        html = _page(
            "<article><h2>Background</h2>"
            "<div class='cookie-banner'>We use cookies to improve your experience.</div>"
            f"<p>{long_paragraph}</p>"
            "<div class='advertisement'>Buy the quantum starter kit today.</div>"
            "<div class='social-share'>Share on Twitter</div>"
            "<div class='popup'>Subscribe to our newsletter</div>"
            "<div class='ad'>Sponsored</div>"
            "<script>var tracking = true;</script>"
            "</article>"
        )

        document = structure_document(html, URL)
        text = format_document(document)

        assert document.sections[0].content == long_paragraph
        for banner in ("cookies", "starter kit", "Twitter", "newsletter", "Sponsored", "tracking"):
            assert banner not in text
