"""Document structurer: fetched HTML to a hierarchical section tree.

Steps:
1. Reject URLs known to carry no extractable article text
2. Remove boilerplate (scripts, navigation, ads, encyclopedia chrome)
3. Pick the primary content container
4. Choose the heading level that carries the article structure
5. Assign content to sections by sibling walk, or by document position
   for deeply nested layouts
6. Drop sections and subsections that are too short

Any failure yields ``None`` for the URL. Nothing raises past
``structure_document``.
"""

from dataclasses import dataclass
from urllib.parse import urlsplit

import structlog
from bs4 import BeautifulSoup, Tag

from research_digest.config.settings import Settings
from research_digest.extraction.markdown import (
    HEADING_TAGS,
    children_markdown,
    element_text,
    element_to_markdown,
)
from research_digest.extraction.text_cleaner import clean_site_intro, strip_junk_from_ends
from research_digest.extraction.url_rules import should_skip_url
from research_digest.models import Section, StructuredDocument, Subsection

logger = structlog.get_logger(__name__)


@dataclass
class ExtractionConfig:
    """Thresholds used while structuring a page."""

    min_section_chars: int = 50
    max_section_chars: int = 3000
    max_content_chars: int = 15000

    @classmethod
    def from_settings(cls, settings: Settings) -> "ExtractionConfig":
        return cls(
            min_section_chars=settings.min_section_chars,
            max_section_chars=settings.max_section_chars,
            max_content_chars=settings.max_content_chars,
        )


# =============================================================================
# Selectors
# =============================================================================

NOISE_SELECTORS = (
    "script, style, nav, footer, aside, "
    ".header:not(.article-header), .footer, .navigation, .nav, .menu, "
    ".sidebar, .advertisement, .ad, .ads, "
    ".social-share, .share, "
    ".cookie-banner, .cookie-notice, "
    ".popup, .modal, .overlay, "
    ".breadcrumb, .related, .recommended, "
    ".dropdown-title, .dropdown-item"
)

ENCYCLOPEDIA_NOISE_SELECTORS = (
    ".navbox, .vertical-navbox, .sistersitebox, "
    ".metadata, .ambox, .mbox-small, "
    ".infobox, .toc, #toc, "
    ".reflist, .reference, .mw-editsection, "
    ".noprint, .catlinks, .printfooter, "
    "#mw-navigation, #mw-indicator-pp-default, "
    ".hatnote, .dablink"
)

ENCYCLOPEDIA_CONTAINER = ".mw-parser-output"
ENCYCLOPEDIA_CONTAINER_NOISE = (
    ".mw-empty-elt, .bandeau-portail, .box, "
    ".messagebox, .thumb, .tright, .thumbinner"
)

SEMANTIC_CONTAINERS = "article, main, [role=main]"
CONTENT_CLASS_CONTAINERS = ".post-content, .entry-content, .article-content, .article-body, .article-wrapper"
CANDIDATE_CONTAINERS = "div.text, div[class*='content'], div[class*='post'], div[class*='article']"

CONTAINER_METADATA_SELECTORS = ".article-meta, .author-info, .tag-container, .improve, .article-tags, header"

CONTENT_ELEMENTS = ["p", "ul", "ol", "blockquote", "pre", "table"]

INTRODUCTION_HEADING = "Introduction"
UNSTRUCTURED_HEADING = "Main Content"
DEFAULT_TITLE = "Untitled"
TRUNCATION_MARKER = "..."

# Heading level choice
H3_DOMINANCE_RATIO = 3
H2_UNIQUE_RATIO = 0.7
SUBSECTION_DEPTH = 2


def _remove(root: Tag, selectors: str) -> int:
    removed = 0
    for element in root.select(selectors):
        if element.decomposed:
            continue
        element.decompose()
        removed += 1
    return removed


def _cap(text: str, limit: int) -> str:
    return text[:limit] + TRUNCATION_MARKER if len(text) > limit else text


def _heading_level(element: Tag) -> int:
    return int(element.name[1])


def _is_heading(element) -> bool:
    return isinstance(element, Tag) and element.name in HEADING_TAGS


def _is_encyclopedia(url: str) -> bool:
    host = urlsplit(url).hostname or ""
    return host == "wikipedia.org" or host.endswith(".wikipedia.org")


# =============================================================================
# Container and heading selection
# =============================================================================

def find_main_content(soup: BeautifulSoup, url: str) -> Tag:
    """Strip boilerplate and return the element holding the article.

    Args:
        soup: Parsed page. Boilerplate is removed from it in place.
        url: Source URL, used for site-specific container rules.

    Returns:
        The chosen container element (the body when nothing better fits).
    """
    _remove(soup, NOISE_SELECTORS)
    _remove(soup, ENCYCLOPEDIA_NOISE_SELECTORS)

    container = None
    if _is_encyclopedia(url):
        container = soup.select_one(ENCYCLOPEDIA_CONTAINER)
        if container is not None:
            _remove(container, ENCYCLOPEDIA_CONTAINER_NOISE)

    if container is None:
        container = soup.select_one(SEMANTIC_CONTAINERS)

    if container is None:
        container = soup.select_one(CONTENT_CLASS_CONTAINERS)

    if container is None:
        longest = 0
        for candidate in soup.select(CANDIDATE_CONTAINERS):
            length = len(element_text(candidate))
            if length > longest:
                longest = length
                container = candidate

    if container is None:
        container = soup.body or soup

    _remove(container, CONTAINER_METADATA_SELECTORS)
    return container


def choose_heading_tag(h2_texts: list[str], h3_count: int) -> str | None:
    """Pick the heading level that carries the article structure.

    h3 wins over h2 when h3 headings outnumber h2 by 3x or more, or when
    fewer than 70% of the h2 texts are unique (repeated h2 headings are
    usually navigation or form labels).

    Args:
        h2_texts: Texts of the h2 headings in the container.
        h3_count: Number of h3 headings in the container.

    Returns:
        "h2", "h3", or None when the container has neither.
    """
    h2_count = len(h2_texts)
    if h2_count and h3_count:
        repetitive = len(set(h2_texts)) < h2_count * H2_UNIQUE_RATIO
        if h3_count >= h2_count * H3_DOMINANCE_RATIO or repetitive:
            return "h3"
        return "h2"
    if h2_count:
        return "h2"
    if h3_count:
        return "h3"
    return None


# =============================================================================
# Section extraction
# =============================================================================

class _SectionExtractor:
    """Builds the sections of one container for one heading level."""

    def __init__(self, container: Tag, headings: list[Tag], config: ExtractionConfig):
        self.container = container
        self.headings = headings
        self.level = _heading_level(headings[0])
        self.config = config
        self._positions: dict[int, int] | None = None

    def extract(self) -> list[Section]:
        sections = []
        introduction = self._introduction()
        if introduction is not None:
            sections.append(introduction)

        for index, heading in enumerate(self.headings):
            following = self.headings[index + 1] if index + 1 < len(self.headings) else None
            if self._has_content_siblings(heading):
                sections.append(self._by_siblings(heading))
            else:
                sections.append(self._by_position(heading, following))
        return sections

    def _is_stop(self, element) -> bool:
        return _is_heading(element) and _heading_level(element) <= self.level

    def _is_subheading(self, element) -> bool:
        return _is_heading(element) and self.level < _heading_level(element) <= self.level + SUBSECTION_DEPTH

    def _introduction(self) -> Section | None:
        first = self.headings[0]
        blocks = []
        for child in self.container.find_all(True, recursive=False):
            if child is first or any(parent is child for parent in first.parents):
                break
            if _is_heading(child):
                continue
            markdown = element_to_markdown(child)
            if markdown:
                blocks.append(markdown)

        text = clean_site_intro("\n\n".join(blocks).strip())
        if len(text) < self.config.min_section_chars:
            return None
        return Section(heading=INTRODUCTION_HEADING, content=_cap(text, self.config.max_section_chars))

    def _has_content_siblings(self, heading: Tag) -> bool:
        for sibling in heading.find_next_siblings(True):
            if self._is_stop(sibling):
                return False
            if element_text(sibling):
                return True
        return False

    def _by_siblings(self, heading: Tag) -> Section:
        content_blocks: list[str] = []
        subsections: list[Subsection] = []
        sub_heading: str | None = None
        sub_blocks: list[str] = []

        for sibling in heading.find_next_siblings(True):
            if self._is_stop(sibling):
                break
            if self._is_subheading(sibling):
                if sub_heading is not None and sub_blocks:
                    subsections.append(self._subsection(sub_heading, sub_blocks))
                sub_heading = element_text(sibling)
                sub_blocks = []
                continue

            markdown = element_to_markdown(sibling)
            if not markdown:
                continue
            if sub_heading is not None:
                sub_blocks.append(markdown)
            else:
                content_blocks.append(markdown)

        if sub_heading is not None and sub_blocks:
            subsections.append(self._subsection(sub_heading, sub_blocks))

        content = _cap("\n\n".join(content_blocks).strip(), self.config.max_section_chars)
        return Section(heading=element_text(heading), content=content, subsections=subsections)

    def _subsection(self, heading: str, blocks: list[str]) -> Subsection:
        content = _cap("\n\n".join(blocks).strip(), self.config.max_section_chars)
        return Subsection(heading=heading, content=content)

    def _position(self, element: Tag) -> int:
        if self._positions is None:
            self._positions = {
                id(node): index for index, node in enumerate(self.container.descendants)
            }
        return self._positions.get(id(element), -1)

    def _by_position(self, heading: Tag, following: Tag | None) -> Section:
        """Collect content elements lying between ``heading`` and ``following``.

        Used for nested layouts where the content is not a sibling of the
        heading. Only outermost content elements are taken, so a list
        inside a table is not emitted twice.
        """
        start = self._position(heading)
        end = self._position(following) if following is not None else None

        blocks = []
        for element in self.container.find_all(CONTENT_ELEMENTS):
            if element.find_parent(CONTENT_ELEMENTS) is not None:
                continue
            position = self._position(element)
            if position <= start:
                continue
            if end is not None and position >= end:
                break
            markdown = element_to_markdown(element)
            if markdown:
                blocks.append(markdown)

        content = _cap("\n\n".join(blocks).strip(), self.config.max_section_chars)
        return Section(heading=element_text(heading), content=content)


def _unstructured_section(container: Tag, config: ExtractionConfig) -> Section:
    text = strip_junk_from_ends(children_markdown(container).strip())
    return Section(heading=UNSTRUCTURED_HEADING, content=_cap(text, config.max_content_chars))


def _filter_sections(sections: list[Section], config: ExtractionConfig) -> list[Section]:
    """Drop short subsections, then sections still under the minimum."""
    kept = []
    for section in sections:
        subsections = [s for s in section.subsections if len(s.content) >= config.min_section_chars]
        filtered = section.model_copy(update={"subsections": subsections})
        if filtered.total_characters >= config.min_section_chars:
            kept.append(filtered)
    return kept


# =============================================================================
# Public API
# =============================================================================

def structure_document(
    html: str,
    url: str,
    config: ExtractionConfig | None = None,
) -> StructuredDocument | None:
    """Convert a fetched page into a structured document.

    Args:
        html: Raw HTML body.
        url: Source URL.
        config: Optional thresholds. Uses defaults if not provided.

    Returns:
        The document, or None when the URL is filtered out, parsing fails,
        or no section survives the quality filter.
    """
    config = config or ExtractionConfig()

    if should_skip_url(url):
        logger.info("url_skipped", url=url)
        return None
    if not html or not html.strip():
        return None

    try:
        return _structure(html, url, config)
    except Exception as e:
        logger.warning("structure_failed", url=url, error=str(e))
        return None


def _structure(html: str, url: str, config: ExtractionConfig) -> StructuredDocument | None:
    soup = BeautifulSoup(html, "html.parser")

    title = element_text(soup.title) if soup.title is not None else ""
    main_heading = None
    h1 = soup.find("h1")
    if h1 is not None:
        main_heading = element_text(h1) or None
        h1.decompose()

    container = find_main_content(soup, url)
    h2s = container.find_all("h2")
    h3s = container.find_all("h3")

    if not h2s and not h3s and soup.body is not None and container is not soup.body:
        body_h2s = soup.body.find_all("h2")
        body_h3s = soup.body.find_all("h3")
        if body_h2s or body_h3s:
            logger.debug("container_broadened_to_body", url=url, h2=len(body_h2s), h3=len(body_h3s))
            container, h2s, h3s = soup.body, body_h2s, body_h3s

    heading_tag = choose_heading_tag([element_text(h) for h in h2s], len(h3s))
    logger.debug("headings_found", url=url, h2=len(h2s), h3=len(h3s), selected=heading_tag)

    if heading_tag is None:
        sections = [_unstructured_section(container, config)]
    else:
        headings = h2s if heading_tag == "h2" else h3s
        sections = _SectionExtractor(container, headings, config).extract()

    sections = _filter_sections(sections, config)
    if not sections:
        logger.debug("no_usable_sections", url=url)
        return None

    document = StructuredDocument(
        url=url,
        title=title or DEFAULT_TITLE,
        main_heading=main_heading,
        sections=sections,
        total_characters=sum(s.total_characters for s in sections),
        has_structure=heading_tag is not None,
    )

    logger.debug(
        "document_structured",
        url=url,
        sections=len(sections),
        total_chars=document.total_characters,
        has_structure=document.has_structure,
    )
    return document
