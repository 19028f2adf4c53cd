"""Line-based boilerplate trimming for converted page text.

Only lines at the very beginning or very end of the text are removed,
and only when they match an exact label or a fixed pattern. Nothing in
the body of the text is touched.

PATTERNS REMOVED:
1. Update stamps, read-time badges and date lines at the head
2. Social-action labels (Like, Share, Follow, Report, ...)
3. Author, tag and category link lines at the tail
4. Encyclopedia intro notes (hatnotes, "From Wikipedia", edit links)
"""

import re

import structlog

logger = structlog.get_logger(__name__)

HEAD_SCAN_LIMIT = 20
TAIL_SCAN_LIMIT = 30


# =============================================================================
# Head Patterns
# =============================================================================

HEAD_LABELS = frozenset({
    "Comments",
    "Improve",
    "Suggest changes",
    "Like Article",
    "Like",
    "Report",
    "Listen",
    "Share",
})

HEAD_PATTERNS = [
    # "Last Updated : 12 Mar, 2024"
    re.compile(r"^Last Updated.*$"),
    # Medium "7 min read"
    re.compile(r"^\d+\s+min\s+read$"),
    # "12 Mar 2024", "3 January, 2023 10:00"
    re.compile(r"^\d{1,2}\s+(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec).*\d{4}.*$"),
    # Medium author links like [Name](/@username)
    re.compile(r"^\[.*\]\(/@.*\)$"),
]


# =============================================================================
# Tail Patterns
# =============================================================================

TAIL_LABELS = frozenset({"Follow", "Improve"})

TAIL_PREFIXES = ("Article Tags", "- [")

TAIL_PATTERNS = [
    # Single letter index links like [A](https://...)
    re.compile(r"^\[.\]\(https://.*\)$"),
    re.compile(r"^\[.*\]\(https://www\.geeksforgeeks\.org/(?:user|category|tag)/.*\)$"),
]


# =============================================================================
# Encyclopedia Intro Patterns
# =============================================================================

INTRO_PREFIX_PATTERNS = [
    re.compile(r"^\[\]\(/wiki/[^)]+\)\s*"),
    re.compile(r"^From Wikipedia, the free encyclopedia\s*"),
    # Disambiguation hatnotes
    re.compile(r"^This article is about .+?\. For .+?\.\s*"),
    re.compile(r"^Not to be confused with .+?\.\s*"),
    re.compile(r"^\[edit\]\s*"),
]

INTRO_NAV_LINK_PREFIX = "[](/wiki/"
INTRO_NAV_LINK_MAX_LENGTH = 100


def _is_head_junk(line: str) -> bool:
    if not line or line in HEAD_LABELS:
        return True
    return any(p.match(line) for p in HEAD_PATTERNS)


def _is_tail_junk(line: str) -> bool:
    if not line or line in TAIL_LABELS:
        return True
    if line.startswith(TAIL_PREFIXES):
        return True
    return any(p.match(line) for p in TAIL_PATTERNS)


def strip_junk_from_ends(text: str) -> str:
    """Trim boilerplate lines from the beginning and end of ``text``.

    At most the first 20 and the last 30 lines are inspected; trimming
    stops at the first line that looks like real content.

    Args:
        text: Converted page text.

    Returns:
        Trimmed text. If everything would be trimmed the input is
        returned stripped instead.
    """
    if not text:
        return text

    lines = text.split("\n")

    start = 0
    for i, line in enumerate(lines[:HEAD_SCAN_LIMIT]):
        if not _is_head_junk(line.strip()):
            break
        start = i + 1

    end = len(lines)
    for i in range(len(lines) - 1, max(len(lines) - TAIL_SCAN_LIMIT, 0) - 1, -1):
        if not _is_tail_junk(lines[i].strip()):
            break
        end = i

    if start >= end:
        return text.strip()

    if start or end < len(lines):
        logger.debug("junk_lines_trimmed", head=start, tail=len(lines) - end)
    return "\n".join(lines[start:end]).strip()


def clean_site_intro(text: str) -> str:
    """Remove encyclopedia intro boilerplate from an introduction block.

    Strips leading navigation links, the "From Wikipedia" tagline,
    disambiguation hatnotes and edit links, then drops short lines that
    are only a navigation link.
    """
    if not text:
        return text

    for pattern in INTRO_PREFIX_PATTERNS:
        text = pattern.sub("", text, count=1)

    kept = []
    for line in text.split("\n"):
        stripped = line.strip()
        if stripped.startswith(INTRO_NAV_LINK_PREFIX) and len(stripped) < INTRO_NAV_LINK_MAX_LENGTH:
            continue
        if stripped == "From Wikipedia, the free encyclopedia":
            continue
        kept.append(line)

    return "\n".join(kept).strip()
