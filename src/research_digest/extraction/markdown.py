"""HTML element to Markdown conversion."""

import re

from bs4 import Comment, NavigableString, Tag

WHITESPACE_PATTERN = re.compile(r"\s+")

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")

BLOCK_TAGS = frozenset({
    "address", "article", "aside", "blockquote", "dd", "details", "div", "dl",
    "dt", "figcaption", "figure", "footer", "form", "header", "hr", "li", "main",
    "nav", "ol", "p", "pre", "section", "table", "ul", *HEADING_TAGS,
})


def element_text(element: Tag) -> str:
    """Visible text of an element with whitespace collapsed."""
    return WHITESPACE_PATTERN.sub(" ", element.get_text()).strip()


def inline_markdown(element: Tag) -> str:
    """Convert the direct children of an element as inline content.

    Emphasis, code, links and line breaks are kept; any other child
    element contributes its plain text.
    """
    parts = []
    for node in element.children:
        if isinstance(node, Comment):
            continue
        if isinstance(node, NavigableString):
            parts.append(WHITESPACE_PATTERN.sub(" ", str(node)))
            continue
        if not isinstance(node, Tag):
            continue

        name = node.name
        text = element_text(node)
        if name in ("strong", "b"):
            parts.append(f"**{text}**" if text else "")
        elif name in ("em", "i"):
            parts.append(f"*{text}*" if text else "")
        elif name == "code":
            parts.append(f"`{text}`" if text else "")
        elif name == "a":
            parts.append(_link(node, text))
        elif name == "br":
            parts.append("  \n")
        else:
            parts.append(text)

    return "".join(parts).strip()


def _link(element: Tag, text: str) -> str:
    href = (element.get("href") or "").strip()
    return f"[{text}]({href})" if href else text


def _list_items(element: Tag, ordered: bool) -> str:
    lines = []
    index = 1
    for li in element.find_all("li", recursive=False):
        content = inline_markdown(li)
        if not content:
            continue
        if ordered:
            lines.append(f"{index}. {content}")
            index += 1
        else:
            lines.append(f"- {content}")
    return "\n".join(lines)


def table_to_markdown(table: Tag) -> str:
    """Convert a table to a pipe table, first row as header."""
    rows = table.find_all("tr")
    if not rows:
        return ""

    headers = rows[0].find_all("th") or rows[0].find_all("td")
    if not headers:
        return ""

    lines = [
        "| " + " | ".join(element_text(h) for h in headers) + " |",
        "|" + " --- |" * len(headers),
    ]
    for row in rows[1:]:
        cells = row.find_all("td")
        if cells:
            lines.append("| " + " | ".join(element_text(c) for c in cells) + " |")
    return "\n".join(lines)


def _definition_list(element: Tag) -> str:
    terms = element.find_all("dt")
    definitions = element.find_all("dd")
    return "\n\n".join(
        f"**{element_text(dt)}**\n: {element_text(dd)}"
        for dt, dd in zip(terms, definitions)
    )


def _blockquote(element: Tag) -> str:
    inner = children_markdown(element) if _has_block_children(element) else inline_markdown(element)
    if not inner:
        return ""
    return "\n".join(f"> {line}" if line else ">" for line in inner.split("\n"))


def _preformatted(element: Tag) -> str:
    code = element.find("code")
    source = code if code is not None else element
    text = source.get_text().strip("\n")
    return f"```\n{text}\n```" if text.strip() else ""


def _has_block_children(element: Tag) -> bool:
    return any(isinstance(c, Tag) and c.name in BLOCK_TAGS for c in element.children)


def children_markdown(element: Tag) -> str:
    """Convert child elements one by one and join them as paragraphs.

    Loose text directly inside the element becomes its own paragraph.
    """
    blocks = []
    for node in element.children:
        if isinstance(node, Comment):
            continue
        if isinstance(node, Tag):
            markdown = element_to_markdown(node)
        elif isinstance(node, NavigableString):
            markdown = WHITESPACE_PATTERN.sub(" ", str(node)).strip()
        else:
            continue
        if markdown:
            blocks.append(markdown)
    return "\n\n".join(blocks)


def element_to_markdown(element: Tag | None) -> str:
    """Convert one element (and its subtree) to Markdown.

    Args:
        element: Element to convert.

    Returns:
        Markdown text, empty when the element carries no text.
    """
    if element is None:
        return ""

    name = element.name

    if name == "p":
        return inline_markdown(element)
    if name in HEADING_TAGS:
        text = element_text(element)
        return f"{'#' * int(name[1])} {text}" if text else ""
    if name == "ul":
        return _list_items(element, ordered=False)
    if name == "ol":
        return _list_items(element, ordered=True)
    if name == "blockquote":
        return _blockquote(element)
    if name == "pre":
        return _preformatted(element)
    if name == "code":
        text = element_text(element)
        return f"`{text}`" if text else ""
    if name == "a":
        return _link(element, element_text(element))
    if name == "br":
        return "  \n"
    if name == "hr":
        return "---"
    if name == "table":
        return table_to_markdown(element)
    if name == "dl":
        return _definition_list(element)

    # Containers: leaf -> text, block content -> recurse, inline content -> inline
    if not element.find(True):
        return element_text(element)
    if _has_block_children(element):
        return children_markdown(element)
    return inline_markdown(element)
