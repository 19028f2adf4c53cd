"""Render structured documents as text for the summarizer."""

from research_digest.models import StructuredDocument


def format_document(document: StructuredDocument) -> str:
    """Render a document as a Markdown-like text block.

    Layout: a ``=== title ===`` banner and source line, the main heading
    as ``##``, sections as ``###`` and subsections as ``####``.
    """
    lines = [
        f"=== {document.title or 'Content'} ===",
        f"Source: {document.url}",
        "",
    ]

    if document.main_heading:
        lines.extend([f"## {document.main_heading}", ""])

    for section in document.sections:
        if section.heading:
            lines.append(f"### {section.heading}")
        if section.content:
            lines.append(section.content)

        for subsection in section.subsections:
            lines.append("")
            if subsection.heading:
                lines.append(f"#### {subsection.heading}")
            if subsection.content:
                lines.append(subsection.content)

        lines.append("")

    return "\n".join(lines).rstrip() + "\n"
