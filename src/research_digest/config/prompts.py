"""LLM prompt templates for the research stages."""

# Note: curly braces must be escaped as {{ }} for LangChain templates

QUERY_REFINEMENT_SYSTEM_PROMPT = """You are a search query optimization expert. Your task is to transform user queries into optimal search queries for web search engines. Fix typos, improve clarity, add relevant keywords, and make the query more specific. Return ONLY the optimized query text without any explanation or additional formatting. Keep it concise and focused on what will give the best search results."""

QUERY_REFINEMENT_USER_PROMPT = """Optimize this search query: {topic}"""

MARKDOWN_INSTRUCTION = """
IMPORTANT - Use proper Markdown formatting:
- Use ## for headings (not bold text)
- Add blank lines before and after headings
- Add blank lines before lists
- Use - for bullet points"""

QUICK_SUMMARY_SYSTEM_PROMPT = """You are a quick summarization agent. Your task is to create a preliminary summary based on search result snippets. This is a QUICK, partial answer - not comprehensive. Synthesize the key points from the snippets provided. Be concise and acknowledge this is preliminary information.
""" + MARKDOWN_INSTRUCTION

QUICK_SUMMARY_USER_PROMPT = """Topic: {topic}

Create a quick preliminary summary from these {snippet_count} search snippets:

{snippets}

Provide a brief preliminary summary using proper Markdown (## for headings, blank lines before lists).
Note that this is based on snippets only."""

SUMMARY_SYSTEM_PROMPT = """You are a research summarization agent. Your task is to analyze and summarize information from multiple web sources about a given topic. Create a comprehensive, accurate summary that synthesizes the key points from all provided sources. Base your summary ONLY on the information provided in the sources - do not add external knowledge. Structure your summary clearly with the most important information first."""

SUMMARY_USER_PROMPT = """Topic: {topic}

Please summarize the following {source_count} sources about this topic:

{sources}

Based on these sources, provide a comprehensive summary of the topic."""


def format_snippet_list(snippets: list[str]) -> str:
    """Render search snippets as a numbered bullet list."""
    return "\n".join(f"- Snippet {i}: {snippet}" for i, snippet in enumerate(snippets, 1))


def format_source_blocks(documents: list[str], source_urls: list[str] | None = None) -> str:
    """Render formatted documents as delimited source blocks.

    Args:
        documents: Documents already rendered as text.
        source_urls: Optional URLs aligned with documents, appended to each header.

    Returns:
        Source blocks separated by blank lines.
    """
    blocks = []
    for i, document in enumerate(documents, 1):
        header = f"--- Source {i} ---"
        if source_urls and i <= len(source_urls):
            header = f"--- Source {i} ({source_urls[i - 1]}) ---"
        blocks.append(f"{header}\n{document}")
    return "\n\n".join(blocks)
