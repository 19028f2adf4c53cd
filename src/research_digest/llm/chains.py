"""LangChain chains for the research LLM calls."""

import structlog
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate
from tenacity import retry, stop_after_attempt, wait_exponential

from research_digest.config.prompts import (
    QUERY_REFINEMENT_SYSTEM_PROMPT,
    QUERY_REFINEMENT_USER_PROMPT,
    QUICK_SUMMARY_SYSTEM_PROMPT,
    QUICK_SUMMARY_USER_PROMPT,
    SUMMARY_SYSTEM_PROMPT,
    SUMMARY_USER_PROMPT,
    format_snippet_list,
    format_source_blocks,
)
from research_digest.config.settings import get_settings
from research_digest.llm.client import LLMSettings, create_llm_client, get_llm_settings

logger = structlog.get_logger(__name__)


class LLMChainError(Exception):
    """Error during LLM chain execution."""

    pass


def _stop_after_configured_attempts(retry_state) -> bool:
    """Tenacity stop condition reading ``max_retries`` from the settings."""
    return stop_after_attempt(get_settings().max_retries)(retry_state)


def _strip_wrapping(text: str) -> str:
    """Remove surrounding quotes and whitespace models like to add to one-line answers."""
    text = text.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'`":
        text = text[1:-1].strip()
    return text


def _invoke_with_fallback(
    prompt: ChatPromptTemplate,
    variables: dict,
    context_name: str = "chain",
    settings: LLMSettings | None = None,
) -> tuple[str, str]:
    """Invoke LLM chain with automatic fallback on empty response.

    Args:
        prompt: The ChatPromptTemplate to use.
        variables: Variables to pass to the prompt.
        context_name: Name for logging context.
        settings: Optional LLM settings override.

    Returns:
        Tuple of (response_text, model_used).

    Raises:
        LLMChainError: If the primary (and the fallback, when configured) return empty.
    """
    settings = settings or get_llm_settings()

    primary_model = settings.model_name
    chain = prompt | create_llm_client(settings) | StrOutputParser()

    logger.debug(f"{context_name}_trying_primary", model=primary_model)
    response = chain.invoke(variables)

    if response and response.strip():
        logger.debug(f"{context_name}_primary_success", model=primary_model, length=len(response))
        return response, primary_model

    fallback_model = settings.fallback_model_name
    if not fallback_model:
        raise LLMChainError(f"Model {primary_model} returned an empty response")

    logger.warning(
        f"{context_name}_primary_empty_trying_fallback",
        primary_model=primary_model,
        fallback_model=fallback_model,
    )

    chain_fallback = prompt | create_llm_client(settings, use_fallback=True) | StrOutputParser()
    response = chain_fallback.invoke(variables)

    if response and response.strip():
        logger.info(f"{context_name}_fallback_success", model=fallback_model, length=len(response))
        return response, fallback_model

    raise LLMChainError(f"Both primary ({primary_model}) and fallback ({fallback_model}) returned empty responses")


@retry(
    stop=_stop_after_configured_attempts,
    wait=wait_exponential(multiplier=1, min=2, max=30),
)
def run_query_refinement_chain(topic: str) -> str:
    """Rewrite a research topic into a web search query.

    Args:
        topic: Topic as typed by the user.

    Returns:
        Optimized query text.
    """
    prompt = ChatPromptTemplate.from_messages([
        ("system", QUERY_REFINEMENT_SYSTEM_PROMPT),
        ("human", QUERY_REFINEMENT_USER_PROMPT),
    ])

    response, model_used = _invoke_with_fallback(
        prompt=prompt,
        variables={"topic": topic},
        context_name="query_refinement",
    )
    query = _strip_wrapping(response)

    logger.debug("query_refinement_complete", model_used=model_used, query=query)
    return query


@retry(
    stop=_stop_after_configured_attempts,
    wait=wait_exponential(multiplier=1, min=2, max=30),
)
def run_quick_summary_chain(topic: str, snippets: list[str]) -> str:
    """Produce a preliminary summary from search snippets.

    Args:
        topic: Research topic.
        snippets: Non-blank snippets of the search results, in rank order.

    Returns:
        Markdown summary text.
    """
    prompt = ChatPromptTemplate.from_messages([
        ("system", QUICK_SUMMARY_SYSTEM_PROMPT),
        ("human", QUICK_SUMMARY_USER_PROMPT),
    ])

    response, model_used = _invoke_with_fallback(
        prompt=prompt,
        variables={
            "topic": topic,
            "snippet_count": len(snippets),
            "snippets": format_snippet_list(snippets),
        },
        context_name="quick_summary",
    )

    logger.debug("quick_summary_complete", model_used=model_used, length=len(response))
    return response.strip()


@retry(
    stop=_stop_after_configured_attempts,
    wait=wait_exponential(multiplier=1, min=2, max=30),
)
def run_summary_chain(topic: str, documents: list[str], source_urls: list[str]) -> str:
    """Synthesize a comprehensive summary from fetched documents.

    Args:
        topic: Research topic.
        documents: Structured documents rendered as text.
        source_urls: URLs of the documents, same order.

    Returns:
        Markdown summary text.
    """
    prompt = ChatPromptTemplate.from_messages([
        ("system", SUMMARY_SYSTEM_PROMPT),
        ("human", SUMMARY_USER_PROMPT),
    ])

    logger.debug(
        "running_summary",
        source_count=len(documents),
        total_chars=sum(len(d) for d in documents),
    )

    response, model_used = _invoke_with_fallback(
        prompt=prompt,
        variables={
            "topic": topic,
            "source_count": len(documents),
            "sources": format_source_blocks(documents, source_urls),
        },
        context_name="summary",
    )

    logger.debug("summary_complete", model_used=model_used, length=len(response))
    return response.strip()
