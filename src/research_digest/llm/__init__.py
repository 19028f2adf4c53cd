"""LLM client and chain configurations."""

from .client import LLMSettings, create_llm_client, get_llm_settings
from .chains import (
    LLMChainError,
    run_quick_summary_chain,
    run_query_refinement_chain,
    run_summary_chain,
)

__all__ = [
    "LLMSettings",
    "LLMChainError",
    "create_llm_client",
    "get_llm_settings",
    "run_query_refinement_chain",
    "run_quick_summary_chain",
    "run_summary_chain",
]
