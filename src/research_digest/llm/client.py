"""Ollama LLM client configuration."""

from functools import lru_cache

from langchain_ollama import OllamaLLM
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMSettings(BaseSettings):
    """LLM configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        env_file=".env",
        extra="ignore",
    )

    ollama_base_url: str = "http://localhost:11434"
    model_name: str = "llama3.1:latest"
    fallback_model_name: str | None = None  # Tried when the primary returns empty
    temperature: float = 0.2
    request_timeout: int = 300
    num_ctx: int = 16384
    num_predict: int = 2048  # Max tokens to generate


@lru_cache
def get_llm_settings() -> LLMSettings:
    """Get cached LLM settings."""
    return LLMSettings()


def create_llm_client(settings: LLMSettings | None = None, use_fallback: bool = False) -> OllamaLLM:
    """Create configured Ollama LLM client.

    Args:
        settings: Optional custom settings. Uses defaults if not provided.
        use_fallback: If True, use the fallback model instead of primary.

    Returns:
        Configured OllamaLLM instance.
    """
    settings = settings or get_llm_settings()
    model = settings.fallback_model_name if use_fallback and settings.fallback_model_name else settings.model_name

    return OllamaLLM(
        model=model,
        base_url=settings.ollama_base_url,
        temperature=settings.temperature,
        timeout=settings.request_timeout,
        num_ctx=settings.num_ctx,
        num_predict=settings.num_predict,
        streaming=False,
    )
