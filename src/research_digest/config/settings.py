"""Application settings using Pydantic."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Search Configuration
    searxng_base_url: str = "http://localhost:8080"
    search_max_pages: int = 25
    search_max_results: int = 100
    search_empty_page_limit: int = 5
    search_timeout_seconds: float = 30.0
    search_candidate_factor: int = 4  # Candidates requested per wanted document

    # Fetch Configuration
    fetch_workers: int = 10
    fetch_timeout_seconds: float = 30.0
    fetch_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )

    # Extraction Configuration
    min_section_chars: int = 50
    min_document_chars: int = 150
    max_section_chars: int = 3000
    max_content_chars: int = 15000

    # Pipeline Configuration
    default_result_count: int = 5
    background_workers: int = 4
    quick_summary_timeout_seconds: float = 120.0

    # Processing Configuration
    max_retries: int = 3  # Attempts per LLM chain call

    # Logging
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
