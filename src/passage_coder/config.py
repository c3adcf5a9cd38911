"""Configuration management for Passage Coder."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_ACCEPTED_MODELS = [
    "gpt-5.1",
    "gpt-5",
    "gpt-5-mini",
    "gpt-5-nano",
    "gpt-4.1",
    "gpt-4.1-mini",
    "gpt-4.1-nano",
]


class Settings(BaseSettings):
    """Application settings, loaded from environment and .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PASSAGE_CODER_",
    )

    # LLM transport
    llm_provider: str = Field(default="openai", description="openai or ollama")
    openai_api_key: str = Field(default="")
    openai_base_url: str = Field(default="https://api.openai.com/v1")
    ollama_base_url: str = Field(default="http://localhost:11434")
    request_timeout: float = Field(default=60.0)

    # Models
    highlight_model: str = Field(default="gpt-5.1")
    suggestion_model: str = Field(default="gpt-4.1-mini")
    accepted_models: list[str] = Field(default_factory=lambda: list(DEFAULT_ACCEPTED_MODELS))

    # Text windows (words unless noted)
    cut_window_size: int = Field(default=200, description="Characters searched for a cut point")
    code_context_words: int = Field(default=30)
    highlight_context_words: int = Field(default=350)
    highlight_context_fallback_words: int = Field(default=400)
    examples_preceding_words: int = Field(default=15)
    examples_trailing_words: int = Field(default=10)
    random_examples_count: int = Field(default=5)

    # Suggestion orchestration
    ai_suggestions_enabled: bool = Field(default=True)
    highlight_max_attempts: int = Field(default=2, description="Validation attempts per highlight fetch")
    max_conflict_retries: int = Field(default=3, description="Extra attempts for transport conflicts")
    conflict_retry_delay: float = Field(default=0.5, description="Seconds to wait after a conflict")
    autocomplete_quiet_interval: float = Field(default=1.5, description="Typing pause before autocomplete")
    min_candidate_chars: int = Field(default=4, description="Skip passages this short when searching on")

    @property
    def highlight_search_words(self) -> int:
        return self.highlight_context_words or self.highlight_context_fallback_words


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
