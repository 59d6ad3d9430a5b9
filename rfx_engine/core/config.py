"""Configuration management for RFx Engine."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Credentials. Checked when a client for the tier is built, not at load time.
    ANTHROPIC_API_KEY: str | None = Field(default=None, description="Anthropic API key (generation tier)")
    OPENAI_API_KEY: str | None = Field(default=None, description="OpenAI API key (summarization tier)")

    # Environment
    RFX_ENGINE_ENV: str = Field(default="dev", description="Environment: dev, test, prod")

    # Models
    SUMMARY_MODEL: str = Field(default="gpt-4o-mini", description="Fast model for summarization")
    GENERATION_MODEL: str = Field(
        default="claude-sonnet-4-20250514", description="Primary model for draft generation"
    )

    # Summarization policy
    MAX_SUMMARY_SIZE: int = Field(default=2000, description="Max chars per document summary")
    MAX_CHUNK_SIZE: int = Field(default=15000, description="Max chars per summarization chunk")
    SUMMARY_MAX_TOKENS: int = Field(default=2000, description="Max tokens for summary/consolidation calls")
    CHUNK_SUMMARY_MAX_TOKENS: int = Field(default=500, description="Max tokens per chunk summary")
    SUMMARY_TEMPERATURE: float = Field(default=0.3, description="Temperature for summarization")

    # Prompt assembly
    WEB_SUMMARY_THRESHOLD: int = Field(
        default=2000, description="Web sources longer than this are summarized"
    )
    KB_INLINE_THRESHOLD: int = Field(
        default=5000, description="Engineering KB files shorter than this are inlined"
    )
    DEFAULT_TARGET_LENGTH_PAGES: int = Field(default=10, description="Default target draft length")

    # Generation
    GENERATION_MAX_TOKENS: int = Field(default=4000, description="Max tokens for draft generation")
    GENERATION_TEMPERATURE: float = Field(default=0.1, description="Temperature for draft generation")

    # Remote call policy
    LLM_MAX_ATTEMPTS: int = Field(default=3, description="Attempts per call when rate limited")
    LLM_RETRY_DELAY_SECONDS: float = Field(default=5.0, description="Delay between rate-limit retries")
    LLM_TIMEOUT_SECONDS: float = Field(default=120.0, description="Per-request timeout for provider SDKs")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If environment variables have invalid values
    """
    return Settings()
