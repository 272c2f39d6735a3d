"""
Configuration Management

Uses Pydantic Settings for environment-based configuration.
Loads from .env file automatically.

The engine components never read these values directly: the factory in
``fingerprint_engine.orchestrator`` turns them into explicit config objects.
"""

from typing import List, Optional
from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # OpenRouter (Optional - mock responses are used without a key)
    OPENROUTER_API_KEY: Optional[str] = None
    OPENROUTER_BASE_URL: str = "https://openrouter.ai/api/v1"
    HTTP_REFERER: str = "https://localhost"
    APP_TITLE: str = "Business Visibility Fingerprinting"

    # Model roster
    FINGERPRINT_MODELS: List[str] = [
        "openai/gpt-4-turbo",
        "anthropic/claude-3-opus",
        "google/gemini-2.5-flash",
    ]
    CLASSIFIER_MODEL: str = "openai/gpt-4o-mini"

    # Mock mode
    USE_MOCK: bool = False

    # Sampling
    TEMPERATURE: float = 0.7
    MAX_TOKENS: int = 2000

    # Timeouts and retries
    REQUEST_TIMEOUT: float = 60.0
    MAX_RETRIES: int = 3
    RETRY_INITIAL_DELAY: float = 1.0
    RETRY_MAX_DELAY: float = 10.0

    # Response cache
    CACHE_ENABLED: bool = True
    CACHE_TTL_HOURS: int = 24
    CACHE_PATH: Optional[str] = None

    # Fan-out bound (None = all queries at once)
    MAX_CONCURRENCY: Optional[int] = None

    # Heuristic dictionaries override (JSON file)
    LEXICON_PATH: Optional[str] = None

    # Application Settings
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra fields in .env file
        case_sensitive = False  # Allow both UPPERCASE and lowercase


@lru_cache
def get_settings() -> Settings:
    """Get or create cached settings instance."""
    return Settings()
