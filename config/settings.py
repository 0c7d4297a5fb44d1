"""Configuration settings loaded from .env file."""

from pathlib import Path
from typing import Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings, loaded from .env / ``INKFLOW_*`` environment variables.

    Authentication for the model provider is handled by the Claude Agent SDK
    itself; only model names and orchestration knobs live here.
    """

    # Models, one per operation family
    model_ideas: str = "claude-sonnet-4-5"          # daily stories, trend analysis
    model_architecture: str = "claude-opus-4-1"     # architecture, outline maps
    model_writing: str = "claude-opus-4-1"          # chapter content, rewrites
    model_editing: str = "claude-sonnet-4-5"        # continue / rewrite / polish
    default_lang: str = "zh"

    # Remote task backend
    use_backend: bool = True
    backend_url: str = "http://localhost:3001"
    request_timeout_seconds: float = 30.0

    # Task polling
    poll_max_attempts: int = 60
    poll_interval_seconds: float = 2.0

    # Retry / backoff
    retry_max_attempts: int = 3
    retry_base_delay_ms: int = 3000
    retry_backoff_multiplier: float = 2.0
    retry_rate_limit_multiplier: float = 2.0
    retry_max_delay_ms: Optional[int] = 60000  # None disables the cap
    retry_jitter_ms: int = 1000

    # Context cache
    cache_capacity: int = 64
    cache_ttl_seconds: float = 300.0
    cache_min_chars: int = 10000

    # Prompt context
    context_max_chars: int = 50000

    # Logging
    log_dir: Path = Path("./data/logs")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "INKFLOW_",
        "extra": "ignore",
    }

    @field_validator("poll_max_attempts", "cache_capacity")
    @classmethod
    def validate_positive_count(cls, v: int) -> int:
        if v < 1:
            raise ValueError("poll_max_attempts and cache_capacity must be >= 1")
        return v

    @field_validator("retry_max_attempts")
    @classmethod
    def validate_retry_attempts(cls, v: int) -> int:
        if v < 0:
            raise ValueError("retry_max_attempts must be >= 0")
        return v

    @field_validator("retry_base_delay_ms")
    @classmethod
    def validate_base_delay(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("retry_base_delay_ms must be > 0")
        return v

    @field_validator("retry_backoff_multiplier", "retry_rate_limit_multiplier")
    @classmethod
    def validate_multiplier(cls, v: float) -> float:
        if v < 1:
            raise ValueError("Backoff multiplier must be >= 1")
        return v

    @field_validator("poll_interval_seconds", "request_timeout_seconds", "cache_ttl_seconds")
    @classmethod
    def validate_positive_seconds(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Interval/timeout/TTL seconds must be > 0")
        return v

    @field_validator("backend_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @model_validator(mode="after")
    def validate_delay_cap(self) -> "Settings":
        if self.retry_max_delay_ms is not None and self.retry_max_delay_ms < self.retry_base_delay_ms:
            raise ValueError(
                f"retry_max_delay_ms ({self.retry_max_delay_ms}) must be >= "
                f"retry_base_delay_ms ({self.retry_base_delay_ms})"
            )
        return self

    def retry_policy(self):
        """Build a RetryPolicy from the retry settings."""
        from models.request import RetryPolicy

        return RetryPolicy(
            max_attempts=self.retry_max_attempts,
            base_delay_ms=self.retry_base_delay_ms,
            backoff_multiplier=self.retry_backoff_multiplier,
            rate_limit_multiplier=self.retry_rate_limit_multiplier,
            max_delay_ms=self.retry_max_delay_ms,
            jitter_ms=self.retry_jitter_ms,
        )


_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
