"""Application configuration and .env loading."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Centralized runtime configuration."""

    fast_cache_ttl: float = Field(default=300.0, ge=0, validation_alias="FAST_CACHE_TTL")
    deep_cache_ttl: float = Field(default=3600.0, ge=0, validation_alias="DEEP_CACHE_TTL")
    ai_cache_ttl: float = Field(default=3600.0, ge=0, validation_alias="AI_CACHE_TTL")
    cache_max_entries: int = Field(default=1000, ge=1, validation_alias="CACHE_MAX_ENTRIES")
    cache_enabled: bool = Field(default=True, validation_alias="CACHE_ENABLED")
    cache_store_path: str | None = Field(default=None, validation_alias="CACHE_STORE_PATH")

    enable_fast: bool = Field(default=True, validation_alias="ENABLE_FAST")
    enable_deep: bool = Field(default=True, validation_alias="ENABLE_DEEP")
    enable_seo: bool = Field(default=False, validation_alias="ENABLE_SEO")
    enable_ai: bool = Field(default=False, validation_alias="ENABLE_AI")

    ai_confidence_threshold: float = Field(
        default=0.7, ge=0, le=1, validation_alias="AI_CONFIDENCE_THRESHOLD"
    )
    ai_daily_limit: int = Field(default=1000, ge=0, validation_alias="AI_DAILY_LIMIT")
    ai_model: str | None = Field(default="openai:gpt-4o", validation_alias="AI_MODEL")
    ai_model_provider: str | None = Field(
        default=None, validation_alias="AI_MODEL_PROVIDER"
    )
    ai_temperature: float = Field(default=0.3, validation_alias="AI_TEMPERATURE")
    ai_timeout: float | None = Field(default=None, validation_alias="AI_TIMEOUT")
    ai_max_tokens: int | None = Field(default=None, validation_alias="AI_MAX_TOKENS")
    ai_max_retries: int = Field(default=2, validation_alias="AI_MAX_RETRIES")
    ai_detect_min_chars: int = Field(default=50, ge=0, validation_alias="AI_DETECT_MIN_CHARS")
    ai_detect_max_chars: int = Field(
        default=2000, ge=1, validation_alias="AI_DETECT_MAX_CHARS"
    )
    ai_detect_max_issues: int = Field(default=5, ge=1, validation_alias="AI_DETECT_MAX_ISSUES")

    context_window: int = Field(default=20, ge=0, validation_alias="CONTEXT_WINDOW")
    usage_store_path: str | None = Field(default=None, validation_alias="USAGE_STORE_PATH")
    log_level: str = Field(default="WARNING", validation_alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()


__all__ = ["Settings", "get_settings"]
