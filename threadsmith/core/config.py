"""
Configuration management - environment driven settings via Pydantic Settings.
Every tunable of the checker, the editor pipeline and the HTTP surface lives here.
"""
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings - all values can be overridden with THREADSMITH_* env vars."""

    # API
    api_v1_prefix: str = Field(default="/api/v1", description="API route prefix")
    project_name: str = Field(default="Threadsmith", description="Project name")
    version: str = Field(default="1.0.0", description="Version")

    # Checker service (LanguageTool compatible)
    languagetool_url: str = Field(
        default="https://api.languagetool.org",
        description="Base URL of the LanguageTool-compatible checking service",
    )
    language: str = Field(default="en-US", description="Language code sent with every check")
    request_timeout: float = Field(default=30.0, description="Checker request timeout (seconds)")
    checker_retry_attempts: int = Field(default=2, description="Attempts per check before giving up")
    min_check_length: int = Field(default=3, description="Texts shorter than this are never checked")
    max_candidates: int = Field(default=3, description="Replacement candidates kept per span")

    # Response cache
    cache_ttl_seconds: int = Field(default=300, description="Checker response cache TTL (seconds)")
    cache_max_entries: int = Field(default=500, description="Maximum cached checker responses")

    # Editor pipeline
    check_debounce_ms: int = Field(default=800, description="Quiet period before re-checking an edited segment")
    save_debounce_ms: int = Field(default=2000, description="Quiet period before persisting edits")
    max_tweet_length: int = Field(default=280, description="Weighted character limit of a single tweet")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    json_logs: bool = Field(default=True, description="Render logs as JSON")
    log_file: Optional[str] = Field(default=None, description="Optional log file path")

    # CORS
    cors_allow_origins: str = Field(default="http://localhost:5173", description="Comma separated CORS origins")
    cors_allow_credentials: bool = Field(default=False, description="Allow credentials on CORS requests")

    model_config = SettingsConfigDict(
        env_prefix="THREADSMITH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def check_debounce_seconds(self) -> float:
        return self.check_debounce_ms / 1000.0

    @property
    def save_debounce_seconds(self) -> float:
        return self.save_debounce_ms / 1000.0

    def get_cors_origins(self) -> list[str]:
        """Return the allowed CORS origins."""
        raw = (self.cors_allow_origins or "").strip()
        if not raw:
            return ["*"]
        return [o.strip() for o in raw.split(",") if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    """
    Settings singleton.
    lru_cache keeps a single Settings instance per process.
    """
    return Settings()
