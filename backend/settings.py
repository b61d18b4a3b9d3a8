"""
Centralized settings configuration using Pydantic BaseSettings.

All environment variables are defined here with types, defaults, and validation.
Use get_settings() to share one cached instance.

Usage:
    from backend.settings import get_settings, Settings

    settings = get_settings()
    print(settings.draft_debounce_seconds)

    # Tests: explicit values, no .env
    settings = Settings(environment="test", draft_debounce_seconds=0.05, _env_file=None)
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Core Environment
    # -------------------------------------------------------------------------
    environment: str = Field(
        default="development",
        description="Runtime environment: development, staging, production, test",
    )

    # -------------------------------------------------------------------------
    # Supabase Database
    # -------------------------------------------------------------------------
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL",
    )
    supabase_service_role_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key (full access)",
    )
    supabase_anon_key: Optional[str] = Field(
        default=None,
        description="Supabase anonymous key (limited access)",
    )

    @property
    def supabase_key(self) -> Optional[str]:
        """Get the best available Supabase key (service role preferred)."""
        return self.supabase_service_role_key or self.supabase_anon_key

    # -------------------------------------------------------------------------
    # Draft Autosave
    # -------------------------------------------------------------------------
    draft_debounce_seconds: float = Field(
        default=2.0,
        gt=0,
        description="Quiet period after the last edit before a draft save",
    )
    draft_min_changes: int = Field(
        default=2,
        ge=1,
        description="Edits required before the first draft save of a session",
    )
    draft_max_retries: int = Field(
        default=3,
        ge=0,
        description="Automatic retries after a failed draft save",
    )
    draft_retry_delay_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Fixed back-off between automatic draft save retries",
    )
    draft_fetch_attempts: int = Field(
        default=5,
        ge=1,
        description="Attempts when reading a draft before giving up",
    )
    draft_fetch_retry_seconds: float = Field(
        default=0.3,
        gt=0,
        description="Wait between draft read attempts",
    )

    # -------------------------------------------------------------------------
    # Session Initialization
    # -------------------------------------------------------------------------
    init_safety_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Force initialization to complete after this long",
    )

    # -------------------------------------------------------------------------
    # Run Tracking
    # -------------------------------------------------------------------------
    run_sample_flush_seconds: float = Field(
        default=5.0,
        gt=0,
        description="How often buffered run samples are persisted",
    )

    # -------------------------------------------------------------------------
    # Local Timer Storage
    # -------------------------------------------------------------------------
    timer_state_dir: str = Field(
        default=".session_timers",
        description="Directory for persisted stopwatch state",
    )

    # -------------------------------------------------------------------------
    # Observability - Sentry
    # -------------------------------------------------------------------------
    sentry_dsn: Optional[str] = Field(
        default=None,
        description="Sentry DSN for error tracking",
    )

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is a valid value."""
        valid_environments = {"development", "staging", "production", "test"}
        if v.lower() not in valid_environments:
            raise ValueError(
                f"Invalid environment '{v}'. Must be one of: {valid_environments}"
            )
        return v.lower()

    # -------------------------------------------------------------------------
    # Helper Properties
    # -------------------------------------------------------------------------
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_test(self) -> bool:
        """Check if running in test environment."""
        return self.environment == "test"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    For testing, you can clear the cache with get_settings.cache_clear().

    Returns:
        Settings: Application settings instance
    """
    return Settings()
