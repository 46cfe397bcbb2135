"""
Centralized settings configuration using Pydantic BaseSettings.

All environment variables are defined here with types, defaults, and validation.
Use get_settings() for dependency injection compatibility in FastAPI.

Usage:
    from backend.settings import get_settings, Settings

    # In FastAPI endpoints (dependency injection)
    @app.get("/")
    def read_root(settings: Settings = Depends(get_settings)):
        return {"environment": settings.environment}

    # Direct access (module-level)
    settings = get_settings()
    print(settings.musclewiki_min_interval_seconds)
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
    log_level: str = Field(
        default="INFO",
        description="Root log level (DEBUG, INFO, WARNING, ERROR)",
    )

    # -------------------------------------------------------------------------
    # Supabase Database (persistent media cache)
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
    # External Services - MuscleWiki (via RapidAPI)
    # -------------------------------------------------------------------------
    musclewiki_api_key: Optional[str] = Field(
        default=None,
        description="RapidAPI key for the MuscleWiki API",
    )
    musclewiki_api_host: str = Field(
        default="musclewiki-api.p.rapidapi.com",
        description="RapidAPI host header for the MuscleWiki API",
    )
    musclewiki_base_url: str = Field(
        default="https://musclewiki-api.p.rapidapi.com",
        description="Base URL for the MuscleWiki API",
    )
    musclewiki_min_interval_seconds: float = Field(
        default=0.2,
        gt=0,
        description="Minimum spacing between outbound MuscleWiki calls",
    )
    musclewiki_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Per-request timeout for MuscleWiki calls",
    )
    musclewiki_search_limit: int = Field(
        default=5,
        ge=1,
        description="Results requested per text search",
    )
    musclewiki_muscle_search_limit: int = Field(
        default=20,
        ge=1,
        description="Results requested per muscle-filtered search",
    )

    # -------------------------------------------------------------------------
    # Exercise Media Resolution
    # -------------------------------------------------------------------------
    media_batch_size: int = Field(
        default=5,
        ge=1,
        description="Names resolved concurrently per batch",
    )
    media_cache_table: str = Field(
        default="musclewiki_exercise_cache",
        description="Supabase table holding the persistent media cache",
    )
    media_cache_ttl_days: Optional[int] = Field(
        default=None,
        ge=1,
        description="Age in days after which cached rows are refetched (unset = never)",
    )
    media_cache_write_attempts: int = Field(
        default=3,
        ge=1,
        description="Attempts per persistent cache write",
    )

    # -------------------------------------------------------------------------
    # HTTP
    # -------------------------------------------------------------------------
    cors_allowed_origins: str = Field(
        default="",
        description="Comma-separated extra CORS origins",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins into a list."""
        return [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()]

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

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return v.upper()

    # -------------------------------------------------------------------------
    # Helper Properties
    # -------------------------------------------------------------------------
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def media_lookup_configured(self) -> bool:
        """True when a MuscleWiki API key is set."""
        return bool(self.musclewiki_api_key)


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
