"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
Reconciliation tuning lives here so matching rules can change per deployment.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # SUPABASE
    # ===================
    supabase_url: Optional[str] = Field(
        None,
        description="Supabase project URL (catalog mirror)"
    )
    supabase_key: Optional[str] = Field(
        None,
        description="Supabase anon/public key"
    )

    # ===================
    # RECONCILIATION
    # ===================
    brand_attribute_markers: list[str] = Field(
        default=["merk"],
        description="Attribute names containing any of these encode the brand and are never resolved"
    )
    size_attribute_keywords: list[str] = Field(
        default=["maat", "size"],
        description="Attribute names containing any of these are size attributes"
    )
    color_attribute_keywords: list[str] = Field(
        default=["kleur", "color", "colour"],
        description="Attribute names containing any of these are color attributes"
    )
    significant_word_min_length: int = Field(
        default=4,
        ge=1,
        le=20,
        description="Shortest word that counts in all-words base product matching"
    )
    classification_max_workers: int = Field(
        default=1,
        ge=1,
        le=16,
        description="Lines classified in parallel (1 = sequential)"
    )
    fallback_category_name: str = Field(
        default="All",
        description="Category used for new products when no supplier category exists"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Origins allowed to call the API (back-office UI)"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def supabase_configured(self) -> bool:
        """Check if the Supabase catalog mirror is configured."""
        return bool(self.supabase_url and self.supabase_key)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
