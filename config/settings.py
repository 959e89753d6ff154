"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache


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
    supabase_url: str = Field(
        ...,
        description="Supabase project URL"
    )
    supabase_key: str = Field(
        ...,
        description="Supabase anon/public key"
    )
    store_page_size: int = Field(
        default=1000,
        ge=10,
        le=10000,
        description="Rows fetched per store request when reading a collection"
    )

    # ===================
    # ANALYTICS
    # ===================
    marketing_expense_category: str = Field(
        default="Marketing",
        description="Expense category counted as marketing spend (CAC, CPL, ROMI)"
    )
    salary_expense_category: str = Field(
        default="Salary",
        description="Expense category deducted for gross margin"
    )
    days_per_month: float = Field(
        default=30.44,
        gt=0,
        description="Average days per month for lifespan conversion"
    )
    positive_rating_threshold: float = Field(
        default=4,
        ge=0,
        le=5,
        description="Ratings at or above this count as satisfied (CSAT)"
    )
    default_window_days: int = Field(
        default=30,
        ge=1,
        le=366,
        description="Trailing window for gig/source analytics without a range"
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

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If required env vars are missing or invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
