"""
Application configuration using Pydantic Settings.

Environment-based infrastructure switching is controlled by the ENVIRONMENT variable.
Required settings are validated once at startup (see ensure_valid_settings).
"""

from functools import lru_cache
from typing import List, Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ===========================================
    # Environment
    # ===========================================
    ENVIRONMENT: Literal["local", "production"] = "local"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # ===========================================
    # Database
    # ===========================================
    # No embedded fallback in production: must be provided explicitly.
    DATABASE_URL: Optional[str] = None
    LOCAL_DATABASE_URL: str = "sqlite+aiosqlite:///./marketplace.db"

    # ===========================================
    # Auth
    # ===========================================
    AUTH_PROVIDER: Literal["mock", "local"] = "mock"
    LOCAL_JWT_SECRET: str = ""
    LOCAL_JWT_ISSUER: str = "marketplace-local"

    # ===========================================
    # Server
    # ===========================================
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    ALLOWED_ORIGINS: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"]
    )

    # ===========================================
    # Locale
    # ===========================================
    # Used for date-only due dates (end of day) and currency formatting.
    TIMEZONE: str = "Asia/Muscat"
    DEFAULT_CURRENCY: str = "OMR"
    CURRENCY_LOCALE: str = "en_US"

    @property
    def is_local(self) -> bool:
        """Check if running in local environment."""
        return self.ENVIRONMENT == "local"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT == "production"

    @property
    def database_url(self) -> str:
        """Effective database URL (local default only outside production)."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return self.LOCAL_DATABASE_URL

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.TIMEZONE)


def validate_settings(settings: Settings) -> list[str]:
    """
    Collect every problem with the given settings.

    Returns:
        List of human-readable problems, empty when the settings are usable.
    """
    problems: list[str] = []

    if settings.is_production:
        if not settings.DATABASE_URL:
            problems.append("DATABASE_URL is required in production")
        if settings.AUTH_PROVIDER == "mock":
            problems.append("AUTH_PROVIDER must not be 'mock' in production")

    if settings.AUTH_PROVIDER == "local" and not settings.LOCAL_JWT_SECRET:
        problems.append("LOCAL_JWT_SECRET is required when AUTH_PROVIDER=local")

    try:
        ZoneInfo(settings.TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        problems.append(f"TIMEZONE '{settings.TIMEZONE}' is not a valid IANA timezone")

    if not settings.DEFAULT_CURRENCY:
        problems.append("DEFAULT_CURRENCY must not be empty")

    return problems


def ensure_valid_settings(settings: Settings) -> Settings:
    """Raise ConfigurationError listing all missing/invalid settings."""
    problems = validate_settings(settings)
    if problems:
        raise ConfigurationError(
            "Invalid configuration: " + "; ".join(problems),
            details={"problems": problems},
        )
    return settings


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures settings are loaded only once.
    """
    return Settings()
