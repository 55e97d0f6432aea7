"""Application configuration using pydantic-settings.

All environment variables should be accessed through the settings object
rather than using os.getenv() directly, so defaults and validation live in
one place.
"""

from functools import lru_cache
from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra env vars
    )

    # Database - relative path by default, override via env for deployments
    database_url: str = "sqlite:///./data/placetrack.db"

    # Server
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # ==========================================================================
    # Tracking queries
    # ==========================================================================
    default_history_limit: int = 100  # rows returned when no limit/range is given
    max_history_limit: int = 1000
    default_page_size: int = 10

    # ==========================================================================
    # Scraping
    # ==========================================================================
    review_scrape_limit: int = 10  # reviews fetched per scrape job

    @model_validator(mode="after")
    def validate_limits(self) -> "Settings":
        """Keep the history limits consistent with each other."""
        if self.default_history_limit < 1:
            raise ValueError("DEFAULT_HISTORY_LIMIT must be at least 1")
        if self.default_history_limit > self.max_history_limit:
            raise ValueError(
                f"DEFAULT_HISTORY_LIMIT ({self.default_history_limit}) cannot exceed "
                f"MAX_HISTORY_LIMIT ({self.max_history_limit})"
            )
        if self.default_page_size < 1:
            raise ValueError("DEFAULT_PAGE_SIZE must be at least 1")
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
