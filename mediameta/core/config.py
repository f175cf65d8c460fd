"""Library settings parsed from environment variables and defaults."""

import logging
from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from mediameta import __version__

LOG_FORMAT = "%(asctime)s %(name)s [%(levelname)s] %(message)s"


class Settings(BaseSettings):
    """Library configuration loaded from environment variables."""

    app_name: str = "mediameta"
    app_version: str = __version__

    log_level: str = "INFO"
    http_timeout_seconds: float = 15.0

    audible_locale: str = "us"
    google_books_locale: str = "us"
    google_books_api_key: Optional[str] = None
    tmdb_locale: str = "us"
    tmdb_api_key: Optional[str] = None
    tmdb_api_auth_header: Optional[str] = None

    catalog_retry_attempts: int = 3
    catalog_retry_max_wait_seconds: float = 8.0
    catalog_circuit_threshold: int = 3

    @field_validator("audible_locale", "google_books_locale", "tmdb_locale", mode="before")
    @classmethod
    def _normalize_locale(cls, value: str | None) -> str:
        """Lower-case region codes; blank values are kept so providers reject them."""
        if not isinstance(value, str):
            return value
        return value.strip().lower()

    @field_validator("catalog_retry_attempts", "catalog_circuit_threshold")
    @classmethod
    def _at_least_one(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be at least 1")
        return value

    @property
    def user_agent(self) -> str:
        return f"{self.app_name}/{self.app_version}"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """Return cached settings to avoid re-parsing environment variables."""
    return Settings()


settings = get_settings()


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for applications embedding the library."""
    logging.basicConfig(level=level or settings.log_level, format=LOG_FORMAT, force=True)
