"""Process settings loaded from environment variables.

Uses pydantic-settings for validation and .env file support. These are
deployment knobs only; pagination behavior is configured per app through
register_pagination options.
"""

import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables (PAGINATION_ prefix)."""

    model_config = SettingsConfigDict(
        env_prefix="PAGINATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Fallback base URI for generated links when options.meta.baseUri is unset.
    # Behind a reverse proxy, set this to the public origin.
    base_uri: str | None = None

    log_level: str = "INFO"

    @field_validator("base_uri")
    @classmethod
    def strip_trailing_slash(cls, value: str | None) -> str | None:
        """Normalize base URI so paths can be appended directly."""
        if value is None:
            return None
        value = value.rstrip("/")
        return value or None

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, value: str) -> str:
        """Reject unknown logging level names."""
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            msg = f"PAGINATION_LOG_LEVEL must be a logging level name. Got: {value}"
            raise ValueError(msg)
        return level


settings = Settings()
