"""Configuration settings for ci_versioning.

Uses pydantic-settings for config parsing from environment variables
and defaults. Configuration precedence: CLI flags > env vars > defaults.
"""

import logging
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

GITHUB_API_URL = "https://api.github.com"


class ConfigError(Exception):
    """Raised when required configuration is missing or malformed."""

    def __init__(self, message: str, code: str = "config_error") -> None:
        """Initialize ConfigError.

        Args:
            message: Error description.
            code: Error code for structured error handling.
        """
        super().__init__(message)
        self.code = code


def _default_db_url() -> str:
    """Return the default database URL (SQLite)."""
    db_path = Path.home() / ".local" / "share" / "ci-versioning" / "db.sqlite"
    return f"sqlite:///{db_path}"


class Settings(BaseSettings):
    """Application settings.

    Settings are loaded from environment variables with the CI_VERSIONING_
    prefix. CLI flags can override these at runtime.
    """

    model_config = SettingsConfigDict(
        env_prefix="CI_VERSIONING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage
    db_url: str = Field(
        default_factory=_default_db_url,
        description="Database connection URL",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    # GitHub App installation credentials
    github_api_url: str = Field(
        default=GITHUB_API_URL,
        description="Base URL of the GitHub REST API",
    )
    github_app_id: int | None = Field(
        default=None,
        description="GitHub App id",
    )
    github_installation_id: int | None = Field(
        default=None,
        description="Installation id of the GitHub App",
    )
    github_private_key: SecretStr | None = Field(
        default=None,
        description="PEM encoded private key of the GitHub App",
    )
    github_client_secret: SecretStr | None = Field(
        default=None,
        description="OAuth client secret of the GitHub App",
    )
    github_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for GitHub API requests (seconds)",
    )

    # Build store policies
    propagate_create_errors: bool = Field(
        default=False,
        description="Raise storage errors from create instead of logging them",
    )
    allow_published_overwrite: bool = Field(
        default=True,
        description="Allow failure/publication reports on published builds",
    )


def get_settings() -> Settings:
    """Get the application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()


def configure_logging(settings: Settings | None = None) -> None:
    """Apply the configured log level to the root logger.

    Args:
        settings: Optional settings instance; uses default if not provided.
    """
    if settings is None:
        settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def print_settings_json(settings: Settings | None = None) -> str:
    """Render effective settings as JSON.

    Secrets are masked by pydantic's SecretStr serialization.

    Args:
        settings: Optional settings instance; uses default if not provided.

    Returns:
        JSON string of effective settings.
    """
    if settings is None:
        settings = get_settings()
    return settings.model_dump_json(indent=2)


__all__ = [
    "ConfigError",
    "GITHUB_API_URL",
    "Settings",
    "configure_logging",
    "get_settings",
    "print_settings_json",
]
