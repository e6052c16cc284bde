"""Pydantic Settings model for application configuration."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from github_backup_manager.backup.models import MetadataStalenessPolicy


class Settings(BaseSettings):
    """Environment variable settings for the application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Generic application-wide settings
    DEBUG: bool = False

    # GitHub API settings
    GITHUB_API_URL: str = "https://api.github.com"
    GITHUB_PAT_TOKEN: str | None = None

    # Backup settings
    DESTINATION: Path | None = None
    BACKUP_CONCURRENCY: int = 5
    METADATA_STALENESS: MetadataStalenessPolicy = MetadataStalenessPolicy.TIMESTAMP
    CLONE_TIMEOUT: float = 1800.0
    ARCHIVE_TIMEOUT: float = 1800.0


def get_settings() -> Settings:
    """Read the settings from the environment and the .env file."""
    return Settings()
