"""Models for configuration between CLI arguments and environment variables."""

from dataclasses import dataclass
from pathlib import Path

from github_backup_manager.backup.models import MetadataStalenessPolicy
from github_backup_manager.utils.constants import (
    DEFAULT_ARCHIVE_TIMEOUT,
    DEFAULT_CLONE_TIMEOUT,
    DEFAULT_CONCURRENCY,
    DEFAULT_GITHUB_API_URL,
)


@dataclass
class BackupConfig:
    """Configuration class for the backup and plan commands."""

    github_pat_token: str
    destination: Path
    github_api_url: str = DEFAULT_GITHUB_API_URL
    concurrency: int = DEFAULT_CONCURRENCY
    metadata_staleness: MetadataStalenessPolicy = MetadataStalenessPolicy.TIMESTAMP
    clone_timeout: float = DEFAULT_CLONE_TIMEOUT
    archive_timeout: float = DEFAULT_ARCHIVE_TIMEOUT
    debug: bool = False

    def __repr__(self) -> str:
        """Represent the configuration without exposing the token."""
        return (
            f"BackupConfig(destination={self.destination!r}, github_api_url={self.github_api_url!r}, "
            f"concurrency={self.concurrency}, metadata_staleness={self.metadata_staleness.value!r}, "
            f"clone_timeout={self.clone_timeout}, archive_timeout={self.archive_timeout}, debug={self.debug})"
        )
