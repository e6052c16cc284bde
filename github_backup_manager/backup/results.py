"""Contains results of a backup run."""

from datetime import datetime
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field


class BackupSucceeded(BaseModel):
    """A repository whose outdated backup files were refreshed."""

    status: Literal["succeeded"] = "succeeded"
    repo_name: str
    repo_url: str
    archive_path: Path
    metadata_path: Path
    repo_updated_at: datetime
    previous_archive_modified: datetime | None = None
    archive_refreshed: bool = False
    metadata_refreshed: bool = False


class BackupFailed(BaseModel):
    """A repository whose backup failed. Never carries the access token."""

    status: Literal["failed"] = "failed"
    repo_name: str
    masked_clone_url: str
    error: str


BackupOutcome = BackupSucceeded | BackupFailed


class ArchiveFailure(BaseModel):
    """A backup folder that could not be moved into the archive directory."""

    folder_name: str
    source: Path
    destination: Path
    error: str


class ArchiveReport(BaseModel):
    """Result of moving orphaned backup folders into the archive directory."""

    archived: list[str] = Field(default_factory=list)
    failures: list[ArchiveFailure] = Field(default_factory=list)


class RunSummary(BaseModel):
    """Aggregate result of one backup run."""

    succeeded: list[BackupSucceeded] = Field(default_factory=list)
    failed: list[BackupFailed] = Field(default_factory=list)
    archived: list[str] = Field(default_factory=list)
    archive_failures: list[ArchiveFailure] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    duration: float = 0.0

    @property
    def has_failures(self) -> bool:
        """Whether any repository backup or archive move failed."""
        return bool(self.failed or self.archive_failures)
