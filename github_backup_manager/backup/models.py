"""Data models for planning repository backups."""

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict

EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


class MetadataStalenessPolicy(str, Enum):
    """How to decide whether the issues/comments file of a repository is stale."""

    TIMESTAMP = "timestamp"
    ABSENT_ONLY = "absent-only"


class RemoteRepository(BaseModel):
    """A repository as reported by GitHub for the current run."""

    model_config = ConfigDict(frozen=True)

    name: str
    owner_login: str
    html_url: str
    updated_at: datetime

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "RemoteRepository":
        """Build a repository from the raw JSON of the GitHub REST API.

        A missing `updated_at` is treated as the epoch.
        """
        updated_at = data.get("updated_at")
        return cls(
            name=data["name"],
            owner_login=data["owner"]["login"],
            html_url=data["html_url"],
            updated_at=updated_at if updated_at else EPOCH,
        )


class ArtifactState(BaseModel):
    """Existence and last modification time of one local backup file."""

    model_config = ConfigDict(frozen=True)

    exists: bool
    last_modified: datetime | None = None


class LocalArtifactState(BaseModel):
    """State of both backup files of one repository."""

    model_config = ConfigDict(frozen=True)

    archive: ArtifactState
    metadata: ArtifactState


class StalenessDecision(BaseModel):
    """Which backup files of a repository need refreshing."""

    model_config = ConfigDict(frozen=True)

    needs_archive: bool
    needs_metadata: bool

    @property
    def needs_any(self) -> bool:
        """Whether the repository needs any work at all."""
        return self.needs_archive or self.needs_metadata


class WorkUnit(BaseModel):
    """A planned backup of one repository."""

    model_config = ConfigDict(frozen=True)

    repository: RemoteRepository
    repo_folder: Path
    archive_path: Path
    metadata_path: Path
    needs_archive: bool
    needs_metadata: bool
    previous_archive_modified: datetime | None = None
