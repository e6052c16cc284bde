"""Decides which repositories need their local backup files refreshed."""

import asyncio
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

import structlog

from github_backup_manager.backup.models import (
    ArtifactState,
    LocalArtifactState,
    MetadataStalenessPolicy,
    RemoteRepository,
    StalenessDecision,
    WorkUnit,
)
from github_backup_manager.utils.constants import ARCHIVE_FILE_SUFFIX, METADATA_FILE_NAME

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def read_artifact_state(path: Path) -> ArtifactState:
    """Stat a backup file, reporting its modification time as an aware UTC datetime."""
    try:
        stat_result = path.stat()
    except FileNotFoundError:
        return ArtifactState(exists=False)
    return ArtifactState(exists=True, last_modified=datetime.fromtimestamp(stat_result.st_mtime, tz=timezone.utc))


def read_local_artifact_state(archive_path: Path, metadata_path: Path) -> LocalArtifactState:
    """Read the state of both backup files of a repository."""
    return LocalArtifactState(archive=read_artifact_state(archive_path), metadata=read_artifact_state(metadata_path))


def is_stale(repository: RemoteRepository, artifact: ArtifactState) -> bool:
    """An artifact is stale when it is missing or older than the last remote update."""
    if not artifact.exists or artifact.last_modified is None:
        return True
    return repository.updated_at > artifact.last_modified


def evaluate_staleness(
    repository: RemoteRepository,
    local_state: LocalArtifactState,
    metadata_policy: MetadataStalenessPolicy = MetadataStalenessPolicy.TIMESTAMP,
) -> StalenessDecision:
    """Decide independently whether the archive and the metadata file need refreshing."""
    if metadata_policy == MetadataStalenessPolicy.ABSENT_ONLY:
        needs_metadata = not local_state.metadata.exists
    else:
        needs_metadata = is_stale(repository, local_state.metadata)
    return StalenessDecision(needs_archive=is_stale(repository, local_state.archive), needs_metadata=needs_metadata)


def backup_paths(destination: Path, repo_name: str) -> tuple[Path, Path, Path]:
    """Return the folder, archive path and metadata path of a repository backup."""
    repo_folder = destination / repo_name
    return repo_folder, repo_folder / f"{repo_name}{ARCHIVE_FILE_SUFFIX}", repo_folder / METADATA_FILE_NAME


async def plan_work_units(
    repositories: Iterable[RemoteRepository],
    destination: Path,
    metadata_policy: MetadataStalenessPolicy = MetadataStalenessPolicy.TIMESTAMP,
) -> tuple[list[WorkUnit], list[str]]:
    """Build a work unit for every repository with at least one stale backup file.

    Returns:
        The planned work units and the names of the repositories skipped
        because both of their backup files are up to date.
    """
    work_units: list[WorkUnit] = []
    skipped: list[str] = []
    for repository in repositories:
        repo_folder, archive_path, metadata_path = backup_paths(destination, repository.name)
        try:
            local_state = await asyncio.to_thread(read_local_artifact_state, archive_path, metadata_path)
        except OSError as exc:
            # The backup step reports the unreadable folder for this repository alone.
            logger.warning("Unable to read backup files, treating them as missing", repo=repository.name, error=str(exc))
            local_state = LocalArtifactState(archive=ArtifactState(exists=False), metadata=ArtifactState(exists=False))
        decision = evaluate_staleness(repository, local_state, metadata_policy)
        if not decision.needs_any:
            logger.debug("Backup is up to date", repo=repository.name)
            skipped.append(repository.name)
            continue
        logger.debug(
            "Backup needs refreshing",
            repo=repository.name,
            needs_archive=decision.needs_archive,
            needs_metadata=decision.needs_metadata,
        )
        work_units.append(
            WorkUnit(
                repository=repository,
                repo_folder=repo_folder,
                archive_path=archive_path,
                metadata_path=metadata_path,
                needs_archive=decision.needs_archive,
                needs_metadata=decision.needs_metadata,
                previous_archive_modified=local_state.archive.last_modified,
            )
        )
    return work_units, skipped
