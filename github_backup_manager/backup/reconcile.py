"""Moves backups without a remote repository into the archive directory."""

import asyncio
import shutil
from pathlib import Path
from typing import Collection

import structlog

from github_backup_manager.backup.results import ArchiveFailure, ArchiveReport
from github_backup_manager.utils.constants import ARCHIVE_DIR_NAME, RESERVED_DIR_NAMES

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def find_orphaned_backups(destination: Path, remote_names: Collection[str], reserved_names: Collection[str] = RESERVED_DIR_NAMES) -> list[Path]:
    """List backup folders of the destination that match no remote repository."""
    return sorted(
        entry
        for entry in destination.iterdir()
        if entry.is_dir() and entry.name not in reserved_names and entry.name not in remote_names
    )


def move_to_archive(folder: Path, archive_dir: Path) -> Path:
    """Move a backup folder into the archive directory, refusing to overwrite."""
    target = archive_dir / folder.name
    if target.exists():
        raise FileExistsError(f"{target} already exists")
    shutil.move(str(folder), str(target))
    return target


async def archive_orphaned_backups(
    destination: Path,
    remote_names: Collection[str],
    reserved_names: Collection[str] = RESERVED_DIR_NAMES,
) -> ArchiveReport:
    """Quarantine every backup folder whose repository no longer exists remotely.

    Folders are moved, never deleted. A folder that cannot be moved is
    reported and the remaining folders are still processed.
    """
    archive_dir = destination / ARCHIVE_DIR_NAME
    await asyncio.to_thread(archive_dir.mkdir, parents=True, exist_ok=True)

    report = ArchiveReport()
    orphaned = await asyncio.to_thread(find_orphaned_backups, destination, remote_names, reserved_names)
    for folder in orphaned:
        target = archive_dir / folder.name
        try:
            await asyncio.to_thread(move_to_archive, folder, archive_dir)
        except OSError as exc:
            logger.error("Unable to move backup into the archive", source=str(folder), destination=str(target), error=str(exc))
            report.failures.append(ArchiveFailure(folder_name=folder.name, source=folder, destination=target, error=str(exc)))
            continue
        logger.info("Archived backup without a GitHub repository", folder=folder.name)
        report.archived.append(folder.name)
    return report
