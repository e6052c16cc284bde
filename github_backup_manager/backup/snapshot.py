"""Backs up a single repository: a full-history archive plus its issue conversations.

Only one archive per repository is kept. A clone carries the complete git
history, so replacing the archive on every change loses nothing.
"""

import asyncio
import json
import os
import shutil
from pathlib import Path
from typing import Any, Iterable

import structlog

from github_backup_manager.backup.exceptions import GitCommandError, SnapshotTimeoutError
from github_backup_manager.backup.models import WorkUnit
from github_backup_manager.backup.results import BackupFailed, BackupOutcome, BackupSucceeded
from github_backup_manager.github.abc import CatalogClientBase
from github_backup_manager.utils.constants import (
    ARCHIVE_FILE_SUFFIX,
    DEFAULT_ARCHIVE_TIMEOUT,
    DEFAULT_CLONE_TIMEOUT,
    DEFAULT_GITHUB_WEB_URL,
)
from github_backup_manager.utils.github import build_clone_url, issue_number_from_url, mask_clone_url
from github_backup_manager.utils.redaction import redact, redact_exception

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


async def run_git(args: list[str], secret: str, timeout: float, cwd: Path | None = None, label: str = "repository") -> str:
    """Run a git command as a subprocess and return its standard output.

    The secret is removed from the output carried by any raised error. When
    the command outlives the timeout, the process is killed.

    Raises:
        GitCommandError: If git exits with a non-zero status.
        SnapshotTimeoutError: If git does not finish within the timeout.
    """
    process = await asyncio.create_subprocess_exec(
        "git",
        *args,
        cwd=cwd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        # Never wait for interactive credentials.
        env={**os.environ, "GIT_TERMINAL_PROMPT": "0"},
    )
    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        raise SnapshotTimeoutError(f"git {args[0]}", label, timeout) from None
    if process.returncode != 0:
        raise GitCommandError(args[0], process.returncode or -1, redact(stderr.decode(errors="replace"), secret))
    return stdout.decode(errors="replace")


def create_zip_archive(source_dir: Path, archive_path: Path) -> Path:
    """Compress source_dir into archive_path.

    Entries are stored relative to the parent of source_dir, so the archive
    unpacks into a single folder named after it.
    """
    created = shutil.make_archive(str(archive_path.with_suffix("")), "zip", root_dir=source_dir.parent, base_dir=source_dir.name)
    return Path(created)


def replace_file(new_file: Path, target: Path) -> None:
    """Move a fully written file over target, deleting the previous target first."""
    if target.exists():
        target.unlink()
    shutil.move(str(new_file), str(target))


def group_comments_by_issue(comments: Iterable[dict[str, Any]]) -> dict[int, list[dict[str, Any]]]:
    """Group comments by the issue number at the end of their `issue_url`.

    Comments keep their fetch order within each group. Comments whose issue
    URL does not end in a number are left out.
    """
    comments_by_issue: dict[int, list[dict[str, Any]]] = {}
    for comment in comments:
        issue_number = issue_number_from_url(comment.get("issue_url"))
        if issue_number is None:
            logger.debug("Skipping comment without an issue number", comment_id=comment.get("id"))
            continue
        comments_by_issue.setdefault(issue_number, []).append(comment)
    return comments_by_issue


def attach_conversations(issues: Iterable[dict[str, Any]], comments_by_issue: dict[int, list[dict[str, Any]]]) -> list[dict[str, Any]]:
    """Return copies of the issues with their comments under a `conversation` key."""
    return [{**issue, "conversation": comments_by_issue.get(issue["number"], [])} for issue in issues]


def write_json(path: Path, data: Any) -> None:
    """Write data as indented UTF-8 JSON, replacing any previous file."""
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")


class SnapshotPipeline:
    """Refreshes the stale backup files of one repository at a time.

    `run` never raises for ordinary errors: they are returned as a
    `BackupFailed` outcome whose text no longer contains the token.
    """

    def __init__(
        self,
        client: CatalogClientBase,
        token: str,
        scratch_dir: Path,
        github_web_url: str = DEFAULT_GITHUB_WEB_URL,
        clone_timeout: float = DEFAULT_CLONE_TIMEOUT,
        archive_timeout: float = DEFAULT_ARCHIVE_TIMEOUT,
    ) -> None:
        """Initialize the pipeline with the catalog client, token and scratch directory."""
        self.client = client
        self.token = token
        self.scratch_dir = scratch_dir
        self.github_web_url = github_web_url
        self.clone_timeout = clone_timeout
        self.archive_timeout = archive_timeout

    def clone_url(self, work_unit: WorkUnit) -> str:
        """Authenticated clone URL of the repository of a work unit."""
        repository = work_unit.repository
        return build_clone_url(repository.owner_login, repository.name, self.token, self.github_web_url)

    async def run(self, work_unit: WorkUnit) -> BackupOutcome:
        """Refresh the stale backup files of a work unit."""
        repository = work_unit.repository
        clone_url = self.clone_url(work_unit)
        try:
            await asyncio.to_thread(work_unit.repo_folder.mkdir, parents=True, exist_ok=True)
            if work_unit.needs_archive:
                await self.refresh_archive(work_unit, clone_url)
            if work_unit.needs_metadata:
                await self.refresh_metadata(work_unit)
        except Exception as exc:
            error = redact_exception(exc, self.token)
            logger.warning("Repository backup failed", repo=repository.name, error=error, error_type=type(exc).__name__)
            return BackupFailed(
                repo_name=repository.name,
                masked_clone_url=mask_clone_url(clone_url, self.token),
                error=error,
            )

        return BackupSucceeded(
            repo_name=repository.name,
            repo_url=repository.html_url,
            archive_path=work_unit.archive_path,
            metadata_path=work_unit.metadata_path,
            repo_updated_at=repository.updated_at,
            previous_archive_modified=work_unit.previous_archive_modified,
            archive_refreshed=work_unit.needs_archive,
            metadata_refreshed=work_unit.needs_metadata,
        )

    async def refresh_archive(self, work_unit: WorkUnit, clone_url: str) -> None:
        """Clone the repository with full history and replace its archive.

        The previous archive is only removed once the new one is completely
        written, so a failed clone or compression keeps the last good archive.
        """
        name = work_unit.repository.name
        clone_dir = self.scratch_dir / name
        temp_archive = self.scratch_dir / f"{name}{ARCHIVE_FILE_SUFFIX}"
        if clone_dir.exists():
            await asyncio.to_thread(shutil.rmtree, clone_dir)
        await asyncio.to_thread(clone_dir.mkdir, parents=True)

        logger.debug("Cloning repository", repo=name)
        await run_git(["clone", clone_url, str(clone_dir)], secret=self.token, timeout=self.clone_timeout, label=name)

        logger.debug("Compressing repository", repo=name)
        # The compression timeout is advisory: a worker thread cannot be
        # interrupted, so the unit fails and stops waiting while the thread
        # runs to completion. Whatever it leaves in the scratch directory is
        # cleared when the next run prepares it.
        try:
            await asyncio.wait_for(asyncio.to_thread(create_zip_archive, clone_dir, temp_archive), timeout=self.archive_timeout)
        except asyncio.TimeoutError:
            raise SnapshotTimeoutError("compression", name, self.archive_timeout) from None

        await asyncio.to_thread(replace_file, temp_archive, work_unit.archive_path)
        await asyncio.to_thread(shutil.rmtree, clone_dir, True)
        logger.info("Backed up repository archive", repo=name, archive_path=str(work_unit.archive_path))

    async def refresh_metadata(self, work_unit: WorkUnit) -> None:
        """Fetch issues and comments, join them and rewrite the metadata file."""
        repository = work_unit.repository
        issues_task = asyncio.create_task(self.client.list_issues(repository.owner_login, repository.name, state="all"))
        comments_task = asyncio.create_task(self.client.list_issue_comments(repository.owner_login, repository.name))
        try:
            issues, comments = await asyncio.gather(issues_task, comments_task)
        except BaseException:
            # A failed fetch fails the unit, so the other one must not outlive it.
            for task in (issues_task, comments_task):
                task.cancel()
            await asyncio.gather(issues_task, comments_task, return_exceptions=True)
            raise
        issues_with_conversations = attach_conversations(issues, group_comments_by_issue(comments))
        await asyncio.to_thread(write_json, work_unit.metadata_path, issues_with_conversations)
        logger.info(
            "Backed up repository issues",
            repo=repository.name,
            issue_count=len(issues),
            comment_count=len(comments),
        )
