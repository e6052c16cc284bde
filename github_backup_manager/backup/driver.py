"""Orchestrates a complete backup run of the repositories of a GitHub account."""

import asyncio
import functools
import shutil
import time
from pathlib import Path

import structlog

from github_backup_manager.backup.executor import run_bounded
from github_backup_manager.backup.models import MetadataStalenessPolicy, RemoteRepository, WorkUnit
from github_backup_manager.backup.reconcile import archive_orphaned_backups
from github_backup_manager.backup.results import BackupFailed, BackupSucceeded, RunSummary
from github_backup_manager.backup.snapshot import SnapshotPipeline
from github_backup_manager.backup.staleness import plan_work_units
from github_backup_manager.configuration.models import BackupConfig
from github_backup_manager.github.abc import CatalogClientBase
from github_backup_manager.github.adapter import GitHubRestAdapter
from github_backup_manager.utils.constants import (
    DEFAULT_ARCHIVE_TIMEOUT,
    DEFAULT_CLONE_TIMEOUT,
    DEFAULT_CONCURRENCY,
    DEFAULT_GITHUB_WEB_URL,
    SCRATCH_DIR_NAME,
)
from github_backup_manager.utils.github import build_clone_url, github_web_url_from_api_url, mask_clone_url
from github_backup_manager.utils.redaction import redact_exception

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


async def fetch_remote_repositories(client: CatalogClientBase) -> list[RemoteRepository]:
    """Fetch every repository owned by the authenticated identity."""
    raw_repositories = await client.list_repositories(visibility="all", affiliation="owner")
    return [RemoteRepository.from_api(raw) for raw in raw_repositories]


async def prepare_scratch_dir(scratch_dir: Path) -> None:
    """Remove whatever a previous, interrupted run left behind and recreate the directory."""
    await asyncio.to_thread(shutil.rmtree, scratch_dir, True)
    await asyncio.to_thread(scratch_dir.mkdir, parents=True)


async def sync_work_units(work_units: list[WorkUnit], pipeline: SnapshotPipeline, concurrency: int) -> tuple[list[BackupSucceeded], list[BackupFailed]]:
    """Back up every work unit with bounded concurrency and split the outcomes."""
    settled = await run_bounded([functools.partial(pipeline.run, unit) for unit in work_units], concurrency)

    succeeded: list[BackupSucceeded] = []
    failed: list[BackupFailed] = []
    for work_unit, outcome in zip(work_units, settled):
        if outcome.error is not None:
            # The pipeline converts its own failures, so this is unexpected.
            repository = work_unit.repository
            clone_url = build_clone_url(repository.owner_login, repository.name, pipeline.token, pipeline.github_web_url)
            failed.append(
                BackupFailed(
                    repo_name=repository.name,
                    masked_clone_url=mask_clone_url(clone_url, pipeline.token),
                    error=redact_exception(outcome.error, pipeline.token),
                )
            )
        elif isinstance(outcome.value, BackupFailed):
            failed.append(outcome.value)
        elif isinstance(outcome.value, BackupSucceeded):
            succeeded.append(outcome.value)
    return succeeded, failed


async def backup_repositories(
    client: CatalogClientBase,
    token: str,
    destination: Path,
    concurrency: int = DEFAULT_CONCURRENCY,
    metadata_policy: MetadataStalenessPolicy = MetadataStalenessPolicy.TIMESTAMP,
    clone_timeout: float = DEFAULT_CLONE_TIMEOUT,
    archive_timeout: float = DEFAULT_ARCHIVE_TIMEOUT,
    github_web_url: str = DEFAULT_GITHUB_WEB_URL,
) -> RunSummary:
    """Back up all repositories of the authenticated identity into destination.

    Each repository gets its own folder holding a zip archive of a full clone
    and a JSON file of its issues with their comments. Repositories whose
    files are newer than their last remote update are skipped. Afterwards,
    folders of repositories that no longer exist are moved into the archive
    directory.

    Only a failure to fetch the repository list is raised; every other
    failure is reported in the returned summary.
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be at least 1, got {concurrency}")
    start_time = time.time()
    destination = destination.resolve()
    await asyncio.to_thread(destination.mkdir, parents=True, exist_ok=True)
    scratch_dir = destination / SCRATCH_DIR_NAME

    logger.info("Getting directories ready", destination=str(destination))
    await prepare_scratch_dir(scratch_dir)
    try:
        logger.info("Fetching repositories")
        repositories = await fetch_remote_repositories(client)

        work_units, skipped = await plan_work_units(repositories, destination, metadata_policy)
        logger.info(
            "Planned repository backups",
            repository_count=len(repositories),
            work_unit_count=len(work_units),
            skipped_count=len(skipped),
        )

        pipeline = SnapshotPipeline(
            client,
            token,
            scratch_dir,
            github_web_url=github_web_url,
            clone_timeout=clone_timeout,
            archive_timeout=archive_timeout,
        )
        logger.info("Cloning, zipping, and saving repositories", concurrency=concurrency)
        succeeded, failed = await sync_work_units(work_units, pipeline, concurrency)
    finally:
        await asyncio.to_thread(shutil.rmtree, scratch_dir, True)

    logger.info("Archiving backups without a GitHub repository")
    report = await archive_orphaned_backups(destination, {repository.name for repository in repositories})

    duration = round(time.time() - start_time, 2)
    logger.info(
        "Finished backup run",
        duration=duration,
        succeeded=len(succeeded),
        failed=len(failed),
        skipped=len(skipped),
        archived=len(report.archived),
    )
    return RunSummary(
        succeeded=succeeded,
        failed=failed,
        archived=report.archived,
        archive_failures=report.failures,
        skipped=skipped,
        duration=duration,
    )


async def run_backup_workflow(config: BackupConfig) -> RunSummary:
    """Run a backup with an authenticated GitHub client built from configuration."""
    async with await GitHubRestAdapter.create(github_pat_token=config.github_pat_token, github_api_url=config.github_api_url) as client:
        return await backup_repositories(
            client,
            token=config.github_pat_token,
            destination=config.destination,
            concurrency=config.concurrency,
            metadata_policy=config.metadata_staleness,
            clone_timeout=config.clone_timeout,
            archive_timeout=config.archive_timeout,
            github_web_url=github_web_url_from_api_url(config.github_api_url),
        )


async def run_plan_workflow(config: BackupConfig) -> tuple[list[WorkUnit], list[str]]:
    """Report which repositories a backup run would refresh, without writing anything."""
    async with await GitHubRestAdapter.create(github_pat_token=config.github_pat_token, github_api_url=config.github_api_url) as client:
        repositories = await fetch_remote_repositories(client)
    return await plan_work_units(repositories, config.destination.resolve(), config.metadata_staleness)
