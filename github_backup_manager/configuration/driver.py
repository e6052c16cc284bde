"""Synchronous driver for configuration reconciliation for the CLI entry point."""

import asyncio
from pathlib import Path

from github_backup_manager.backup.models import MetadataStalenessPolicy
from github_backup_manager.configuration import reconcile
from github_backup_manager.configuration.models import BackupConfig


def get_backup_config(
    destination: Path | None = None,
    github_pat_token: str | None = None,
    github_api_url: str | None = None,
    concurrency: int | None = None,
    metadata_staleness: MetadataStalenessPolicy | None = None,
    clone_timeout: float | None = None,
    archive_timeout: float | None = None,
    debug: bool | None = None,
) -> BackupConfig:
    """Synchronously get the reconciled backup configuration."""
    return asyncio.run(
        reconcile.reconcile_backup_configuration(
            cli_destination=destination,
            cli_github_pat_token=github_pat_token,
            cli_github_api_url=github_api_url,
            cli_concurrency=concurrency,
            cli_metadata_staleness=metadata_staleness,
            cli_clone_timeout=clone_timeout,
            cli_archive_timeout=archive_timeout,
            cli_debug=debug,
        )
    )
