"""Reconciles configuration between CLI arguments and environment variables."""

import asyncio
import subprocess
from pathlib import Path

import structlog

from github_backup_manager.backup.models import MetadataStalenessPolicy
from github_backup_manager.configuration.env import Settings, get_settings
from github_backup_manager.configuration.exceptions import (
    GitHubAuthenticationConfigurationUndefinedError,
    InvalidConfigurationElementError,
    RequiredConfigurationElementError,
)
from github_backup_manager.configuration.models import BackupConfig

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def read_git_credential_password() -> str | None:
    """Read the password stored in the global git configuration, if any.

    This is where the token lives on hosts that already use it for git over HTTPS.
    """
    try:
        result = subprocess.run(["git", "config", "--get", "credential.password"], capture_output=True, text=True, check=False)
    except OSError:
        return None
    password = result.stdout.strip()
    return password or None


async def resolve_github_token(cli_github_pat_token: str | None, env_github_pat_token: str | None, use_git_credential: bool = True) -> str:
    """Resolve the GitHub token from the CLI, then the environment, then git configuration.

    Raises:
        GitHubAuthenticationConfigurationUndefinedError: If no token could be found.
    """
    if cli_github_pat_token:
        return cli_github_pat_token
    if env_github_pat_token:
        return env_github_pat_token
    if use_git_credential:
        logger.info("Getting GitHub token from global git config")
        password = await asyncio.to_thread(read_git_credential_password)
        if password:
            return password
    raise GitHubAuthenticationConfigurationUndefinedError(
        "No GitHub token provided. Please provide --github-pat-token, the GITHUB_PAT_TOKEN environment variable, "
        "or a credential.password entry in the global git config."
    )


async def reconcile_backup_configuration(
    cli_destination: Path | None = None,
    cli_github_pat_token: str | None = None,
    cli_github_api_url: str | None = None,
    cli_concurrency: int | None = None,
    cli_metadata_staleness: MetadataStalenessPolicy | None = None,
    cli_clone_timeout: float | None = None,
    cli_archive_timeout: float | None = None,
    cli_debug: bool | None = None,
    settings: Settings | None = None,
    use_git_credential: bool = True,
) -> BackupConfig:
    """Merge CLI values over environment values into a validated backup configuration.

    Raises:
        RequiredConfigurationElementError: If no destination directory is configured.
        GitHubAuthenticationConfigurationUndefinedError: If no token could be found.
        InvalidConfigurationElementError: If a numeric setting is out of range.
    """
    settings = settings or get_settings()

    destination = cli_destination or settings.DESTINATION
    if destination is None:
        raise RequiredConfigurationElementError(name="Destination directory", cli_name="DESTINATION", env_name="DESTINATION")

    concurrency = cli_concurrency if cli_concurrency is not None else settings.BACKUP_CONCURRENCY
    if concurrency < 1:
        raise InvalidConfigurationElementError("concurrency", concurrency, "must be at least 1")

    clone_timeout = cli_clone_timeout if cli_clone_timeout is not None else settings.CLONE_TIMEOUT
    archive_timeout = cli_archive_timeout if cli_archive_timeout is not None else settings.ARCHIVE_TIMEOUT
    for name, timeout in (("clone_timeout", clone_timeout), ("archive_timeout", archive_timeout)):
        if timeout <= 0:
            raise InvalidConfigurationElementError(name, timeout, "must be greater than 0")

    token = await resolve_github_token(cli_github_pat_token, settings.GITHUB_PAT_TOKEN, use_git_credential=use_git_credential)

    return BackupConfig(
        github_pat_token=token,
        destination=Path(destination),
        github_api_url=cli_github_api_url or settings.GITHUB_API_URL,
        concurrency=concurrency,
        metadata_staleness=cli_metadata_staleness or settings.METADATA_STALENESS,
        clone_timeout=clone_timeout,
        archive_timeout=archive_timeout,
        debug=cli_debug if cli_debug is not None else settings.DEBUG,
    )
