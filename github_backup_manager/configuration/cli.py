"""Defines the Command Line Interface (CLI) using Typer."""

import asyncio
from pathlib import Path

import typer
from dotenv import load_dotenv
from typer import Argument, Option
from typing_extensions import Annotated

from github_backup_manager.backup.driver import run_backup_workflow, run_plan_workflow
from github_backup_manager.backup.models import MetadataStalenessPolicy
from github_backup_manager.backup.results import RunSummary
from github_backup_manager.configuration.driver import get_backup_config
from github_backup_manager.configuration.exceptions import (
    GitHubAuthenticationConfigurationUndefinedError,
    InvalidConfigurationElementError,
    RequiredConfigurationElementError,
)
from github_backup_manager.configuration.models import BackupConfig
from github_backup_manager.utils.logging_config import configure_logging
from github_backup_manager.utils.redaction import redact_exception

load_dotenv()

typer_app = typer.Typer(pretty_exceptions_show_locals=False, help="Back up GitHub repositories and their issues to local storage.")

DestinationArgument = Annotated[
    Path | None,
    Argument(help="Directory holding one backup folder per repository. Falls back to the DESTINATION environment variable."),
]
GitHubPatTokenOption = Annotated[
    str | None,
    Option(help="GitHub Personal Access Token. Falls back to GITHUB_PAT_TOKEN, then to git config credential.password."),
]
GitHubApiUrlOption = Annotated[str | None, Option(help="GitHub API URL. Falls back to GITHUB_API_URL.")]
MetadataStalenessOption = Annotated[
    MetadataStalenessPolicy | None,
    Option(help="When to refresh the issues file: whenever the repository changed, or only when the file is missing."),
]
DebugOption = Annotated[bool | None, Option("--debug/--no-debug", help="Enable debug logging.")]


def load_config(json_logs: bool = False, **cli_values: object) -> BackupConfig:
    """Reconcile configuration for a command, exiting with a message on invalid configuration."""
    try:
        config = get_backup_config(**cli_values)  # type: ignore[arg-type]
    except (
        RequiredConfigurationElementError,
        GitHubAuthenticationConfigurationUndefinedError,
        InvalidConfigurationElementError,
    ) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1) from exc
    configure_logging(debug=config.debug, json_logs=json_logs)
    return config


def echo_run_summary(summary: RunSummary) -> None:
    """Print a human readable run summary."""
    typer.echo(f"{len(summary.succeeded)} repos backed up in {summary.duration:.2f}s!")
    if summary.skipped:
        typer.echo(f"{len(summary.skipped)} repos already up to date")
    for outcome in summary.succeeded:
        refreshed = [label for label, flag in (("archive", outcome.archive_refreshed), ("issues", outcome.metadata_refreshed)) if flag]
        typer.echo(f"  💾 {outcome.repo_name} ({', '.join(refreshed)})")
    if summary.archived:
        typer.echo(f"{len(summary.archived)} backups archived:")
        for folder_name in summary.archived:
            typer.echo(f"  📦 {folder_name}")
    if summary.failed:
        typer.echo("Failures:", err=True)
        for failure in summary.failed:
            typer.echo(f"  - {failure.repo_name} ({failure.masked_clone_url}): {failure.error}", err=True)
    if summary.archive_failures:
        typer.echo("Unable to archive:", err=True)
        for archive_failure in summary.archive_failures:
            typer.echo(f"  FROM - {archive_failure.source}", err=True)
            typer.echo(f"  TO   - {archive_failure.destination}", err=True)
            typer.echo(f"  {archive_failure.error}", err=True)


@typer_app.command(name="backup")
def backup_cli(
    destination: DestinationArgument = None,
    github_pat_token: GitHubPatTokenOption = None,
    github_api_url: GitHubApiUrlOption = None,
    concurrency: Annotated[int | None, Option(help="Number of repositories backed up at the same time.")] = None,
    metadata_staleness: MetadataStalenessOption = None,
    clone_timeout: Annotated[float | None, Option(help="Seconds a single clone may take.")] = None,
    archive_timeout: Annotated[float | None, Option(help="Seconds compressing a single clone may take.")] = None,
    json_output: Annotated[bool, Option("--json", help="Print the run summary as JSON.")] = False,
    debug: DebugOption = None,
) -> None:
    """Back up every repository owned by the authenticated user, then archive backups of deleted repositories."""
    config = load_config(
        json_logs=json_output,
        destination=destination,
        github_pat_token=github_pat_token,
        github_api_url=github_api_url,
        concurrency=concurrency,
        metadata_staleness=metadata_staleness,
        clone_timeout=clone_timeout,
        archive_timeout=archive_timeout,
        debug=debug,
    )
    typer.echo("Starting GitHub backup...", err=True)
    try:
        summary = asyncio.run(run_backup_workflow(config))
    except Exception as exc:
        typer.echo(f"Process failed: {redact_exception(exc, config.github_pat_token)}", err=True)
        raise typer.Exit(1) from None

    if json_output:
        typer.echo(summary.model_dump_json(indent=2))
    else:
        echo_run_summary(summary)
    if summary.has_failures:
        raise typer.Exit(1)


@typer_app.command(name="plan")
def plan_cli(
    destination: DestinationArgument = None,
    github_pat_token: GitHubPatTokenOption = None,
    github_api_url: GitHubApiUrlOption = None,
    metadata_staleness: MetadataStalenessOption = None,
    debug: DebugOption = None,
) -> None:
    """Show which repositories a backup would refresh, without writing anything."""
    config = load_config(
        destination=destination,
        github_pat_token=github_pat_token,
        github_api_url=github_api_url,
        metadata_staleness=metadata_staleness,
        debug=debug,
    )
    try:
        work_units, skipped = asyncio.run(run_plan_workflow(config))
    except Exception as exc:
        typer.echo(f"Process failed: {redact_exception(exc, config.github_pat_token)}", err=True)
        raise typer.Exit(1) from None

    typer.echo(f"{len(work_units)} repos need a backup, {len(skipped)} are up to date")
    for work_unit in work_units:
        refreshed = [label for label, flag in (("archive", work_unit.needs_archive), ("issues", work_unit.needs_metadata)) if flag]
        typer.echo(f"  - {work_unit.repository.name} ({', '.join(refreshed)})")


if __name__ == "__main__":
    typer_app()
