"""Unit tests for orchestrating a complete backup run."""

import os
import zipfile
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from github_backup_manager.backup import driver
from github_backup_manager.backup.models import MetadataStalenessPolicy
from github_backup_manager.configuration.models import BackupConfig
from tests.unit.utils import TOKEN, FakeCatalogClient, raw_repository


async def fake_git(args: list[str], secret: str, timeout: float, cwd: Path | None = None, label: str = "repository") -> str:
    """Stand in for `git clone`, failing for repositories named `broken`."""
    clone_dir = Path(args[2])
    if clone_dir.name == "broken":
        raise RuntimeError(f"fatal: could not read from '{args[1]}'")
    (clone_dir / "README.md").write_text(f"# {clone_dir.name}\n")
    return ""


def make_client() -> FakeCatalogClient:
    return FakeCatalogClient(
        repositories=[raw_repository("alpha"), raw_repository("beta"), raw_repository("broken")],
        issues={"alpha": [{"number": 1, "title": "Bug"}]},
        comments={"alpha": [{"id": 3, "issue_url": "https://api.github.com/repos/octocat/alpha/issues/1"}]},
    )


@pytest.mark.asyncio
async def test_backup_repositories_end_to_end(tmp_path: Path) -> None:
    """Test a complete run: backups, a failure, an orphan and scratch cleanup."""
    (tmp_path / "deleted-repo").mkdir()
    client = make_client()

    with patch("github_backup_manager.backup.snapshot.run_git", side_effect=fake_git):
        summary = await driver.backup_repositories(client, TOKEN, tmp_path, concurrency=2)

    assert sorted(outcome.repo_name for outcome in summary.succeeded) == ["alpha", "beta"]
    assert [failure.repo_name for failure in summary.failed] == ["broken"]
    assert TOKEN not in summary.model_dump_json()
    assert summary.archived == ["deleted-repo"]
    assert summary.skipped == []
    assert summary.has_failures is True

    with zipfile.ZipFile(tmp_path / "alpha" / "alpha.zip") as zip_file:
        assert "alpha/README.md" in zip_file.namelist()
    assert (tmp_path / "alpha" / "github-issues.json").exists()
    assert (tmp_path / "archive" / "deleted-repo").is_dir()
    assert not (tmp_path / "tmp-repo-downloads").exists()
    assert client.calls[0] == ("list_repositories", "all", "owner")


@pytest.mark.asyncio
async def test_backup_repositories_skips_up_to_date(tmp_path: Path) -> None:
    """Test that a second run without remote changes does no work."""
    client = FakeCatalogClient(repositories=[raw_repository("alpha", "2024-01-01T00:00:00Z")])
    with patch("github_backup_manager.backup.snapshot.run_git", side_effect=fake_git) as mock_git:
        first = await driver.backup_repositories(client, TOKEN, tmp_path)
        second = await driver.backup_repositories(client, TOKEN, tmp_path)

    assert [outcome.repo_name for outcome in first.succeeded] == ["alpha"]
    assert second.succeeded == []
    assert second.skipped == ["alpha"]
    assert mock_git.await_count == 1


@pytest.mark.asyncio
async def test_backup_repositories_refreshes_changed_repository(tmp_path: Path) -> None:
    """Test that a repository updated after its backup is backed up again."""
    with patch("github_backup_manager.backup.snapshot.run_git", side_effect=fake_git):
        await driver.backup_repositories(FakeCatalogClient(repositories=[raw_repository("alpha")]), TOKEN, tmp_path)
        archive = tmp_path / "alpha" / "alpha.zip"
        old = datetime(2020, 1, 1, tzinfo=timezone.utc).timestamp()
        os.utime(archive, (old, old))

        summary = await driver.backup_repositories(
            FakeCatalogClient(repositories=[raw_repository("alpha")]),
            TOKEN,
            tmp_path,
            metadata_policy=MetadataStalenessPolicy.ABSENT_ONLY,
        )

    assert len(summary.succeeded) == 1
    outcome = summary.succeeded[0]
    assert outcome.archive_refreshed is True
    assert outcome.metadata_refreshed is False
    assert outcome.previous_archive_modified == datetime(2020, 1, 1, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_backup_repositories_catalog_failure_propagates(tmp_path: Path) -> None:
    """Test that failing to list repositories aborts the run and still cleans up."""
    client = FakeCatalogClient()
    client.repository_error = RuntimeError("catalog unavailable")
    (tmp_path / "old-backup").mkdir()

    with pytest.raises(RuntimeError, match="catalog unavailable"):
        await driver.backup_repositories(client, TOKEN, tmp_path)

    assert not (tmp_path / "tmp-repo-downloads").exists()
    # Nothing may be archived when the remote state is unknown.
    assert (tmp_path / "old-backup").is_dir()


@pytest.mark.asyncio
async def test_backup_repositories_clears_leftover_scratch(tmp_path: Path) -> None:
    """Test that leftovers of an interrupted run are removed."""
    leftover = tmp_path / "tmp-repo-downloads" / "half-cloned"
    leftover.mkdir(parents=True)

    summary = await driver.backup_repositories(FakeCatalogClient(), TOKEN, tmp_path)

    assert summary.succeeded == []
    assert not (tmp_path / "tmp-repo-downloads").exists()
    assert summary.archived == []


@pytest.mark.asyncio
async def test_backup_repositories_rejects_invalid_concurrency(tmp_path: Path) -> None:
    """Test that a concurrency below one is refused before touching the disk."""
    with pytest.raises(ValueError):
        await driver.backup_repositories(FakeCatalogClient(), TOKEN, tmp_path / "dest", concurrency=0)
    assert not (tmp_path / "dest").exists()


@pytest.mark.asyncio
async def test_sync_work_units_converts_unexpected_errors(tmp_path: Path) -> None:
    """Test that an exception escaping the pipeline becomes a redacted failure."""
    client = FakeCatalogClient(repositories=[raw_repository("alpha")])
    repositories = await driver.fetch_remote_repositories(client)
    work_units, _ = await driver.plan_work_units(repositories, tmp_path)
    pipeline = driver.SnapshotPipeline(client, TOKEN, tmp_path / "scratch")

    with patch.object(pipeline, "run", new=AsyncMock(side_effect=RuntimeError(f"leaked {TOKEN}"))):
        succeeded, failed = await driver.sync_work_units(work_units, pipeline, concurrency=5)

    assert succeeded == []
    assert failed[0].error == "leaked <token>"
    assert failed[0].masked_clone_url == "https://octocat:<token>@github.com/octocat/alpha.git"


@pytest.mark.asyncio
async def test_run_backup_workflow_uses_configuration(tmp_path: Path) -> None:
    """Test that the workflow builds an authenticated client and closes it."""
    config = BackupConfig(github_pat_token=TOKEN, destination=tmp_path, github_api_url="https://github.example.com/api/v3", concurrency=3)
    adapter = AsyncMock()
    adapter.__aenter__.return_value = adapter

    with (
        patch.object(driver.GitHubRestAdapter, "create", new=AsyncMock(return_value=adapter)) as mock_create,
        patch.object(driver, "backup_repositories", new=AsyncMock(return_value=driver.RunSummary())) as mock_backup,
    ):
        summary = await driver.run_backup_workflow(config)

    assert summary == driver.RunSummary()
    mock_create.assert_awaited_once_with(github_pat_token=TOKEN, github_api_url="https://github.example.com/api/v3")
    adapter.__aexit__.assert_awaited_once()
    kwargs = mock_backup.call_args.kwargs
    assert kwargs["token"] == TOKEN
    assert kwargs["concurrency"] == 3
    assert kwargs["github_web_url"] == "https://github.example.com"


@pytest.mark.asyncio
async def test_backup_repositories_isolates_unreadable_backup_folder(tmp_path: Path) -> None:
    """Test that a repository whose backup folder cannot be read fails alone."""
    # A plain file where the backup folder of alpha belongs.
    (tmp_path / "alpha").write_text("not a folder")
    client = FakeCatalogClient(repositories=[raw_repository("alpha"), raw_repository("beta")])

    with patch("github_backup_manager.backup.snapshot.run_git", side_effect=fake_git):
        summary = await driver.backup_repositories(client, TOKEN, tmp_path)

    assert [outcome.repo_name for outcome in summary.succeeded] == ["beta"]
    assert [failure.repo_name for failure in summary.failed] == ["alpha"]
    assert (tmp_path / "beta" / "beta.zip").exists()
    assert (tmp_path / "alpha").read_text() == "not a folder"
