"""Unit tests for the configuration driver module."""

from pathlib import Path
from unittest.mock import AsyncMock, patch

from github_backup_manager.backup.models import MetadataStalenessPolicy
from github_backup_manager.configuration import driver
from github_backup_manager.configuration.models import BackupConfig
from tests.unit.utils import TOKEN


def test_get_backup_config_returns_reconciled_config() -> None:
    """Test that get_backup_config passes command line values through and returns the config."""
    fake_config = BackupConfig(github_pat_token=TOKEN, destination=Path("/backups"), concurrency=2)
    with patch(
        "github_backup_manager.configuration.reconcile.reconcile_backup_configuration",
        new=AsyncMock(return_value=fake_config),
    ) as mock_reconcile:
        result = driver.get_backup_config(
            destination=Path("/backups"),
            github_pat_token=TOKEN,
            concurrency=2,
            metadata_staleness=MetadataStalenessPolicy.ABSENT_ONLY,
        )

    assert result == fake_config
    mock_reconcile.assert_awaited_once_with(
        cli_destination=Path("/backups"),
        cli_github_pat_token=TOKEN,
        cli_github_api_url=None,
        cli_concurrency=2,
        cli_metadata_staleness=MetadataStalenessPolicy.ABSENT_ONLY,
        cli_clone_timeout=None,
        cli_archive_timeout=None,
        cli_debug=None,
    )
