"""Fixtures for unit tests."""

from datetime import datetime, timezone
from typing import Callable, Generator

import pytest
import structlog

from github_backup_manager.backup.models import RemoteRepository
from tests.unit.utils import TOKEN


@pytest.fixture(autouse=True)
def configure_structlog_for_caplog() -> Generator[None, None, None]:
    """Configure structlog for use with caplog."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    yield
    structlog.reset_defaults()


@pytest.fixture
def token() -> str:
    """A recognizable fake GitHub token."""
    return TOKEN


@pytest.fixture
def make_repository() -> Callable[..., RemoteRepository]:
    """Factory for remote repositories with a given last update time."""

    def _make(name: str, updated_at: datetime | None = None, owner: str = "octocat") -> RemoteRepository:
        return RemoteRepository(
            name=name,
            owner_login=owner,
            html_url=f"https://github.com/{owner}/{name}",
            updated_at=updated_at or datetime(2024, 1, 1, tzinfo=timezone.utc),
        )

    return _make
