"""Shared helpers for unit tests."""

from typing import Any

from github_backup_manager.github.abc import CatalogClientBase

TOKEN = "ghp_superSecretToken123"


class FakeCatalogClient(CatalogClientBase):
    """An in-memory catalog client recording the calls made to it."""

    def __init__(
        self,
        repositories: list[dict[str, Any]] | None = None,
        issues: dict[str, list[dict[str, Any]]] | None = None,
        comments: dict[str, list[dict[str, Any]]] | None = None,
    ) -> None:
        """Initialize the fake with raw JSON objects keyed by repository name."""
        self.repositories = repositories or []
        self.issues = issues or {}
        self.comments = comments or {}
        self.calls: list[tuple[str, ...]] = []
        self.repository_error: Exception | None = None
        self.issue_errors: dict[str, Exception] = {}

    async def list_repositories(self, visibility: str = "all", affiliation: str = "owner") -> list[dict[str, Any]]:
        self.calls.append(("list_repositories", visibility, affiliation))
        if self.repository_error is not None:
            raise self.repository_error
        return list(self.repositories)

    async def list_issues(self, owner: str, repo: str, state: str = "all") -> list[dict[str, Any]]:
        self.calls.append(("list_issues", owner, repo, state))
        if repo in self.issue_errors:
            raise self.issue_errors[repo]
        return list(self.issues.get(repo, []))

    async def list_issue_comments(self, owner: str, repo: str) -> list[dict[str, Any]]:
        self.calls.append(("list_issue_comments", owner, repo))
        return list(self.comments.get(repo, []))


def raw_repository(name: str, updated_at: str | None = "2024-01-01T00:00:00Z", owner: str = "octocat") -> dict[str, Any]:
    """Build a repository object shaped like the GitHub REST API returns it."""
    return {
        "name": name,
        "full_name": f"{owner}/{name}",
        "owner": {"login": owner},
        "html_url": f"https://github.com/{owner}/{name}",
        "updated_at": updated_at,
    }
