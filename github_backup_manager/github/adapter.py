"""GitHub catalog client adapter for the GitHub REST API."""

from types import TracebackType
from typing import Any, Literal, Self

import httpx
import structlog

from github_backup_manager.utils.constants import DEFAULT_GITHUB_API_URL, PER_PAGE
from github_backup_manager.utils.retry import retry_on_rate_limit

from .abc import CatalogClientBase
from .client import GitHubClient, get_github_pat_client
from .pagination import paginate

logger = structlog.get_logger(__name__)

ISSUES_DISABLED_STATUS = 410
"""Status GitHub answers issue endpoints with when a repository has issues disabled."""


class GitHubRestAdapter(CatalogClientBase):
    """GitHub catalog client adapter over an authenticated httpx client."""

    def __init__(self, client: GitHubClient, per_page: int = PER_PAGE) -> None:
        """Initialize the adapter with an already-authenticated client."""
        self.client = client
        self.per_page = per_page

    @classmethod
    async def create(cls, github_pat_token: str, github_api_url: str = DEFAULT_GITHUB_API_URL) -> Self:
        """Create a new adapter authenticated with a personal access token.

        Args:
            github_pat_token: Personal access token
            github_api_url: GitHub API URL (defaults to https://api.github.com)

        Returns:
            Configured GitHubRestAdapter instance
        """
        logger.info("Creating client for GitHub instance", github_api_url=github_api_url)
        client = await get_github_pat_client(github_pat_token, github_api_url)
        return cls(client)

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client and its connections."""
        await self.client.aclose()

    @retry_on_rate_limit()
    async def _get(self, path: str, **params: Any) -> httpx.Response:
        """GET one page of a REST endpoint, raising on an error status."""
        response = await self.client.get(path, params=params)
        response.raise_for_status()
        return response

    async def list_repositories(
        self,
        visibility: Literal["all", "public", "private"] = "all",
        affiliation: str = "owner",
    ) -> list[dict[str, Any]]:
        """List all repositories of the authenticated user, handling pagination.

        The repository endpoint does not always advertise a `next` relation,
        so the `last` relation of the first page bounds the page loop.
        """

        async def _fetch_page(page: int) -> httpx.Response:
            return await self._get("/user/repos", visibility=visibility, affiliation=affiliation, per_page=self.per_page, page=page)

        logger.info("Fetching repositories for authenticated user", visibility=visibility, affiliation=affiliation)
        repositories = await paginate(_fetch_page, bound_by_last_page=True, description="repositories")
        logger.info("Fetched all repositories for authenticated user", total_repos=len(repositories))
        return repositories

    async def list_issues(self, owner: str, repo: str, state: Literal["open", "closed", "all"] = "all") -> list[dict[str, Any]]:
        """List all issues of a repository, handling pagination.

        GitHub reports pull requests as issues too; they are kept, as the
        comment listing includes their conversation as well. A repository
        with issues disabled has no issues.
        """

        async def _fetch_page(page: int) -> httpx.Response:
            return await self._get(f"/repos/{owner}/{repo}/issues", state=state, per_page=self.per_page, page=page)

        try:
            issues = await paginate(_fetch_page, description=f"issues of {owner}/{repo}")
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code != ISSUES_DISABLED_STATUS:
                raise
            logger.info("Issues are disabled for repository", owner=owner, repo=repo)
            return []
        logger.debug("Fetched all issues", owner=owner, repo=repo, total_issues=len(issues))
        return issues

    async def list_issue_comments(self, owner: str, repo: str) -> list[dict[str, Any]]:
        """List all issue comments of a repository, handling pagination."""

        async def _fetch_page(page: int) -> httpx.Response:
            return await self._get(f"/repos/{owner}/{repo}/issues/comments", per_page=self.per_page, page=page)

        try:
            comments = await paginate(_fetch_page, description=f"issue comments of {owner}/{repo}")
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code != ISSUES_DISABLED_STATUS:
                raise
            logger.info("Issues are disabled for repository", owner=owner, repo=repo)
            return []
        logger.debug("Fetched all issue comments", owner=owner, repo=repo, total_comments=len(comments))
        return comments
