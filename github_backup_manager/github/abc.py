"""Base ABC for GitHub catalog clients."""

from abc import ABC, abstractmethod
from typing import Any, Literal


class CatalogClientBase(ABC):
    """Base ABC for clients listing repositories, issues and issue comments.

    Every method returns the complete collection across all pages, as raw
    JSON objects in the order the server returned them.
    """

    @abstractmethod
    async def list_repositories(
        self,
        visibility: Literal["all", "public", "private"] = "all",
        affiliation: str = "owner",
    ) -> list[dict[str, Any]]:
        """List repositories of the authenticated identity."""
        pass

    @abstractmethod
    async def list_issues(self, owner: str, repo: str, state: Literal["open", "closed", "all"] = "all") -> list[dict[str, Any]]:
        """List issues of a repository."""
        pass

    @abstractmethod
    async def list_issue_comments(self, owner: str, repo: str) -> list[dict[str, Any]]:
        """List every issue comment of a repository."""
        pass
