# This file is intended to hold the setup for the authenticated GitHub HTTP client.

"""Sets up the authenticated httpx client for the GitHub REST API."""

from typing import TypeAlias

import httpx

from github_backup_manager.utils.constants import DEFAULT_GITHUB_API_URL

GitHubClient: TypeAlias = httpx.AsyncClient

GITHUB_API_VERSION = "2022-11-28"

DEFAULT_TIMEOUT = httpx.Timeout(30.0, connect=10.0)


async def get_github_pat_client(github_pat_token: str, github_api_url: str = DEFAULT_GITHUB_API_URL) -> GitHubClient:
    """Returns an authenticated GitHub client using GitHub PAT credentials.

    Supports custom base URL for GitHub Enterprise Server (GHES).
    Raises RuntimeError if no token is given.
    """
    if not github_pat_token:
        raise RuntimeError("GitHub PAT authentication requires github_pat_token in config.")
    return httpx.AsyncClient(
        base_url=github_api_url.rstrip("/"),
        headers={
            "Authorization": f"Bearer {github_pat_token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
            "User-Agent": "github-backup-manager",
        },
        timeout=DEFAULT_TIMEOUT,
        follow_redirects=True,
    )
