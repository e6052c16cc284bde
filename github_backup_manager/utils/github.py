"""Contains utility functions for GitHub interactions."""

from urllib.parse import urlsplit

from github_backup_manager.utils.constants import DEFAULT_GITHUB_WEB_URL
from github_backup_manager.utils.redaction import redact


def github_web_url_from_api_url(github_api_url: str) -> str:
    """Derive the web (clone) base URL of a GitHub instance from its API URL.

    e.g., "https://api.github.com" -> "https://github.com"
    or "https://github.example.com/api/v3" -> "https://github.example.com"
    """
    if "api.github.com" in github_api_url:
        return DEFAULT_GITHUB_WEB_URL
    # For GitHub Enterprise, remove /api/v3 suffix
    return github_api_url.rstrip("/").replace("/api/v3", "").replace("/api", "")


def build_clone_url(owner_login: str, repo_name: str, token: str, github_web_url: str = DEFAULT_GITHUB_WEB_URL) -> str:
    """Build an HTTPS clone URL carrying the owner login and token as credentials."""
    parts = urlsplit(github_web_url)
    scheme = parts.scheme or "https"
    host = parts.netloc or parts.path.strip("/")
    return f"{scheme}://{owner_login}:{token}@{host}/{owner_login}/{repo_name}.git"


def mask_clone_url(clone_url: str, token: str) -> str:
    """Return the clone URL with the token replaced by a placeholder."""
    return redact(clone_url, token)


def issue_number_from_url(issue_url: str | None) -> int | None:
    """Parse the issue number out of the trailing path segment of an issue URL.

    Returns None when the URL is missing or its last segment is not numeric.
    """
    if not issue_url:
        return None
    last_segment = issue_url.rstrip("/").rsplit("/", 1)[-1]
    if not last_segment.isascii() or not last_segment.isdigit():
        return None
    return int(last_segment)
