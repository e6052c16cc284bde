"""Custom exceptions for the backup module."""


class GitCommandError(Exception):
    """Raised when a git command exits with a non-zero status."""

    def __init__(self, command: str, returncode: int, stderr: str) -> None:
        """Initializes the exception with the (already redacted) command and its output."""
        super().__init__(f"git {command} failed with exit code {returncode}: {stderr.strip()}")
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class SnapshotTimeoutError(Exception):
    """Raised when cloning or compressing a repository exceeds its timeout."""

    def __init__(self, step: str, repo_name: str, timeout: float) -> None:
        """Initializes the exception with the step that timed out."""
        super().__init__(f"{step} of {repo_name} did not finish within {timeout} seconds")
        self.step = step
        self.repo_name = repo_name
        self.timeout = timeout
