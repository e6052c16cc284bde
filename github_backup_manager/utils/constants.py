"""Shared constants used across the application."""

# Destination Layout Constants
# ----------------------------

SCRATCH_DIR_NAME = "tmp-repo-downloads"
"""Scratch directory (inside the destination) used for clones during a run."""

ARCHIVE_DIR_NAME = "archive"
"""Directory (inside the destination) that quarantines backups without a remote repository."""

RESERVED_DIR_NAMES = frozenset({SCRATCH_DIR_NAME, ARCHIVE_DIR_NAME})
"""Destination subdirectories that never correspond to a repository."""

METADATA_FILE_NAME = "github-issues.json"
"""File holding the issues (with their conversations) of a repository."""

ARCHIVE_FILE_SUFFIX = ".zip"
"""Suffix of the compressed snapshot of a repository."""

# Backup Run Constants
# --------------------

DEFAULT_CONCURRENCY = 5
"""Default number of repositories backed up at the same time."""

DEFAULT_CLONE_TIMEOUT = 1800.0
"""Default number of seconds a single clone may take."""

DEFAULT_ARCHIVE_TIMEOUT = 1800.0
"""Default number of seconds compressing a single clone may take."""

# GitHub API Constants
# --------------------

DEFAULT_GITHUB_API_URL = "https://api.github.com"

DEFAULT_GITHUB_WEB_URL = "https://github.com"

PER_PAGE = 100
"""Page size requested from every paginated GitHub endpoint (GitHub's maximum)."""

# Redaction Constants
# -------------------

REDACTED_PLACEHOLDER = "<token>"
"""Replacement for the access token wherever it would otherwise be shown."""
