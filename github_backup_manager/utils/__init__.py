"""Utility modules for shared functionality."""

from .constants import (
    ARCHIVE_DIR_NAME,
    METADATA_FILE_NAME,
    REDACTED_PLACEHOLDER,
    RESERVED_DIR_NAMES,
    SCRATCH_DIR_NAME,
)
from .redaction import redact
from .retry import retry_on_rate_limit

__all__ = [
    "ARCHIVE_DIR_NAME",
    "METADATA_FILE_NAME",
    "REDACTED_PLACEHOLDER",
    "RESERVED_DIR_NAMES",
    "SCRATCH_DIR_NAME",
    "redact",
    "retry_on_rate_limit",
]
