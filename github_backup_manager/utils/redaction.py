"""Helpers that keep the access token out of logs, errors and results."""

from github_backup_manager.utils.constants import REDACTED_PLACEHOLDER


def redact(text: str, secret: str | None, placeholder: str = REDACTED_PLACEHOLDER) -> str:
    """Replace every occurrence of secret in text with a placeholder.

    An empty or missing secret leaves the text unchanged, since replacing an
    empty string would interleave the placeholder between every character.
    """
    if not secret:
        return text
    return text.replace(secret, placeholder)


def redact_exception(exc: BaseException, secret: str | None) -> str:
    """Render an exception as text with the secret removed.

    Falls back to the exception type name when the exception has no message.
    """
    message = str(exc) or type(exc).__name__
    return redact(message, secret)
