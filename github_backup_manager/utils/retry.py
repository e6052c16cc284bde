"""Retry decorator for GitHub API rate limits.

Only rate limit responses are retried. Every other failure propagates to the
caller unchanged so that a failing page fetch stays fatal for its query.
"""

import asyncio
import functools
import inspect
import time
from typing import Any, Awaitable, Callable, Mapping, TypeVar

import httpx
import structlog

logger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def _is_rate_limit_failure(response: httpx.Response) -> bool:
    """Whether a failed request was rejected because of a rate limit."""
    if response.status_code == 429:
        return True
    if response.status_code != 403:
        return False
    if response.headers.get("x-ratelimit-remaining") == "0":
        return True
    return "rate limit" in response.text.lower()


def _wait_time_from_headers(headers: Mapping[str, str], fallback: float) -> float:
    """Compute how long to wait from retry-after or x-ratelimit-reset headers."""
    retry_after = headers.get("retry-after")
    if retry_after:
        try:
            return float(retry_after)
        except ValueError:
            logger.warning("Invalid retry-after header value", retry_after=retry_after)
    rate_limit_reset = headers.get("x-ratelimit-reset")
    if rate_limit_reset:
        try:
            seconds_until_reset = int(rate_limit_reset) - int(time.time())
        except ValueError:
            logger.warning("Invalid x-ratelimit-reset header value", rate_limit_reset=rate_limit_reset)
        else:
            if seconds_until_reset > 0:
                return float(seconds_until_reset + 1)
    return fallback


def retry_on_rate_limit(
    max_retries: int = 10,
    initial_delay: float = 10.0,
    max_delay: float = 300.0,
    exponential_base: float = 2.0,
) -> Callable[[F], F]:
    """Decorator retrying an async GitHub call while it is being rate limited.

    Args:
        max_retries: Maximum number of retry attempts (default: 10)
        initial_delay: Delay in seconds used when GitHub gives no hint (default: 10.0)
        max_delay: Upper bound for any single wait in seconds (default: 300.0)
        exponential_base: Growth factor of the fallback delay (default: 2.0)

    Returns:
        Decorated function with retry logic

    Example:
        @retry_on_rate_limit()
        async def fetch_page(page: int) -> httpx.Response:
            response = await client.get("/user/repos", params={"page": page})
            response.raise_for_status()
            return response
    """

    def decorator(func: F) -> F:
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"Function {func.__name__} decorated with @retry_on_rate_limit must be async.")

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            delay = initial_delay
            attempt = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except httpx.HTTPStatusError as exc:
                    if not _is_rate_limit_failure(exc.response):
                        raise
                    if attempt >= max_retries:
                        logger.error(
                            "Max retries reached for GitHub rate limit",
                            function=func.__name__,
                            attempts=attempt + 1,
                            status_code=exc.response.status_code,
                        )
                        raise
                    wait_time = min(_wait_time_from_headers(exc.response.headers, delay), max_delay)

                logger.warning(
                    "GitHub rate limit exceeded, waiting before retrying",
                    function=func.__name__,
                    attempt=attempt + 1,
                    max_retries=max_retries,
                    wait_time=wait_time,
                )
                await asyncio.sleep(wait_time)
                delay = min(delay * exponential_base, max_delay)
                attempt += 1

        return wrapper  # type: ignore

    return decorator
