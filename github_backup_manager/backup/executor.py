"""Runs independent asynchronous work with a fixed concurrency ceiling."""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Sequence, TypeVar

import structlog

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass
class Settled(Generic[T]):
    """The outcome of one unit of work: either a value or the exception it raised."""

    value: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        """Whether the work finished without raising."""
        return self.error is None


async def _call(thunk: Callable[[], Awaitable[T]]) -> T:
    """Await a thunk inside a coroutine so that synchronous raises are collected too."""
    return await thunk()


async def run_bounded(thunks: Sequence[Callable[[], Awaitable[T]]], concurrency: int) -> list[Settled[T]]:
    """Run thunks at most `concurrency` at a time and collect every outcome.

    The thunks are split into consecutive chunks of `concurrency`. All thunks
    of a chunk start together and the whole chunk settles before the next one
    starts. A failing thunk never cancels the others; its exception is
    returned in place of a value. Outcomes are returned in input order.
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be at least 1, got {concurrency}")

    settled: list[Settled[T]] = []
    for start in range(0, len(thunks), concurrency):
        chunk = thunks[start : start + concurrency]
        logger.debug("Starting batch", first=start, size=len(chunk), total=len(thunks))
        results = await asyncio.gather(*(_call(thunk) for thunk in chunk), return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                settled.append(Settled(error=result))
            elif isinstance(result, BaseException):
                raise result
            else:
                settled.append(Settled(value=result))
    return settled
