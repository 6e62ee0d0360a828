"""Async utilities for bounded concurrent fetching."""

import asyncio
from typing import Any, Coroutine, List, Sequence, TypeVar

T = TypeVar("T")


async def run_with_concurrency(
    tasks: List[Coroutine],
    max_concurrent: int = 5,
    return_exceptions: bool = False,
) -> List[Any]:
    """Run coroutines with semaphore-controlled concurrency, preserving order."""
    semaphore = asyncio.Semaphore(max_concurrent)

    async def limited(coro):
        async with semaphore:
            return await coro

    return await asyncio.gather(
        *[limited(t) for t in tasks],
        return_exceptions=return_exceptions,
    )


def chunked(items: Sequence[T], size: int) -> list[list[T]]:
    """Split a sequence into lists of at most ``size`` items."""
    if size < 1:
        raise ValueError(f"chunk size must be positive, got {size}")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]
