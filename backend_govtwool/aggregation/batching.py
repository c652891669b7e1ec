"""Fixed-size batches run with asyncio.gather, separated by a pause."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Iterator, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")


def chunk(items: Sequence[T], size: int) -> Iterator[list[T]]:
    """Yield consecutive slices of at most `size` items, in order."""
    if size < 1:
        raise ValueError("size must be >= 1")
    for i in range(0, len(items), size):
        yield list(items[i : i + size])


async def run_batched(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[R]],
    *,
    batch_size: int,
    batch_delay_sec: float = 0.0,
) -> list[R]:
    """
    Run `worker` over items, one batch at a time.

    Items within a batch run concurrently; the next batch starts only after
    the previous one has fully joined and `batch_delay_sec` has elapsed.
    Results come back in input order. Worker exceptions propagate.
    """
    results: list[R] = []
    for index, batch in enumerate(chunk(items, batch_size)):
        if index > 0 and batch_delay_sec > 0:
            await asyncio.sleep(batch_delay_sec)
        results.extend(await asyncio.gather(*(worker(item) for item in batch)))
    return results
