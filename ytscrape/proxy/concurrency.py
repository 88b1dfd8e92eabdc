"""Fixed-width asyncio worker pool.

``limit`` worker coroutines pull the next index from a shared iterator and
write into their own result slot, so no two workers ever touch the same
output. A worker that raises leaves ``None`` in its slot and moves on.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


async def run_bounded(
    items: Sequence[T],
    limit: int,
    worker: Callable[[T, int], Awaitable[R]],
) -> list[R | None]:
    """Run ``worker(item, index)`` over *items* with at most *limit* in flight.

    Returns one result per input index; failed items yield ``None``.
    """
    results: list[R | None] = [None] * len(items)
    if not items:
        return results

    indexes = iter(range(len(items)))

    async def _runner(runner_id: int) -> None:
        for index in indexes:
            try:
                results[index] = await worker(items[index], index)
            except Exception as exc:  # noqa: BLE001
                logger.debug("Worker %d: item %d failed: %s", runner_id, index, exc)
                results[index] = None

    width = max(1, min(limit, len(items)))
    await asyncio.gather(*(_runner(i) for i in range(width)))
    return results
