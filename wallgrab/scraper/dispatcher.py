from __future__ import annotations

import asyncio
from collections import Counter
from typing import Iterator, List, Optional, Sequence

from .browser import PageSession
from .config import ScrapeSettings
from .download_task import DownloadTask, TaskOutcome
from .logging_utils import _scraper_event
from .retry_policy import Sleeper
from .utils import log_line


def iter_batches(start: int, end: int, size: int) -> Iterator[List[int]]:
    """Yield consecutive chunks of at most ``size`` IDs from ``[start, end]``."""

    if size < 1:
        raise ValueError("batch size must be at least 1")
    current = start
    while current <= end:
        upper = min(end, current + size - 1)
        yield list(range(current, upper + 1))
        current = upper + 1


class BatchDispatcher:
    """Sweep an ID range in batches sized to the worker-slot pool.

    ID *i* of every batch runs on slot *i*. A batch is a barrier: the next one
    is not dispatched until every task in the current one has settled.
    """

    def __init__(
        self,
        settings: ScrapeSettings,
        slots: Sequence[PageSession],
        task: DownloadTask,
        *,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        if not slots:
            raise ValueError("at least one worker slot is required")
        self.settings = settings
        self.slots = list(slots)
        self.task = task
        self._sleep = sleep

    @property
    def batch_size(self) -> int:
        return len(self.slots)

    async def run_batch(self, ids: Sequence[int]) -> List[TaskOutcome]:
        if len(ids) > self.batch_size:
            raise ValueError(f"batch of {len(ids)} exceeds pool size {self.batch_size}")
        return list(
            await asyncio.gather(
                *(self.task.run(image_id, self.slots[i]) for i, image_id in enumerate(ids))
            )
        )

    async def run(self, start: Optional[int] = None, end: Optional[int] = None) -> int:
        """Process the whole range and return the number of batches run."""

        start = self.settings.start_id if start is None else start
        end = self.settings.end_id if end is None else end
        if start is None or end is None:
            raise ValueError("an ID range is required")

        log_line(f"Scraping IDs {start}..{end} with {self.batch_size} worker tab(s)")
        batches = 0
        for ids in iter_batches(start, end, self.batch_size):
            if batches:
                await self._sleep(self.settings.batch_delay_seconds)
            batches += 1
            outcomes = await self.run_batch(ids)
            counts = Counter(outcome.value for outcome in outcomes)
            _scraper_event(
                "batch",
                batch=batches,
                first_id=ids[0],
                last_id=ids[-1],
                **dict(sorted(counts.items())),
            )

        log_line(f"Finished sweeping IDs {start}..{end} in {batches} batch(es)")
        return batches


__all__ = ["BatchDispatcher", "iter_batches"]
