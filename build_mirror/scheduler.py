"""
Bounded worker pool for fetch-and-persist tasks.

A pool is created per run. It starts ``concurrency`` workers that pull
descriptors from a shared iterator, so a new task starts as soon as a running
one settles (sliding window). Every descriptor is attempted exactly once.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Iterator, Optional, Sequence, TypeVar

from build_mirror.ci_providers.models import DownloadObserver, NullObserver
from build_mirror.exceptions import MirrorConfigurationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BoundedWorkerPool:
    """Runs async tasks with at most ``concurrency`` in flight."""

    def __init__(self, concurrency: int):
        if concurrency < 1:
            raise MirrorConfigurationError(f"concurrency must be >= 1, got {concurrency}")
        self.concurrency = concurrency
        self.completed = 0
        self.failed = 0
        self.in_flight = 0
        self.peak_in_flight = 0
        self._first_error: Optional[BaseException] = None

    async def run(
        self,
        items: Sequence[T],
        task: Callable[[T], Awaitable[object]],
        observer: Optional[DownloadObserver] = None,
    ) -> int:
        """
        Run ``task`` once per item.

        Args:
            items: Ordered task descriptors (e.g. build ids)
            task: Coroutine function invoked with one descriptor
            observer: Notified with (completed, total) after each success

        Returns:
            Number of tasks that completed successfully

        Raises:
            The first task error, once every task has settled
        """
        observer = observer or NullObserver()
        total = len(items)
        self.completed = 0
        self.failed = 0
        self._first_error = None
        if total == 0:
            return 0

        pending = iter(items)
        workers = [
            asyncio.create_task(self._worker(pending, task, observer, total))
            for _ in range(min(self.concurrency, total))
        ]
        await asyncio.gather(*workers)

        if self._first_error is not None:
            logger.warning(
                f"{self.failed} of {total} tasks failed; "
                f"{self.completed} completed before the pool settled"
            )
            raise self._first_error
        return self.completed

    async def _worker(
        self,
        pending: Iterator[T],
        task: Callable[[T], Awaitable[object]],
        observer: DownloadObserver,
        total: int,
    ) -> None:
        # next() on a shared iterator is safe: workers only switch at await points
        for item in pending:
            self.in_flight += 1
            self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
            try:
                await task(item)
            except Exception as e:
                self.failed += 1
                if self._first_error is None:
                    self._first_error = e
                logger.debug(f"Task for {item!r} failed: {e}")
                continue
            finally:
                self.in_flight -= 1

            self.completed += 1
            self._notify(observer, total)

    def _notify(self, observer: DownloadObserver, total: int) -> None:
        try:
            observer.on_build_persisted(self.completed, total)
        except Exception as e:
            logger.warning(f"Progress observer raised, continuing: {e}")
