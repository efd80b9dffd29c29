"""Off-loop execution of frame decodes and sticker renders.

``OverlayRenderer.render`` and the OpenCV decode/encode around it are
synchronous and CPU bound. Route handlers hand them to a ``RenderPool``,
which bounds how many run at once with an ``asyncio.Semaphore`` in front
of a same-sized ``ThreadPoolExecutor``. Every request decodes its upload
into a fresh surface, so workers never draw on a shared array; the only
state they share is the renderer's image cache, which locks itself.

A request that cannot get a worker within ``SEMAPHORE_TIMEOUT_SECONDS``
fails with ``TimeoutError``, which the API reports as 503. The running and
waiting counts are what ``/health`` publishes.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from stickerx.config import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

SEMAPHORE_TIMEOUT_SECONDS: float = 5.0


class RenderPool:
    """Bounded worker pool for one app's render requests."""

    def __init__(self, settings: Settings) -> None:
        self._workers = settings.max_concurrent
        self._semaphore = asyncio.Semaphore(self._workers)
        self._executor = ThreadPoolExecutor(
            max_workers=self._workers,
            thread_name_prefix="overlay-render",
        )
        self._running: int = 0
        self._waiting: int = 0
        self._counter_lock = threading.Lock()

    async def run(self, func: Callable[..., T], *args: object) -> T:
        """Run ``func(*args)`` on a render worker and await its result.

        Raises:
            TimeoutError: If every worker stays busy for the whole timeout.
        """
        async with self._worker_slot():
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(self._executor, func, *args)

    @asynccontextmanager
    async def _worker_slot(self) -> AsyncIterator[None]:
        with self._counter_lock:
            self._waiting += 1
        try:
            await asyncio.wait_for(self._semaphore.acquire(), timeout=SEMAPHORE_TIMEOUT_SECONDS)
        except TimeoutError:
            logger.warning(
                "All %d render workers busy for %.1fs, rejecting request",
                self._workers,
                SEMAPHORE_TIMEOUT_SECONDS,
            )
            raise
        finally:
            with self._counter_lock:
                self._waiting -= 1

        with self._counter_lock:
            self._running += 1
        try:
            yield
        finally:
            self._semaphore.release()
            with self._counter_lock:
                self._running -= 1

    @property
    def active_count(self) -> int:
        """Decodes and renders executing on a worker right now."""
        with self._counter_lock:
            return self._running

    @property
    def queue_depth(self) -> int:
        """Requests parked on the semaphore, waiting for a worker."""
        with self._counter_lock:
            return self._waiting

    def shutdown(self) -> None:
        """Wait for in-flight renders, then stop the workers."""
        self._executor.shutdown(wait=True)
