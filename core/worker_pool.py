"""
core/worker_pool.py -- Fixed-size thread pool for blocking storage calls.

Route handlers are coroutines on the event loop. Store methods are plain
synchronous SQLAlchemy calls that block on I/O. WorkerPool runs each store
call on one of N dedicated threads and hands the result back to the awaiting
coroutine, so a slow query never stalls unrelated requests.

Usage:
    pool = WorkerPool(size=5)
    user = await pool.run(user_store.get_by_email, "a@example.com")
    pool.shutdown()

Callers queue when all workers are busy. The executor's internal queue is
unbounded; there is no backpressure signal beyond request latency.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, TypeVar

logger = logging.getLogger("notevault.pool")

T = TypeVar("T")


class WorkerPool:
    """Async front door to a ThreadPoolExecutor of fixed size."""

    def __init__(self, size: int = 5) -> None:
        if size < 1:
            raise ValueError("WorkerPool size must be at least 1.")
        self.size = size
        self._executor = ThreadPoolExecutor(max_workers=size, thread_name_prefix="db-worker")
        logger.info("Worker pool started (%d threads)", size)

    async def run(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Execute fn(*args, **kwargs) on a worker thread and await its result.

        Exceptions raised by fn propagate unchanged to the awaiting caller.
        """
        loop = asyncio.get_running_loop()
        call = functools.partial(fn, *args, **kwargs)
        return await loop.run_in_executor(self._executor, call)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)
        logger.info("Worker pool stopped")
