"""
Concurrency Infrastructure.

Thread pool for blocking I/O, created lazily on first access and cleaned
up during shutdown. The attachment store runs its file reads and writes
here so the event loop never blocks on disk.

Usage:
    from notevault.backend.core.concurrency import run_blocking

    data = await run_blocking(path.read_bytes)
"""

import asyncio
import contextvars
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any, TypeVar

from notevault.backend.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_io_pool: ThreadPoolExecutor | None = None


class TracedThreadPoolExecutor(ThreadPoolExecutor):
    """ThreadPoolExecutor that propagates contextvars to worker threads.

    Standard ThreadPoolExecutor does not carry structlog context or the
    request_id into worker threads. This subclass copies the current
    context before dispatching.
    """

    def submit(self, fn, /, *args, **kwargs):
        ctx = contextvars.copy_context()
        return super().submit(ctx.run, fn, *args, **kwargs)


def get_io_pool() -> TracedThreadPoolExecutor:
    """Get the shared thread pool for blocking I/O operations.

    Creates the pool lazily on first call using config from concurrency.yaml.
    """
    global _io_pool
    if _io_pool is None:
        from notevault.backend.core.config import get_app_config
        max_workers = get_app_config().concurrency.thread_pool.max_workers
        _io_pool = TracedThreadPoolExecutor(max_workers=max_workers)
        logger.info("Thread pool created", extra={"max_workers": max_workers})
    return _io_pool


async def run_blocking(fn: Callable[..., T], *args: Any) -> T:
    """Run a blocking callable on the shared I/O pool."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(get_io_pool(), fn, *args)


async def shutdown_pools() -> None:
    """Shut down the I/O pool gracefully. Called during application shutdown.

    Pool shutdown is blocking, so we run it in a thread to avoid stalling
    the event loop during graceful shutdown.
    """
    global _io_pool

    if _io_pool is not None:
        from notevault.backend.core.config import get_app_config
        drain_seconds = get_app_config().concurrency.shutdown.drain_seconds
        try:
            await asyncio.wait_for(
                asyncio.to_thread(_io_pool.shutdown, wait=True),
                timeout=drain_seconds,
            )
            logger.info("Thread pool shut down")
        except TimeoutError:
            logger.warning("Thread pool did not drain in time", extra={"drain_seconds": drain_seconds})
        _io_pool = None
