"""Unit tests for notevault.backend.core.concurrency."""

import contextvars
from unittest.mock import MagicMock, patch

import pytest
import structlog

import notevault.backend.core.concurrency as concurrency_module
from notevault.backend.core.concurrency import (
    TracedThreadPoolExecutor,
    get_io_pool,
    run_blocking,
    shutdown_pools,
)


@pytest.fixture(autouse=True)
def _reset_pools():
    """Reset global pool state before and after each test."""
    concurrency_module._io_pool = None
    yield
    if concurrency_module._io_pool is not None:
        concurrency_module._io_pool.shutdown(wait=False)
        concurrency_module._io_pool = None


def _mock_concurrency_config(thread_max=4, drain_seconds=5):
    mock_config = MagicMock()
    mock_config.concurrency.thread_pool.max_workers = thread_max
    mock_config.concurrency.shutdown.drain_seconds = drain_seconds
    return mock_config


class TestTracedThreadPoolExecutor:
    def test_propagates_contextvars(self):
        """Contextvars set in the caller should be visible in the worker thread."""
        test_var = contextvars.ContextVar("test_var", default="default")
        test_var.set("from_caller")

        executor = TracedThreadPoolExecutor(max_workers=1)
        try:
            assert executor.submit(test_var.get).result(timeout=5) == "from_caller"
        finally:
            executor.shutdown(wait=True)

    def test_propagates_structlog_context(self):
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id="test-123")

        executor = TracedThreadPoolExecutor(max_workers=1)
        try:
            context = executor.submit(structlog.contextvars.get_contextvars).result(timeout=5)
            assert context["request_id"] == "test-123"
        finally:
            executor.shutdown(wait=True)
            structlog.contextvars.clear_contextvars()


class TestIoPool:
    def test_created_lazily_from_config(self):
        with patch(
            "notevault.backend.core.config.get_app_config",
            return_value=_mock_concurrency_config(thread_max=3),
        ):
            pool = get_io_pool()

        assert pool._max_workers == 3
        assert get_io_pool() is pool

    @pytest.mark.asyncio
    async def test_run_blocking_returns_result(self):
        with patch(
            "notevault.backend.core.config.get_app_config",
            return_value=_mock_concurrency_config(),
        ):
            assert await run_blocking(sum, [1, 2, 3]) == 6

    @pytest.mark.asyncio
    async def test_shutdown_clears_pool(self):
        with patch(
            "notevault.backend.core.config.get_app_config",
            return_value=_mock_concurrency_config(),
        ):
            get_io_pool()
            await shutdown_pools()

        assert concurrency_module._io_pool is None

    @pytest.mark.asyncio
    async def test_shutdown_without_pool_is_noop(self):
        await shutdown_pools()

        assert concurrency_module._io_pool is None
