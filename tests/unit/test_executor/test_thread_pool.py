"""
Unit tests for the managed thread pool.

Tests the thread pool configuration, lifecycle management and task
statistics.
"""

import threading

import pytest

from autoexporter.executor.thread_pool import (
    ManagedThreadPoolExecutor,
    ThreadPoolConfig,
)


@pytest.mark.unit
class TestThreadPoolConfig:
    """Test cases for ThreadPoolConfig."""

    def test_thread_pool_config_defaults(self):
        """Test ThreadPoolConfig default values."""
        config = ThreadPoolConfig()

        assert config.max_workers == 8
        assert config.thread_name_prefix == "ExporterWorker"

    def test_thread_pool_config_custom_values(self):
        """Test ThreadPoolConfig with custom values."""
        config = ThreadPoolConfig(max_workers=2, thread_name_prefix="CustomWorker")

        assert config.max_workers == 2
        assert config.thread_name_prefix == "CustomWorker"


@pytest.mark.unit
class TestManagedThreadPoolExecutor:
    """Test cases for ManagedThreadPoolExecutor."""

    def test_managed_thread_pool_initialization(self):
        """Test ManagedThreadPoolExecutor initialization."""
        config = ThreadPoolConfig(max_workers=2)
        executor = ManagedThreadPoolExecutor(config)

        assert executor.config == config
        assert executor.executor is None
        assert executor.is_shutdown is False
        assert executor.stats["tasks_submitted"] == 0

    def test_submit_before_start_raises(self):
        executor = ManagedThreadPoolExecutor()

        with pytest.raises(RuntimeError, match="not started"):
            executor.submit(lambda: None)

    def test_double_start_raises(self):
        executor = ManagedThreadPoolExecutor(ThreadPoolConfig(max_workers=1))
        executor.start()
        try:
            with pytest.raises(RuntimeError, match="already started"):
                executor.start()
        finally:
            executor.shutdown()

    def test_submit_runs_on_named_worker(self):
        with ManagedThreadPoolExecutor(ThreadPoolConfig(max_workers=2, thread_name_prefix="TestWorker")) as executor:
            future = executor.submit(lambda: threading.current_thread().name)
            assert future.result(timeout=5.0).startswith("TestWorker")

    def test_stats_count_completed_and_failed(self):
        def boom():
            raise ValueError("boom")

        executor = ManagedThreadPoolExecutor(ThreadPoolConfig(max_workers=2))
        executor.start()
        ok = executor.submit(lambda: 42)
        failed = executor.submit(boom)

        assert ok.result(timeout=5.0) == 42
        with pytest.raises(ValueError):
            failed.result(timeout=5.0)
        executor.shutdown(wait=True)

        stats = executor.get_stats()
        assert stats["tasks_submitted"] == 2
        assert stats["tasks_completed"] == 1
        assert stats["tasks_failed"] == 1
        assert stats["is_shutdown"] is True

    def test_submit_after_shutdown_raises(self):
        executor = ManagedThreadPoolExecutor(ThreadPoolConfig(max_workers=1))
        executor.start()
        executor.shutdown()

        with pytest.raises(RuntimeError):
            executor.submit(lambda: None)

    def test_shutdown_is_idempotent(self):
        executor = ManagedThreadPoolExecutor(ThreadPoolConfig(max_workers=1))
        executor.start()
        executor.shutdown()
        executor.shutdown()

        assert executor.is_shutdown is True
