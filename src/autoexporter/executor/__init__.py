"""
Concurrency primitives for the autoexporter package.

This module provides the worker pool running per-container units of work and
the cancellation registry used to preempt in-flight sidecar startups.
"""

from .cancellation import CancelContext, CancellationRegistry, RWLock
from .thread_pool import ManagedThreadPoolExecutor, ThreadPoolConfig

__all__ = [
    "CancelContext",
    "CancellationRegistry",
    "RWLock",
    "ManagedThreadPoolExecutor",
    "ThreadPoolConfig",
]
