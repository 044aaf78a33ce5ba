"""
Cooperative cancellation for per-container units of work.

A CancelContext is a thread-safe cancellation token. Contexts form a tree:
cancelling a context cancels every context derived from it. The
CancellationRegistry maps a monitored container id to the context of the
start handling currently in flight for that container, so that a "die" event
can preempt it.
"""

import logging
import threading
import weakref
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

logger = logging.getLogger(__name__)


class CancelContext:
    """
    Cancellation token shared between the dispatcher and a unit of work.

    Work polls :attr:`cancelled` at safe points; nothing is interrupted.
    """

    def __init__(self, parent: Optional["CancelContext"] = None):
        self._event = threading.Event()
        self._lock = threading.Lock()
        # Weak so that finished children don't pile up under a long-lived root.
        self._children: "weakref.WeakSet[CancelContext]" = weakref.WeakSet()
        self.parent = parent
        if parent is not None:
            parent._attach(self)

    def _attach(self, child: "CancelContext") -> None:
        with self._lock:
            if not self._event.is_set():
                self._children.add(child)
                return
        child.cancel()

    def child(self) -> "CancelContext":
        """Derive a context cancelled together with this one."""
        return CancelContext(parent=self)

    def cancel(self) -> None:
        """Cancel this context and every context derived from it. Idempotent."""
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            children = list(self._children)
            self._children.clear()
        for child in children:
            child.cancel()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the context is cancelled or ``timeout`` seconds elapse.

        Returns:
            True if the context was cancelled
        """
        return self._event.wait(timeout)


class RWLock:
    """
    Readers-writer lock: shared for readers, exclusive for writers.

    Writers are preferred: once a writer waits, new readers queue behind it.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @contextmanager
    def read_lock(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write_lock(self) -> Iterator[None]:
        with self._cond:
            self._waiting_writers += 1
            while self._writer or self._readers:
                self._cond.wait()
            self._waiting_writers -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class CancellationRegistry:
    """
    Concurrency-safe mapping of monitored container id to the cancel handle
    of its in-flight start handling.

    Operations on unknown ids are no-ops.
    """

    def __init__(self):
        self._lock = RWLock()
        self._contexts: Dict[str, CancelContext] = {}

    def register(self, container_id: str, parent: CancelContext) -> CancelContext:
        """
        Derive a cancellable context from ``parent`` and store it under
        ``container_id``.

        If an entry already exists for the id it is kept and returned, so
        there is at most one live entry per id.
        """
        with self._lock.write_lock():
            existing = self._contexts.get(container_id)
            if existing is not None:
                logger.debug(f"Container {container_id} already has a registered context")
                return existing
            ctx = parent.child()
            self._contexts[container_id] = ctx
            return ctx

    def cancel(self, container_id: str) -> None:
        """Cancel and drop the entry for ``container_id`` if there is one."""
        with self._lock.write_lock():
            ctx = self._contexts.pop(container_id, None)
        if ctx is not None:
            ctx.cancel()
            logger.debug(f"Cancelled in-flight handling for container {container_id}")

    def remove(self, container_id: str) -> None:
        """Drop the entry for ``container_id`` without cancelling it."""
        with self._lock.write_lock():
            self._contexts.pop(container_id, None)

    def get(self, container_id: str) -> Optional[CancelContext]:
        with self._lock.read_lock():
            return self._contexts.get(container_id)

    def __contains__(self, container_id: str) -> bool:
        with self._lock.read_lock():
            return container_id in self._contexts

    def __len__(self) -> int:
        with self._lock.read_lock():
            return len(self._contexts)
