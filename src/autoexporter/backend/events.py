"""
Container event dispatcher.

A single loop consumes the runtime's container start/die events and hands
each one to the worker pool. Start handling resolves the container's exporters
and runs the startup pipeline for each of them; die handling cancels any
startup still in flight for the container, then tears its sidecars down.
"""

import logging
import queue
import time
from concurrent.futures import Future
from typing import Any, Callable, Dict, List, Optional

from ..classification import ExporterResolver
from ..errors import (
    AutoExporterError,
    ContainerNotFoundError,
    ExportedTaskStillRunningError,
    ExporterResolutionError,
)
from ..executor import CancelContext, CancellationRegistry, ManagedThreadPoolExecutor
from ..models import (
    Exporter,
    MonitoredTask,
    TaskEvent,
    TaskEventType,
    is_sidecar,
)
from ..models.labels import BOOKKEEPING_LABELS
from ..validation import simple_retry
from .startup import StartupPipeline
from .teardown import ExporterReconciler

logger = logging.getLogger(__name__)

ACTION_START = "start"
ACTION_DIE = "die"

# Attributes the daemon adds to event actors next to the container labels.
EVENT_ATTRIBUTES = ("name", "image", "exitCode", "signal")

EVENT_TYPES = {
    ACTION_START: TaskEventType.STARTED,
    ACTION_DIE: TaskEventType.STOPPED,
}


def task_from_event(event: Dict[str, Any]) -> MonitoredTask:
    """
    Build the task described by an event's actor, keeping only the
    container's own labels.
    """
    actor = event.get("Actor") or {}
    attributes = actor.get("Attributes") or {}
    labels = {
        key: value
        for key, value in attributes.items()
        if key not in EVENT_ATTRIBUTES and key not in BOOKKEEPING_LABELS
    }
    return MonitoredTask(
        id=actor.get("ID") or event.get("id", ""),
        name=attributes.get("name", ""),
        labels=labels,
        image=attributes.get("image", ""),
    )


class EventDispatcher:
    """
    Fan container events out to concurrent start/stop handling.

    Each unit of work is retried up to ``retry_attempts`` times with a fixed
    ``retry_delay``, then logged and dropped. One container's failures never
    affect another's.
    """

    def __init__(
        self,
        runtime,
        resolver: ExporterResolver,
        pipeline: StartupPipeline,
        reconciler: ExporterReconciler,
        executor: ManagedThreadPoolExecutor,
        registry: Optional[CancellationRegistry] = None,
        retry_attempts: int = 3,
        retry_delay: float = 5.0,
        task_events: Optional["queue.Queue[TaskEvent]"] = None,
    ):
        """
        Args:
            runtime: Container runtime adapter (see DockerRuntime)
            resolver: Resolves the exporters of a started container
            pipeline: Provisions one sidecar
            reconciler: Tears sidecars down
            executor: Started worker pool running the units of work
            registry: In-flight start handling per container id
            retry_attempts: Attempts per unit of work
            retry_delay: Seconds between two attempts
            task_events: If set, a TaskEvent is put there for every handled event
        """
        self.runtime = runtime
        self.resolver = resolver
        self.pipeline = pipeline
        self.reconciler = reconciler
        self.executor = executor
        self.registry = registry or CancellationRegistry()
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        self.task_events = task_events
        self._root: Optional[CancelContext] = None
        self._stream = None

    @classmethod
    def from_config(
        cls,
        runtime,
        resolver: ExporterResolver,
        executor: ManagedThreadPoolExecutor,
        daemon_config,
        task_events: Optional["queue.Queue[TaskEvent]"] = None,
    ) -> "EventDispatcher":
        return cls(
            runtime,
            resolver,
            pipeline=StartupPipeline.from_config(runtime, daemon_config),
            reconciler=ExporterReconciler.from_config(runtime, resolver, daemon_config),
            executor=executor,
            retry_attempts=daemon_config.retry_attempts,
            retry_delay=daemon_config.retry_delay,
            task_events=task_events,
        )

    def listen(self, parent: CancelContext, since: Optional[int] = None) -> None:
        """
        Consume container events until ``parent`` is cancelled or stop() is
        called.

        Args:
            parent: Context every start handling derives from
            since: Unix timestamp to replay events from, defaults to now

        Raises:
            AutoExporterError: If the stream ends without a shutdown request
            Exception: Any failure of the event subscription. It is not
                recoverable; the caller is expected to exit.
        """
        self._root = parent
        stream = self.runtime.events(since=since if since is not None else int(time.time()))
        self._stream = stream
        if parent.cancelled:
            # stop() ran before the stream was open.
            self.stop()
        logger.info("Listening for container events")

        try:
            for event in stream:
                if parent.cancelled:
                    break
                self.dispatch(parent, event)
            if not parent.cancelled:
                raise AutoExporterError("container event stream ended unexpectedly")
        except Exception:
            if parent.cancelled:
                logger.debug("Event stream closed on shutdown")
                return
            logger.critical("Container event subscription failed", exc_info=True)
            raise
        finally:
            self._stream = None

        logger.info("Stopped listening for container events")

    def stop(self) -> None:
        """Cancel every in-flight handling and unblock listen()."""
        if self._root is not None:
            self._root.cancel()
        stream = self._stream
        if stream is not None and hasattr(stream, "close"):
            stream.close()

    def dispatch(self, parent: CancelContext, event: Dict[str, Any]) -> Optional[Future]:
        """
        Handle one raw runtime event.

        Returns:
            The future of the launched unit of work, None if the event was
            discarded
        """
        actor = event.get("Actor") or {}
        attributes = actor.get("Attributes") or {}
        container_id = actor.get("ID") or event.get("id", "")
        action = event.get("Action") or event.get("status", "")

        if is_sidecar(attributes):
            return None
        if action not in (ACTION_START, ACTION_DIE):
            return None

        logger.debug(
            f"New container event received: event.type={event.get('Type')} "
            f"event.action={action} event.actor.id={container_id}"
        )

        handler: Callable[[], None]
        if action == ACTION_START:
            ctx = self.registry.register(container_id, parent)
            handler = lambda: self.handle_container_start(ctx, container_id)
        else:
            # Issued from the loop so that a start still in flight sees it
            # before the teardown below is scheduled.
            self.registry.cancel(container_id)
            handler = lambda: self.handle_container_stop(container_id)

        self._publish(action, event)
        return self.executor.submit(self._run_unit, container_id, action, handler)

    def _run_unit(self, container_id: str, action: str, handler: Callable[[], None]) -> None:
        try:
            simple_retry(
                handler,
                max_attempts=self.retry_attempts,
                delay=self.retry_delay,
                context=f"{action} handling of container {container_id}",
            )
        except Exception as e:
            logger.debug(f"Dropping {action} handling of container {container_id}: {e}", exc_info=True)
        finally:
            self.registry.remove(container_id)

    def handle_container_start(self, ctx: CancelContext, container_id: str) -> None:
        """Start the exporters of a freshly started container."""
        if ctx.cancelled:
            return

        try:
            container = self.runtime.inspect_container(container_id)
        except ContainerNotFoundError:
            logger.info(f"Container {container_id} died prematurely, exporter won't start.")
            return

        task = container.to_task()
        exporters = self._resolve(task)
        if not exporters:
            logger.info(
                f"No exporter name provided and no matching exporter found for "
                f"{task.name!r} ({task.id})."
            )
            return

        for exporter in exporters:
            logger.info(
                f"Starting exporter... exported.id={task.id} exported.name={task.name} "
                f"exporter.image={exporter.image}"
            )
            self.pipeline.run(ctx, exporter)

    def handle_container_stop(self, container_id: str) -> None:
        """Tear down the sidecars of a container that died."""
        for exporter in self.reconciler.find_associated_exporters(container_id):
            try:
                self.reconciler.stop_exporter(exporter, force=False)
            except ExportedTaskStillRunningError:
                logger.info(
                    f"Container {container_id} is running again, keeping exporter {exporter.name!r}"
                )

    def _resolve(self, task: MonitoredTask) -> List[Exporter]:
        try:
            return self.resolver.resolve(task)
        except ExporterResolutionError as e:
            logger.warning(f"Cannot resolve exporters of {task.name!r} ({task.id}): {e}")
            return []

    def _publish(self, action: str, event: Dict[str, Any]) -> None:
        if self.task_events is None:
            return
        task = task_from_event(event)
        self.task_events.put(
            TaskEvent(task=task, type=EVENT_TYPES[action], exporters=self._resolve(task))
        )
