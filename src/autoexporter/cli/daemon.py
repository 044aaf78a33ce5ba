"""
Daemon runner for CLI integration.

This module wires the configuration, the Docker adapter and the backend
components together and runs the event listener until a shutdown is requested.
"""

import logging
import threading
from typing import Optional

from ..backend import DockerRuntime, EventDispatcher, ExporterReconciler, StartupPipeline
from ..classification import ExporterCatalog, ExporterResolver
from ..executor import CancelContext, ManagedThreadPoolExecutor, ThreadPoolConfig
from ..models import AppConfig
from ..validation import ErrorSeverity, handle_error

logger = logging.getLogger(__name__)


def build_resolver(app_config: AppConfig) -> ExporterResolver:
    """Resolver backed by the configured exporter catalog."""
    return ExporterResolver(ExporterCatalog.from_config(app_config))


class ExporterDaemon:
    """
    Main daemon runner, coordinating reconciliation and event handling.

    The listener runs in the calling thread. Periodic reconciliation, when
    enabled, runs in a background thread sharing the daemon's root context.
    """

    def __init__(self, app_config: AppConfig, runtime: DockerRuntime):
        """
        Args:
            app_config: Loaded application configuration
            runtime: Container runtime adapter
        """
        self.app_config = app_config
        self.daemon_config = app_config.daemon
        self.runtime = runtime
        self.resolver = build_resolver(app_config)
        self.pipeline = StartupPipeline.from_config(runtime, self.daemon_config)
        self.reconciler = ExporterReconciler.from_config(runtime, self.resolver, self.daemon_config)

        # Runtime state
        self.root = CancelContext()
        self.executor: Optional[ManagedThreadPoolExecutor] = None
        self.dispatcher: Optional[EventDispatcher] = None
        self._reconcile_thread: Optional[threading.Thread] = None

    def run(self) -> bool:
        """
        Run the daemon until request_shutdown() is called.

        Returns:
            True on a requested shutdown, False if the event subscription
            failed or the event stream ended on its own
        """
        self.executor = ManagedThreadPoolExecutor(
            ThreadPoolConfig(
                max_workers=self.daemon_config.max_workers,
                thread_name_prefix=self.daemon_config.thread_name_prefix,
            )
        )
        self.executor.start()

        try:
            self.dispatcher = EventDispatcher(
                self.runtime,
                self.resolver,
                pipeline=self.pipeline,
                reconciler=self.reconciler,
                executor=self.executor,
                retry_attempts=self.daemon_config.retry_attempts,
                retry_delay=self.daemon_config.retry_delay,
            )

            if self.daemon_config.reconcile_on_startup:
                self.reconcile()

            if self.daemon_config.reconcile_interval > 0:
                self._reconcile_thread = threading.Thread(
                    target=self._reconcile_periodically,
                    name="Reconciler",
                    daemon=True,
                )
                self._reconcile_thread.start()

            if self.root.cancelled:
                return True

            self.dispatcher.listen(self.root)
            return True

        except Exception as e:
            logger.error(f"Event listener stopped unexpectedly: {e}", exc_info=True)
            return False
        finally:
            self._cleanup()

    def request_shutdown(self) -> None:
        """Request shutdown of the daemon; safe to call from a signal handler."""
        self.root.cancel()
        if self.dispatcher is not None:
            self.dispatcher.stop()

    def reconcile(self) -> None:
        """Start the exporters that should be running but aren't."""
        logger.info("Reconciling exporters with running containers")
        try:
            failures = self.reconciler.provision_missing(self.root, self.pipeline)
        except Exception as e:
            handle_error(
                error=e,
                context="reconciling exporters",
                severity=ErrorSeverity.ERROR,
                reraise=False,
                logger=logger,
            )
            return

        if failures:
            logger.warning(f"{len(failures)} missing exporters failed to start: {', '.join(failures)}")

    def _reconcile_periodically(self) -> None:
        interval = self.daemon_config.reconcile_interval
        while not self.root.wait(interval):
            self.reconcile()

    def _cleanup(self) -> None:
        self.root.cancel()
        if self.executor is not None:
            logger.info("Waiting for in-flight exporter operations to finish")
            self.executor.shutdown(wait=True, cancel_futures=True)
        if self._reconcile_thread is not None:
            self._reconcile_thread.join(timeout=self.daemon_config.stop_timeout)
