"""
Sidecar teardown and reconciliation.

Sidecars are found through their labels and deterministic names only; the
runtime's container list is the single source of truth.
"""

import logging
from typing import Dict, List, Optional

from ..classification import ExporterResolver
from ..errors import (
    AmbiguousExporterError,
    CleanupError,
    ContainerNotFoundError,
    ExportedTaskStillRunningError,
    ExporterNotFoundError,
    ExporterResolutionError,
)
from ..executor import CancelContext
from ..models import LABEL_EXPORTED_ID, Exporter, RunningExporter, is_sidecar
from .startup import StartupPipeline

logger = logging.getLogger(__name__)


class ExporterReconciler:
    """
    Stop sidecars and detect the ones that should run but don't.
    """

    def __init__(
        self,
        runtime,
        resolver: ExporterResolver,
        monitoring_network: str,
        stop_timeout: Optional[int] = None,
    ):
        self.runtime = runtime
        self.resolver = resolver
        self.monitoring_network = monitoring_network
        self.stop_timeout = stop_timeout

    @classmethod
    def from_config(cls, runtime, resolver: ExporterResolver, daemon_config) -> "ExporterReconciler":
        return cls(
            runtime,
            resolver,
            monitoring_network=daemon_config.monitoring_network,
            stop_timeout=daemon_config.stop_timeout,
        )

    def stop_exporter(self, exporter: RunningExporter, force: bool = False) -> None:
        """
        Disconnect, stop and remove a sidecar.

        Unless ``force`` is set, the sidecar is left alone while the container
        it monitors is running.

        Raises:
            ExportedTaskStillRunningError: If the monitored container is
                running and force is False
        """
        exported = None
        if exporter.exported_id:
            try:
                exported = self.runtime.inspect_container(exporter.exported_id)
            except ContainerNotFoundError:
                logger.debug(f"Exported container {exporter.exported_id} is already gone")

        if exported is not None and exported.running and not force:
            raise ExportedTaskStillRunningError(exporter.container_id, exporter.exported_id)

        self.runtime.disconnect_network(self.monitoring_network, exporter.container_id, force=force)
        self.runtime.stop_container(exporter.container_id, timeout=self.stop_timeout)
        self.runtime.remove_container(exporter.container_id, force=force)

        logger.info(
            f"Exporter container stopped: exporter.cid={exporter.container_id} "
            f"exporter.name={exporter.name} exported.id={exporter.exported_id} "
            f"exported.name={exporter.exported_name}"
        )

    def cleanup_exporter(self, name: str, force: bool = False) -> None:
        """
        Tear down the sidecar named ``name``.

        Raises:
            ExporterNotFoundError: If no container has this name
            AmbiguousExporterError: If several containers match
            ExportedTaskStillRunningError: See stop_exporter()
        """
        containers = self.runtime.list_containers(all=True, name=name)
        if not containers:
            raise ExporterNotFoundError(name)
        if len(containers) > 1:
            raise AmbiguousExporterError(name, [c.id for c in containers])

        self.stop_exporter(RunningExporter.from_container(containers[0]), force)

    def cleanup_exporters(self, force: bool = False) -> None:
        """
        Tear down every sidecar.

        A sidecar whose monitored container is still running doesn't stop the
        others from being torn down.

        Raises:
            CleanupError: Naming the sidecars left in place because their
                monitored container is still running
            Exception: Any other failure, immediately
        """
        containers = self.runtime.list_containers(all=True, label=LABEL_EXPORTED_ID)
        logger.debug(f"Found {len(containers)} exporters")

        failed = []
        for container in containers:
            try:
                self.stop_exporter(RunningExporter.from_container(container), force)
            except ExportedTaskStillRunningError as e:
                logger.warning(str(e))
                failed.append(container.name)

        if failed:
            raise CleanupError(failed)

    def find_associated_exporters(self, monitored_id: str) -> List[RunningExporter]:
        """List the sidecars, stopped ones included, of a monitored container."""
        containers = self.runtime.list_containers(
            all=True, label=f"{LABEL_EXPORTED_ID}={monitored_id}"
        )
        return [RunningExporter.from_container(c) for c in containers]

    def find_missing_exporters(self) -> List[Exporter]:
        """
        Resolve the exporters of every running container and return those
        with no container of the same name.
        """
        containers = self.runtime.list_containers()
        taken = {c.name for c in containers}

        missing = []
        for container in containers:
            if is_sidecar(container.labels):
                continue

            task = container.to_task()
            try:
                exporters = self.resolver.resolve(task)
            except ExporterResolutionError as e:
                logger.warning(f"Cannot resolve exporters of {task.name!r} ({task.id}): {e}")
                continue

            missing.extend(exporter for exporter in exporters if exporter.name not in taken)

        logger.info(f"Found {len(missing)} missing exporters")
        return missing

    def provision_missing(
        self, ctx: CancelContext, pipeline: StartupPipeline
    ) -> Dict[str, Exception]:
        """
        Start every missing exporter.

        Returns:
            Failures keyed by exporter name; empty when everything started
        """
        failures: Dict[str, Exception] = {}
        for exporter in self.find_missing_exporters():
            if ctx.cancelled:
                break
            try:
                pipeline.run(ctx, exporter)
            except Exception as e:
                logger.error(f"Failed to start missing exporter {exporter.name!r}: {e}")
                failures[exporter.name] = e
        return failures
