"""
Errors raised by the orchestration core.

Runtime failures not listed here (docker.errors.APIError and friends) are
propagated unchanged and treated as transient by the event dispatcher.
"""

from typing import List


class AutoExporterError(Exception):
    """Base class for errors raised by the orchestration core."""


class ContainerNotFoundError(AutoExporterError):
    """The inspected container doesn't exist (anymore)."""

    def __init__(self, container_id: str):
        super().__init__(f"container {container_id!r} not found")
        self.container_id = container_id


class ExportedTaskStillRunningError(AutoExporterError):
    """
    Teardown refused because the monitored container is still running.

    Retrying with force=True tears the sidecar down anyway.
    """

    def __init__(self, exporter_cid: str, exported_cid: str):
        super().__init__(
            f"Exporter \"{exporter_cid}\" can't be stopped, "
            f"exported container \"{exported_cid}\" still running."
        )
        self.exporter_cid = exporter_cid
        self.exported_cid = exported_cid


class ExporterNotFoundError(AutoExporterError):
    """No sidecar matches the requested name."""

    def __init__(self, name: str):
        super().__init__(f"exporter not found: {name}")
        self.name = name


class AmbiguousExporterError(AutoExporterError):
    """More than one container matches the requested sidecar name."""

    def __init__(self, name: str, container_ids: List[str]):
        super().__init__(
            f"more than one container match the provided exporter name {name!r}: "
            f"{', '.join(container_ids)}"
        )
        self.name = name
        self.container_ids = container_ids


class CleanupError(AutoExporterError):
    """Bulk teardown finished but some sidecars were refused."""

    def __init__(self, failed: List[str]):
        super().__init__(f"failed to cleanup {', '.join(failed)}")
        self.failed = failed


class ExporterResolutionError(AutoExporterError):
    """No exporter could be resolved from the task's explicit exporter label."""


class TemplateRenderError(ExporterResolutionError):
    """A label or catalog template couldn't be rendered against a task."""

    def __init__(self, template: str, reason: str):
        super().__init__(f"cannot render template {template!r}: {reason}")
        self.template = template


class PredefinedExporterNotFoundError(ExporterResolutionError):
    """The catalog has no exporter of the requested type."""

    def __init__(self, exporter_type: str):
        super().__init__(f"no predefined exporter named {exporter_type!r} found")
        self.exporter_type = exporter_type
