"""
Runtime data models.

This module contains the data structures flowing through the orchestration
core: monitored containers, exporter descriptions, live sidecars and the task
events published to downstream consumers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List

from .labels import LABEL_EXPORTED_ID, LABEL_EXPORTED_NAME


def trim_leading_slash(name: str) -> str:
    """Docker reports container names with a leading slash in some APIs."""
    return name.lstrip("/")


def get_exporter_name(exporter_type: str, task_name: str) -> str:
    """
    Compute the deterministic name of the sidecar running ``exporter_type``
    for the task named ``task_name``.

    Examples:
        >>> get_exporter_name("redis", "/cache")
        'exporter.redis.cache'
    """
    return f"exporter.{exporter_type}.{trim_leading_slash(task_name)}"


@dataclass(frozen=True)
class MonitoredTask:
    """
    Snapshot of a container being watched, as reported by the runtime at
    event or inspection time.
    """

    # Runtime-assigned id, stable for the container's life.
    id: str
    name: str
    labels: Dict[str, str] = field(default_factory=dict)
    # Image reference, used by catalog rules matching on image.
    image: str = ""


@dataclass
class Exporter:
    """
    Description of a sidecar to run for a monitored task.

    An Exporter has no identity until a container is created for it.
    """

    # Sidecar container name, see get_exporter_name().
    name: str
    # Catalog key or explicit override.
    exporter_type: str
    image: str
    command: List[str]
    # "KEY=VALUE" strings.
    environment: List[str]
    # Informational only.
    port: str
    monitored_task: MonitoredTask


@dataclass(frozen=True)
class ContainerInfo:
    """
    Container record returned by the runtime adapter for listings and
    inspections.
    """

    id: str
    # Without the leading slash.
    name: str
    image: str = ""
    labels: Dict[str, str] = field(default_factory=dict)
    running: bool = False

    def to_task(self) -> MonitoredTask:
        return MonitoredTask(id=self.id, name=self.name, labels=dict(self.labels), image=self.image)


@dataclass(frozen=True)
class RunningExporter:
    """
    An exporter with a live container, discovered through its labels.
    """

    container_id: str
    name: str
    exported_id: str
    exported_name: str

    @classmethod
    def from_container(cls, container: ContainerInfo) -> "RunningExporter":
        return cls(
            container_id=container.id,
            name=container.name,
            exported_id=container.labels.get(LABEL_EXPORTED_ID, ""),
            exported_name=container.labels.get(LABEL_EXPORTED_NAME, ""),
        )


class TaskEventType(Enum):
    """Lifecycle transitions published by the event dispatcher."""
    STARTED = "started"
    STOPPED = "stopped"


@dataclass
class TaskEvent:
    """Event published to downstream consumers for each handled runtime event."""

    task: MonitoredTask
    type: TaskEventType
    exporters: List[Exporter] = field(default_factory=list)
