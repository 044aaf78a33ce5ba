"""
Data models for the autoexporter package.

Configuration Models:
- Daemon settings (network, retry, reconciliation)
- Predefined exporter catalog entries and their match rules

Runtime Models:
- Monitored tasks and container records reported by the runtime
- Exporter descriptions and running sidecars
- Task events published to downstream consumers
"""

from .config import AppConfig, DaemonConfig, MatchRuleConfig, PredefinedExporterConfig
from .labels import (
    LABEL_EXPORTED_ID,
    LABEL_EXPORTED_NAME,
    LABEL_EXPORTER,
    LABEL_SIDECAR,
    is_sidecar,
)
from .tasks import (
    ContainerInfo,
    Exporter,
    MonitoredTask,
    RunningExporter,
    TaskEvent,
    TaskEventType,
    get_exporter_name,
    trim_leading_slash,
)

__all__ = [
    # Configuration
    "AppConfig",
    "DaemonConfig",
    "MatchRuleConfig",
    "PredefinedExporterConfig",
    # Labels
    "LABEL_EXPORTED_ID",
    "LABEL_EXPORTED_NAME",
    "LABEL_EXPORTER",
    "LABEL_SIDECAR",
    "is_sidecar",
    # Runtime
    "ContainerInfo",
    "Exporter",
    "MonitoredTask",
    "RunningExporter",
    "TaskEvent",
    "TaskEventType",
    "get_exporter_name",
    "trim_leading_slash",
]
