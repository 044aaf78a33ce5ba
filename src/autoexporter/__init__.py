"""
autoexporter: Prometheus exporter sidecars for Docker containers.

This package watches the Docker daemon for container start/die events and
runs, next to each started container, the exporters it needs; the sidecars
are torn down once the container dies.

The package is organized into specialized modules:
- config: Configuration management and validation
- models: Data structures and type definitions
- validation: Input validation, retry and error handling
- executor: Worker pool and cancellation registry
- classification: Exporter catalog and resolution
- backend: Docker adapter, startup pipeline, teardown and event dispatch
- cli: Command-line interface and daemon runner

Usage:
    From command line:
        autoexporter listen
        autoexporter cleanup [NAME] [--force]
        autoexporter missing [--start]

    Programmatically:
        from autoexporter import ExporterDaemon, DockerRuntime, get_config
        daemon = ExporterDaemon(get_config(), DockerRuntime.from_env())
        daemon.run()
"""

# Main interfaces
from .config import get_config, clear_config_cache, set_config_path
from .cli import ExporterDaemon, main_cli

# Backend components
from .backend import (
    DockerRuntime,
    EventDispatcher,
    ExporterReconciler,
    StartupPipeline,
)
from .classification import ExporterCatalog, ExporterResolver
from .executor import CancelContext, CancellationRegistry

# Model classes for external use
from .models import (
    AppConfig,
    DaemonConfig,
    Exporter,
    MonitoredTask,
    PredefinedExporterConfig,
    TaskEvent,
    TaskEventType,
)

# Errors
from .errors import (
    AutoExporterError,
    ExportedTaskStillRunningError,
    ExporterNotFoundError,
)
from .validation import ValidationError

__version__ = "0.1.0"

__all__ = [
    # Main interfaces
    "get_config",
    "clear_config_cache",
    "set_config_path",
    "ExporterDaemon",
    "main_cli",
    # Backend
    "DockerRuntime",
    "EventDispatcher",
    "ExporterReconciler",
    "StartupPipeline",
    "ExporterCatalog",
    "ExporterResolver",
    "CancelContext",
    "CancellationRegistry",
    # Models
    "AppConfig",
    "DaemonConfig",
    "Exporter",
    "MonitoredTask",
    "PredefinedExporterConfig",
    "TaskEvent",
    "TaskEventType",
    # Errors
    "AutoExporterError",
    "ExportedTaskStillRunningError",
    "ExporterNotFoundError",
    "ValidationError",
]
