"""
Configuration data models.

This module contains the configuration structures for the daemon settings,
the exporter catalog and the application configuration.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Union


@dataclass
class DaemonConfig:
    """
    Configuration for the daemon's global behavior, loaded from `config.toml`.
    """

    # [daemon.general]
    log_level: str = "INFO"

    # [daemon.network]
    # Network every sidecar is attached to so that Prometheus can scrape it.
    monitoring_network: str = "monitoring"

    # [daemon.events]
    retry_attempts: int = 3
    retry_delay: float = 5.0
    max_workers: int = 8
    thread_name_prefix: str = "ExporterWorker"

    # [daemon.exporters]
    exporter_user: str = "1000"
    restart_max_retries: int = 10
    # Seconds given to a sidecar to stop before it is killed.
    stop_timeout: int = 10

    # [daemon.reconcile]
    reconcile_on_startup: bool = True
    # 0 disables periodic reconciliation.
    reconcile_interval: float = 0.0


@dataclass
class MatchRuleConfig:
    """
    One match criterion of a predefined exporter, loaded from `exporters.toml`.
    """

    # The task field to match against ('name', 'image' or 'label').
    match_field: str
    # The type of match to perform ('exact', 'in_list', 'regex', 'contains').
    match_type: str
    # A string for exact/regex/contains, a list for in_list.
    patterns: Union[str, List[str]]
    # Label key, required when match_field is 'label'.
    label: Optional[str] = None


@dataclass
class PredefinedExporterConfig:
    """
    A catalog entry describing how to run one exporter type.
    """

    # Catalog key, used in sidecar names.
    type: str
    image: str
    cmd: List[str] = field(default_factory=list)
    env: List[str] = field(default_factory=list)
    port: str = ""
    # The exporter applies to a task when any rule matches.
    match: List[MatchRuleConfig] = field(default_factory=list)
    comment: str = ""


@dataclass
class AppConfig:
    """
    The root configuration object that aggregates all loaded settings.
    """

    daemon: DaemonConfig
    exporters: List[PredefinedExporterConfig]
