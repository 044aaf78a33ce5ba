"""
Predefined exporter catalog.

The catalog maps exporter types to the sidecar that should run for them and
to the rules deciding which containers they apply to. It is consulted through
the ExporterFinder interface so that another implementation can be injected.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

from ..errors import PredefinedExporterNotFoundError
from ..models import Exporter, MatchRuleConfig, MonitoredTask, PredefinedExporterConfig
from .templates import render_template

logger = logging.getLogger(__name__)


class ExporterFinder(ABC):
    """Lookup service returning exporter descriptions for a monitored task."""

    @abstractmethod
    def find_matching_exporters(
        self, task: MonitoredTask
    ) -> Tuple[Dict[str, Exporter], List[Exception]]:
        """
        Find every exporter whose match criteria the task satisfies.

        Returns:
            Tuple of (exporters keyed by catalog key, non-fatal warnings).
            The exporters' ``name`` is left for the caller to fill in.
        """

    @abstractmethod
    def get_predefined_exporter(self, exporter_type: str, task: MonitoredTask) -> Exporter:
        """
        Build the exporter of type ``exporter_type`` for ``task``.

        Raises:
            PredefinedExporterNotFoundError: If the type is unknown
            TemplateRenderError: If the entry can't be rendered for the task
        """


def _rule_target(rule: MatchRuleConfig, task: MonitoredTask) -> Optional[str]:
    if rule.match_field == "name":
        return task.name.lstrip("/")
    if rule.match_field == "image":
        return task.image
    if rule.match_field == "label":
        return task.labels.get(rule.label)
    return None


def rule_matches(rule: MatchRuleConfig, task: MonitoredTask) -> bool:
    """Check a single match rule against a task."""
    target = _rule_target(rule, task)
    if target is None:
        return False

    if rule.match_type == "exact":
        return target == rule.patterns
    if rule.match_type == "contains":
        return bool(rule.patterns) and rule.patterns in target
    if rule.match_type == "regex":
        return bool(re.search(rule.patterns, target))
    if rule.match_type == "in_list":
        patterns = rule.patterns if isinstance(rule.patterns, list) else [rule.patterns]
        return target in patterns
    return False


class ExporterCatalog(ExporterFinder):
    """
    ExporterFinder backed by the [[exporters]] entries of exporters.toml.

    Entries are evaluated in file order; for a given catalog and task the
    result is always the same.
    """

    def __init__(self, exporters: List[PredefinedExporterConfig]):
        self._exporters: Dict[str, PredefinedExporterConfig] = {}
        for entry in exporters:
            self._exporters[entry.type] = entry

    @classmethod
    def from_config(cls, app_config) -> "ExporterCatalog":
        return cls(app_config.exporters)

    @property
    def types(self) -> List[str]:
        return list(self._exporters)

    def _build(self, entry: PredefinedExporterConfig, task: MonitoredTask) -> Exporter:
        return Exporter(
            name="",
            exporter_type=entry.type,
            image=entry.image,
            command=[render_template(arg, task) for arg in entry.cmd],
            environment=[render_template(var, task) for var in entry.env],
            port=entry.port,
            monitored_task=task,
        )

    def find_matching_exporters(
        self, task: MonitoredTask
    ) -> Tuple[Dict[str, Exporter], List[Exception]]:
        matching: Dict[str, Exporter] = {}
        warnings: List[Exception] = []

        for exporter_type, entry in self._exporters.items():
            try:
                if not any(rule_matches(rule, task) for rule in entry.match):
                    continue
                matching[exporter_type] = self._build(entry, task)
            except Exception as e:
                warnings.append(e)

        return matching, warnings

    def get_predefined_exporter(self, exporter_type: str, task: MonitoredTask) -> Exporter:
        entry = self._exporters.get(exporter_type)
        if entry is None:
            raise PredefinedExporterNotFoundError(exporter_type)
        return self._build(entry, task)
