"""
Exporter resolution for monitored tasks.

A task either names its exporter type explicitly through the
``autoexporter.exporter`` label, or gets every catalog exporter whose rules
it matches.
"""

import logging
from typing import List

from ..models import LABEL_EXPORTER, Exporter, MonitoredTask, get_exporter_name
from .catalog import ExporterFinder
from .templates import render_template

logger = logging.getLogger(__name__)


class ExporterResolver:
    """
    Determine the exporters to run for a task.

    Resolution is a pure function of the task and the finder's content; no
    state is kept between calls.
    """

    def __init__(self, finder: ExporterFinder):
        self.finder = finder

    def explicit_exporter_type(self, task: MonitoredTask) -> str:
        """
        Render the task's explicit exporter label, "" when it has none.

        Raises:
            TemplateRenderError: If the label value can't be rendered
        """
        template = task.labels.get(LABEL_EXPORTER, "")
        if not template:
            return ""
        return render_template(template, task).strip()

    def resolve(self, task: MonitoredTask) -> List[Exporter]:
        """
        Resolve the exporters of ``task``, in catalog order.

        Raises:
            TemplateRenderError: If the explicit label can't be rendered
            PredefinedExporterNotFoundError: If the explicit type is unknown
        """
        exporter_type = self.explicit_exporter_type(task)
        if exporter_type:
            exporter = self.finder.get_predefined_exporter(exporter_type, task)
            exporter.name = get_exporter_name(exporter_type, task.name)
            logger.debug(f"Exporter {exporter_type!r} explicitly requested by {task.name!r}")
            return [exporter]

        matching, warnings = self.finder.find_matching_exporters(task)
        for warning in warnings:
            logger.warning(f"Exporter matching for {task.name!r} ({task.id}): {warning}")

        exporters = []
        for key, exporter in matching.items():
            exporter.name = get_exporter_name(key, task.name)
            exporters.append(exporter)

        logger.info(f"Resolved {len(exporters)} exporters for {task.name!r}")
        return exporters
