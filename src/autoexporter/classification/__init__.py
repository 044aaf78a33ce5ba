"""
Exporter classification for the autoexporter package.

This module decides which exporters apply to a monitored container, either
from its explicit exporter label or from the predefined exporter catalog.
"""

from .catalog import ExporterCatalog, ExporterFinder, rule_matches
from .resolver import ExporterResolver
from .templates import render_template

__all__ = [
    "ExporterCatalog",
    "ExporterFinder",
    "ExporterResolver",
    "render_template",
    "rule_matches",
]
