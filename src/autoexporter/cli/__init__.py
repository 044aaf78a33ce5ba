"""
Command-line interface for the autoexporter package.

This module provides the main CLI entry point and the daemon runner.
"""

from .daemon import ExporterDaemon
from .main import main_cli

__all__ = [
    "ExporterDaemon",
    "main_cli",
]
