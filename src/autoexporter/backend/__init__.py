"""
Container runtime backend for the autoexporter package.

This module provides the Docker adapter, the sidecar startup pipeline, sidecar
teardown and reconciliation, and the container event dispatcher.
"""

from .events import EventDispatcher, task_from_event
from .runtime import DockerRuntime, container_from_inspect, container_from_listing
from .startup import PipelineState, PipelineStep, StartupPipeline
from .teardown import ExporterReconciler

__all__ = [
    "DockerRuntime",
    "container_from_inspect",
    "container_from_listing",
    "EventDispatcher",
    "task_from_event",
    "ExporterReconciler",
    "PipelineState",
    "PipelineStep",
    "StartupPipeline",
]
