"""
Sidecar startup pipeline.

Provisioning one exporter is split into steps executed in a fixed order:
pull the image, create the container, connect it to the monitoring network,
start it. Cancellation is checked between steps only, so a call already
issued to the runtime always runs to completion.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

from ..executor import CancelContext
from ..models import (
    LABEL_EXPORTED_ID,
    LABEL_EXPORTED_NAME,
    LABEL_SIDECAR,
    Exporter,
)

logger = logging.getLogger(__name__)

# Message returned by the daemon when the container is already attached.
ALREADY_CONNECTED_MARKER = "endpoint with name"

NAME_CONFLICT_PATTERN = re.compile(r'The container name "[^"]+" is already in use')


class PipelineStep(Enum):
    """Steps of the startup pipeline, in execution order."""
    PULL_IMAGE = "pullImage"
    CREATE = "create"
    CONNECT = "connect"
    START = "start"
    FINISHED = "finished"


@dataclass
class PipelineState:
    """Progress of one exporter through the pipeline."""

    exporter: Exporter
    step: PipelineStep = PipelineStep.PULL_IMAGE
    # Set once the create step succeeded.
    exporter_cid: Optional[str] = None


class StartupPipeline:
    """
    Provision the sidecar container of one exporter.

    Any step failure is raised to the caller as is. Containers created by a
    failed or cancelled run are left in place: a retry reuses the sidecar it
    finds under the same name for the same task, and reconciliation deals
    with the rest.
    """

    def __init__(
        self,
        runtime,
        monitoring_network: str,
        exporter_user: Optional[str] = "1000",
        restart_max_retries: int = 10,
    ):
        """
        Args:
            runtime: Container runtime adapter (see DockerRuntime)
            monitoring_network: Network the sidecar is attached to
            exporter_user: User the exporter process runs as
            restart_max_retries: Maximum restarts of a failing sidecar
        """
        self.runtime = runtime
        self.monitoring_network = monitoring_network
        self.exporter_user = exporter_user
        self.restart_max_retries = restart_max_retries

    @classmethod
    def from_config(cls, runtime, daemon_config) -> "StartupPipeline":
        return cls(
            runtime,
            monitoring_network=daemon_config.monitoring_network,
            exporter_user=daemon_config.exporter_user,
            restart_max_retries=daemon_config.restart_max_retries,
        )

    def run(self, ctx: CancelContext, exporter: Exporter) -> Optional[str]:
        """
        Run the pipeline for ``exporter`` until it finishes or ``ctx`` is
        cancelled.

        Returns:
            The sidecar container id, or None if the run was cancelled

        Raises:
            Exception: The error of the first failing step
        """
        state = PipelineState(exporter=exporter)
        transitions: Dict[PipelineStep, Callable[[PipelineState], PipelineStep]] = {
            PipelineStep.PULL_IMAGE: self._pull_image,
            PipelineStep.CREATE: self._create,
            PipelineStep.CONNECT: self._connect,
            PipelineStep.START: self._start,
        }

        while state.step is not PipelineStep.FINISHED:
            if ctx.cancelled:
                logger.info(
                    f"Startup of exporter {exporter.name!r} cancelled before step "
                    f"{state.step.value} (exporter.cid={state.exporter_cid})"
                )
                return None

            logger.debug(
                f"Exporter {exporter.name!r}: step {state.step.value} "
                f"(exporter.cid={state.exporter_cid})"
            )
            state.step = transitions[state.step](state)

        logger.info(
            f"Exporter {exporter.name!r} ({exporter.image}) started for "
            f"{exporter.monitored_task.name!r} (exporter.cid={state.exporter_cid})"
        )
        return state.exporter_cid

    def _pull_image(self, state: PipelineState) -> PipelineStep:
        logger.debug(f"Pulling image {state.exporter.image!r}")
        self.runtime.pull_image(state.exporter.image)
        return PipelineStep.CREATE

    def _create(self, state: PipelineState) -> PipelineStep:
        exporter = state.exporter
        task = exporter.monitored_task
        try:
            cid, warnings = self.runtime.create_container(
                name=exporter.name,
                image=exporter.image,
                command=list(exporter.command),
                environment=list(exporter.environment),
                labels={
                    LABEL_SIDECAR: "true",
                    LABEL_EXPORTED_ID: task.id,
                    LABEL_EXPORTED_NAME: task.name,
                },
                network_mode=f"container:{task.id}",
                restart_policy={
                    "Name": "on-failure",
                    "MaximumRetryCount": self.restart_max_retries,
                },
                user=self.exporter_user,
            )
        except Exception as e:
            if not NAME_CONFLICT_PATTERN.search(str(e)):
                raise
            cid = self._find_previous_sidecar(exporter)
            if cid is None:
                raise
            logger.info(f"Reusing exporter container {cid} left by a previous attempt for {exporter.name!r}")
            state.exporter_cid = cid
            return PipelineStep.CONNECT

        state.exporter_cid = cid
        logger.debug(f"Exporter container {cid} created for {exporter.name!r}")
        if warnings:
            logger.warning(
                f"Docker emitted warnings while creating {exporter.name!r}: {warnings}"
            )
        return PipelineStep.CONNECT

    def _find_previous_sidecar(self, exporter: Exporter) -> Optional[str]:
        """Id of the sidecar already created for this very task, if any."""
        containers = self.runtime.list_containers(all=True, name=exporter.name)
        if len(containers) != 1:
            return None
        if containers[0].labels.get(LABEL_EXPORTED_ID) != exporter.monitored_task.id:
            return None
        return containers[0].id

    def _connect(self, state: PipelineState) -> PipelineStep:
        try:
            self.runtime.connect_network(self.monitoring_network, state.exporter_cid)
        except Exception as e:
            if ALREADY_CONNECTED_MARKER not in str(e):
                raise
            logger.debug(
                f"Exporter container {state.exporter_cid} already connected to "
                f"{self.monitoring_network!r}"
            )
        else:
            logger.debug(
                f"Exporter container {state.exporter_cid} connected to {self.monitoring_network!r}"
            )
        return PipelineStep.START

    def _start(self, state: PipelineState) -> PipelineStep:
        logger.debug(f"Starting exporter container {state.exporter_cid}")
        self.runtime.start_container(state.exporter_cid)
        return PipelineStep.FINISHED
