"""
Adapter between the orchestration core and the Docker Engine API.

The core only ever calls the methods of DockerRuntime; tests substitute a
recording fake with the same methods. Payloads coming back from the Docker SDK
are converted to ContainerInfo records here so that no Docker-specific dict
layout leaks into the core.
"""

import logging
import re
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

import docker
import docker.errors

from ..models import ContainerInfo, trim_leading_slash
from ..errors import ContainerNotFoundError

logger = logging.getLogger(__name__)

# Only these container actions are of interest to the dispatcher.
WATCHED_ACTIONS = ("start", "die")


def container_from_inspect(data: Dict[str, Any]) -> ContainerInfo:
    """Build a ContainerInfo from a /containers/{id}/json payload."""
    config = data.get("Config") or {}
    state = data.get("State") or {}
    return ContainerInfo(
        id=data.get("Id", ""),
        name=trim_leading_slash(data.get("Name", "")),
        image=config.get("Image", ""),
        labels=dict(config.get("Labels") or {}),
        running=bool(state.get("Running", False)),
    )


def container_from_listing(data: Dict[str, Any]) -> ContainerInfo:
    """Build a ContainerInfo from one item of a /containers/json payload."""
    names = data.get("Names") or [""]
    return ContainerInfo(
        id=data.get("Id", ""),
        name=trim_leading_slash(names[0]),
        image=data.get("Image", ""),
        labels=dict(data.get("Labels") or {}),
        running=data.get("State") == "running",
    )


class DockerRuntime:
    """
    Container runtime client used by the orchestration core.

    Errors from the Docker SDK propagate unchanged, except "not found" on
    inspection which becomes ContainerNotFoundError.
    """

    def __init__(self, client: docker.DockerClient):
        self.client = client
        self.api = client.api

    @classmethod
    def from_env(cls, **kwargs) -> "DockerRuntime":
        """Connect using DOCKER_HOST, DOCKER_TLS_VERIFY and DOCKER_CERT_PATH."""
        return cls(docker.from_env(**kwargs))

    def events(self, since: Optional[Union[datetime, int]] = None) -> Iterator[Dict[str, Any]]:
        """
        Subscribe to container start/die events.

        The returned stream blocks while waiting for events and has a close()
        method. An exception raised while iterating it means the subscription
        is broken for good.
        """
        return self.client.events(
            since=since,
            filters={"type": "container", "event": list(WATCHED_ACTIONS)},
            decode=True,
        )

    def inspect_container(self, container_id: str) -> ContainerInfo:
        try:
            data = self.api.inspect_container(container_id)
        except docker.errors.NotFound:
            raise ContainerNotFoundError(container_id)
        return container_from_inspect(data)

    def list_containers(
        self,
        all: bool = False,
        label: Optional[str] = None,
        name: Optional[str] = None,
    ) -> List[ContainerInfo]:
        """
        List containers.

        Args:
            all: Include stopped containers
            label: Only containers carrying this label ("key" or "key=value")
            name: Only the container with exactly this name
        """
        filters: Dict[str, Any] = {}
        if label:
            filters["label"] = [label]
        if name:
            # The daemon matches names as unanchored regexes.
            filters["name"] = f"^/{re.escape(trim_leading_slash(name))}$"
        data = self.api.containers(all=all, filters=filters or None)
        return [container_from_listing(item) for item in data]

    def pull_image(self, image: str) -> None:
        """Pull ``image`` and block until the pull completes."""
        self.client.images.pull(image)

    def create_container(
        self,
        name: str,
        image: str,
        command: List[str],
        environment: List[str],
        labels: Dict[str, str],
        network_mode: str,
        restart_policy: Dict[str, Any],
        user: Optional[str] = None,
    ) -> Tuple[str, List[str]]:
        """
        Create a container.

        Returns:
            Tuple of (container id, warnings emitted by the daemon)
        """
        host_config = self.api.create_host_config(
            network_mode=network_mode,
            restart_policy=restart_policy,
        )
        created = self.api.create_container(
            image=image,
            command=command,
            environment=environment,
            labels=labels,
            name=name,
            user=user,
            host_config=host_config,
        )
        return created["Id"], list(created.get("Warnings") or [])

    def connect_network(self, network: str, container_id: str) -> None:
        self.api.connect_container_to_network(container_id, network)

    def disconnect_network(self, network: str, container_id: str, force: bool = False) -> None:
        self.api.disconnect_container_from_network(container_id, network, force=force)

    def start_container(self, container_id: str) -> None:
        self.api.start(container_id)

    def stop_container(self, container_id: str, timeout: Optional[int] = None) -> None:
        if timeout is None:
            self.api.stop(container_id)
        else:
            self.api.stop(container_id, timeout=timeout)

    def remove_container(self, container_id: str, force: bool = False) -> None:
        self.api.remove_container(container_id, force=force)
