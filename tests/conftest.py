"""
Pytest configuration and shared fixtures for the autoexporter test suite.

This module provides common fixtures, test doubles for the Docker adapter and
the exporter catalog, and configuration for all test modules.
"""

import shutil
import sys
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from autoexporter.classification import ExporterFinder  # noqa: E402
from autoexporter.errors import (  # noqa: E402
    ContainerNotFoundError,
    PredefinedExporterNotFoundError,
)
from autoexporter.models import (  # noqa: E402
    ContainerInfo,
    Exporter,
    MonitoredTask,
)


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")


# ============================================================================
# Test Doubles
# ============================================================================


class FakeEventStream:
    """Finite event stream with the close() method of the Docker SDK's."""

    def __init__(self, events: List[Dict[str, Any]]):
        self._events = list(events)
        self.closed = False

    def __iter__(self):
        for event in self._events:
            if self.closed:
                return
            yield event

    def close(self) -> None:
        self.closed = True


class FakeRuntime:
    """
    In-memory stand-in for DockerRuntime recording every call.

    ``fail[method]`` holds an exception, or a list of exceptions consumed one
    per call, raised before the method has any effect. ``hooks[method]`` is
    called with the method's arguments before it runs.
    """

    def __init__(self):
        self.containers: Dict[str, ContainerInfo] = {}
        self.calls: List[Tuple[str, tuple]] = []
        self.fail: Dict[str, Any] = {}
        self.hooks: Dict[str, Callable] = {}
        self.events_to_emit: List[Dict[str, Any]] = []
        self.create_warnings: List[str] = []
        self._next_id = 0
        self._lock = threading.Lock()

    # --- helpers -----------------------------------------------------------

    def add_container(
        self,
        cid: str,
        name: str,
        image: str = "",
        labels: Optional[Dict[str, str]] = None,
        running: bool = True,
    ) -> ContainerInfo:
        container = ContainerInfo(id=cid, name=name, image=image, labels=labels or {}, running=running)
        self.containers[cid] = container
        return container

    def set_running(self, cid: str, running: bool) -> None:
        container = self.containers.get(cid)
        if container is None:
            return
        self.containers[cid] = ContainerInfo(
            id=container.id,
            name=container.name,
            image=container.image,
            labels=container.labels,
            running=running,
        )

    def call_names(self) -> List[str]:
        with self._lock:
            return [name for name, _ in self.calls]

    def calls_to(self, method: str) -> List[tuple]:
        with self._lock:
            return [args for name, args in self.calls if name == method]

    def _record(self, method: str, *args) -> None:
        with self._lock:
            self.calls.append((method, args))
        hook = self.hooks.get(method)
        if hook is not None:
            hook(*args)
        failure = self.fail.get(method)
        if isinstance(failure, list):
            failure = failure.pop(0) if failure else None
        if failure is not None:
            raise failure

    # --- DockerRuntime interface ------------------------------------------

    def events(self, since=None):
        self._record("events", since)
        return FakeEventStream(self.events_to_emit)

    def inspect_container(self, container_id: str) -> ContainerInfo:
        self._record("inspect_container", container_id)
        if container_id not in self.containers:
            raise ContainerNotFoundError(container_id)
        return self.containers[container_id]

    def list_containers(self, all: bool = False, label: Optional[str] = None, name: Optional[str] = None):
        self._record("list_containers", all, label, name)
        result = []
        for container in list(self.containers.values()):
            if not all and not container.running:
                continue
            if name is not None and container.name != name.lstrip("/"):
                continue
            if label is not None:
                key, _, value = label.partition("=")
                if key not in container.labels:
                    continue
                if value and container.labels[key] != value:
                    continue
            result.append(container)
        return result

    def pull_image(self, image: str) -> None:
        self._record("pull_image", image)

    def create_container(
        self,
        name,
        image,
        command,
        environment,
        labels,
        network_mode,
        restart_policy,
        user=None,
    ):
        self._record("create_container", name, image, command, environment, labels,
                     network_mode, restart_policy, user)
        for container in self.containers.values():
            if container.name == name:
                raise RuntimeError(
                    f'409 Client Error: Conflict ("The container name "/{name}" is already '
                    f'in use by container "{container.id}".")'
                )
        with self._lock:
            self._next_id += 1
            cid = f"sidecar{self._next_id}"
        self.add_container(cid, name, image=image, labels=dict(labels), running=False)
        return cid, list(self.create_warnings)

    def connect_network(self, network: str, container_id: str) -> None:
        self._record("connect_network", network, container_id)

    def disconnect_network(self, network: str, container_id: str, force: bool = False) -> None:
        self._record("disconnect_network", network, container_id, force)

    def start_container(self, container_id: str) -> None:
        self._record("start_container", container_id)
        self.set_running(container_id, True)

    def stop_container(self, container_id: str, timeout=None) -> None:
        self._record("stop_container", container_id, timeout)
        self.set_running(container_id, False)

    def remove_container(self, container_id: str, force: bool = False) -> None:
        self._record("remove_container", container_id, force)
        self.containers.pop(container_id, None)


class FakeFinder(ExporterFinder):
    """
    ExporterFinder returning fixed exporters.

    ``matching`` maps a catalog key to the image of the exporter returned for
    every task; ``predefined`` does the same for explicit lookups.
    """

    def __init__(
        self,
        matching: Optional[Dict[str, str]] = None,
        predefined: Optional[Dict[str, str]] = None,
        warnings: Optional[List[Exception]] = None,
    ):
        self.matching = matching or {}
        self.predefined = predefined or {}
        self.warnings = warnings or []

    @staticmethod
    def _exporter(exporter_type: str, image: str, task: MonitoredTask) -> Exporter:
        return Exporter(
            name="",
            exporter_type=exporter_type,
            image=image,
            command=[],
            environment=[],
            port="",
            monitored_task=task,
        )

    def find_matching_exporters(self, task):
        exporters = {key: self._exporter(key, image, task) for key, image in self.matching.items()}
        return exporters, list(self.warnings)

    def get_predefined_exporter(self, exporter_type, task):
        if exporter_type not in self.predefined:
            raise PredefinedExporterNotFoundError(exporter_type)
        return self._exporter(exporter_type, self.predefined[exporter_type], task)


def make_event(action: str, cid: str, attributes: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """Build a decoded Docker container event."""
    return {
        "Type": "container",
        "Action": action,
        "status": action,
        "id": cid,
        "Actor": {"ID": cid, "Attributes": dict(attributes or {})},
    }


def make_exporter(task: MonitoredTask, exporter_type: str = "redis", image: str = "redis_exporter") -> Exporter:
    """Build a resolved exporter for ``task``."""
    return Exporter(
        name=f"exporter.{exporter_type}.{task.name.lstrip('/')}",
        exporter_type=exporter_type,
        image=image,
        command=["-redis.addr=redis://localhost:6379"],
        environment=["FOO=bar"],
        port="9121",
        monitored_task=task,
    )


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def fake_runtime():
    """Recording in-memory container runtime."""
    return FakeRuntime()


@pytest.fixture
def fake_finder():
    """Finder matching a single redis exporter for every task."""
    return FakeFinder(matching={"redis": "oliver006/redis_exporter:v0.25.0"})


@pytest.fixture
def redis_task():
    """A monitored redis container."""
    return MonitoredTask(id="abc123", name="cache", labels={}, image="redis:5")


@pytest.fixture
def sample_config_data():
    """Sample main configuration data for testing."""
    return {
        "paths": {"exporters_config": "exporters.toml"},
        "daemon": {
            "general": {"log_level": "DEBUG"},
            "network": {"name": "prometheus"},
            "events": {
                "retry_attempts": 2,
                "retry_delay": 0.5,
                "max_workers": 4,
                "thread_name_prefix": "TestWorker",
            },
            "exporters": {"user": "nobody", "restart_max_retries": 3, "stop_timeout": 5},
            "reconcile": {"on_startup": False, "interval_seconds": 30},
        },
    }


@pytest.fixture
def sample_exporters_data():
    """Sample exporter catalog entries for testing."""
    return [
        {
            "type": "redis",
            "image": "oliver006/redis_exporter:v0.25.0",
            "cmd": ["-redis.addr=redis://localhost:6379"],
            "port": "9121",
            "match": [
                {"match_field": "image", "match_type": "regex", "patterns": "^redis(:|$)"},
            ],
        },
        {
            "type": "php-fpm",
            "image": "hipages/php-fpm_exporter:1",
            "cmd": ["--phpfpm.scrape-uri", "tcp://{name}:9000/status"],
            "env": ["TASK_ID={id}"],
            "port": "9253",
            "match": [
                {
                    "match_field": "label",
                    "label": "autoexporter.php-fpm",
                    "match_type": "in_list",
                    "patterns": ["true", "1", "yes"],
                },
            ],
        },
    ]


@pytest.fixture
def event_factory():
    """Factory building decoded Docker container events."""
    return make_event


@pytest.fixture
def exporter_factory():
    """Factory building resolved exporters for a task."""
    return make_exporter


@pytest.fixture
def finder_class():
    """The FakeFinder class, for tests needing a custom catalog."""
    return FakeFinder
