"""Container status collector backed by the docker CLI."""

from __future__ import annotations

import abc
import logging
from dataclasses import dataclass
from typing import Any

from .base import ListCollector
from .sources import run_command

logger = logging.getLogger(__name__)

PS_FORMAT = "{{.ID}}\t{{.Image}}\t{{.Names}}\t{{.Status}}\t{{.State}}"
FIELD_COUNT = 5

HEALTHY = "healthy"
UNHEALTHY = "unhealthy"
STARTING = "starting"
NO_HEALTH = "none"


@dataclass(frozen=True)
class ContainerStatus:
    id: str
    image: str = ""
    names: str = ""
    status: str = ""
    state: str = ""
    health: str = NO_HEALTH

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "image": self.image,
            "names": self.names,
            "status": self.status,
            "state": self.state,
            "health": self.health,
        }


def parse_health(status: str) -> str:
    """Derive the health tag from the parenthesised part of a status text.

    ``"Up 2 hours (healthy)"`` -> healthy, ``"Up 5 minutes (health: starting)"``
    -> starting; anything else, including ``"Exited (0) 3 hours ago"``, is none.
    """
    lp = status.find("(")
    if lp == -1:
        return NO_HEALTH
    rp = status.find(")", lp)
    inner = status[lp + 1:] if rp == -1 else status[lp + 1:rp]
    if inner == HEALTHY:
        return HEALTHY
    if inner == UNHEALTHY:
        return UNHEALTHY
    if inner.startswith("health:"):
        return STARTING
    return NO_HEALTH


class ContainerRuntime(abc.ABC):
    """Source of container listing rows (id, image, names, status, state)."""

    @abc.abstractmethod
    def list_containers(self) -> list[list[str]] | None:
        """Return one row per container, or ``None`` if the runtime is unavailable."""


class DockerCliRuntime(ContainerRuntime):
    """Lists running containers with ``docker ps`` and a tab-separated format."""

    def __init__(self, command: str = "docker", timeout: float | None = 10.0) -> None:
        self._command = command
        self._timeout = timeout

    def list_containers(self) -> list[list[str]] | None:
        output = run_command(
            [self._command, "ps", "--format", PS_FORMAT],
            timeout=self._timeout,
        )
        if output is None:
            return None
        return [line.split("\t") for line in output.splitlines() if line.strip()]


def container_from_row(row: list[str]) -> ContainerStatus | None:
    fields = (list(row) + [""] * FIELD_COUNT)[:FIELD_COUNT]
    container_id, image, names, status, state = (f.strip() for f in fields)
    if not container_id:
        return None
    return ContainerStatus(
        id=container_id,
        image=image,
        names=names,
        status=status,
        state=state,
        health=parse_health(status),
    )


class ContainerCollector(ListCollector):
    """Collects status and health of running containers."""

    def __init__(self, runtime: ContainerRuntime | None = None) -> None:
        self._runtime = runtime or DockerCliRuntime()

    @property
    def name(self) -> str:
        return "docker"

    def collect(self) -> tuple[ContainerStatus, ...]:
        rows = self._runtime.list_containers()
        if rows is None:
            logger.debug("Container runtime unavailable")
            return ()
        containers = []
        for row in rows:
            container = container_from_row(row)
            if container is not None:
                containers.append(container)
        return tuple(containers)
