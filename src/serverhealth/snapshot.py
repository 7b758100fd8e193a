"""Snapshot assembly and JSON serialization."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Sequence

from .collector.base import BaseCollector
from .collector.containers import ContainerStatus
from .collector.cpu import CpuInfo
from .collector.disk import DiskInfo
from .collector.diskio import DiskIO
from .collector.memory import MemoryInfo
from .collector.network import NetworkInterface
from .collector.thermal import ThermalZone
from .probe.cache import TIMESTAMP_FORMAT, ProbeCache, ProbeResult


@dataclass(frozen=True)
class Snapshot:
    """Complete health state at one instant. ``docker`` is None when disabled."""

    timestamp: datetime
    cpu: CpuInfo
    memory: MemoryInfo
    disks: tuple[DiskInfo, ...]
    network: tuple[NetworkInterface, ...]
    disk_io: tuple[DiskIO, ...]
    temperature: tuple[ThermalZone, ...]
    docker: tuple[ContainerStatus, ...] | None
    internet_speed: ProbeResult

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "timestamp": self.timestamp.strftime(TIMESTAMP_FORMAT),
            "cpu": self.cpu.to_dict(),
            "memory": self.memory.to_dict(),
            "disks": [d.to_dict() for d in self.disks],
            "network": [n.to_dict() for n in self.network],
            "disk_io": [io.to_dict() for io in self.disk_io],
            "temperature": [t.to_dict() for t in self.temperature],
        }
        if self.docker is not None:
            data["docker"] = [c.to_dict() for c in self.docker]
        data["internet_speed"] = self.internet_speed.to_dict()
        return data


def to_json(snapshot: Snapshot, indent: int | None = 2) -> str:
    return json.dumps(snapshot.to_dict(), indent=indent)


class SnapshotAssembler:
    """Runs every collector once and combines the results with the probe cache.

    Collectors are looked up by name; a missing collector contributes its
    empty value. ``docker`` is omitted entirely when no container collector
    is registered.
    """

    def __init__(
        self,
        collectors: Sequence[BaseCollector],
        probe_cache: ProbeCache,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._collectors = {c.name: c for c in collectors}
        self._probe_cache = probe_cache
        self._clock = clock

    def _run(self, name: str, default: Any) -> Any:
        collector = self._collectors.get(name)
        if collector is None:
            return default
        return collector.collect_safe()

    def collect_snapshot(self) -> Snapshot:
        """Assemble a fresh snapshot; may block while the CPU is sampled."""
        cpu = self._run("cpu", CpuInfo())
        memory = self._run("memory", MemoryInfo())
        disks = self._run("disks", ())
        network = self._run("network", ())
        disk_io = self._run("disk_io", ())
        temperature = self._run("temperature", ())
        docker = self._run("docker", None)
        internet_speed = self._probe_cache.get()

        return Snapshot(
            timestamp=self._clock(),
            cpu=cpu,
            memory=memory,
            disks=tuple(disks),
            network=tuple(network),
            disk_io=tuple(disk_io),
            temperature=tuple(temperature),
            docker=tuple(docker) if docker is not None else None,
            internet_speed=internet_speed,
        )

    def collect_json(self, indent: int | None = 2) -> str:
        return to_json(self.collect_snapshot(), indent=indent)
