"""Collector manager that wires collectors, background tasks and the assembler."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Sequence

from ..config import ServerHealthConfig
from ..probe.cache import ProbeCache, ProbeResult
from ..probe.methods import DownloadProbe, SpeedtestCliProbe, ThroughputProbe
from ..probe.refresher import ProbeRefresher
from ..snapshot import Snapshot, SnapshotAssembler
from .base import BaseCollector
from .containers import ContainerCollector, ContainerRuntime, DockerCliRuntime
from .cpu import CpuCollector
from .disk import DiskSpaceCollector
from .diskio import DiskIOCollector
from .memory import MemoryCollector
from .network import NetworkCollector
from .sampler import CpuSampler
from .thermal import ThermalCollector

logger = logging.getLogger(__name__)


class CollectorManager:
    """Builds the collector set from configuration and owns background work.

    Instantiate with a :class:`ServerHealthConfig`, optionally register
    sinks via :meth:`add_sink`, then call :meth:`start` / :meth:`stop`.
    :meth:`collect_snapshot` may be called from any number of threads.
    """

    def __init__(
        self,
        config: ServerHealthConfig,
        runtime: ContainerRuntime | None = None,
        probes: Sequence[ThroughputProbe] | None = None,
    ) -> None:
        self._config = config
        sources = config.sources
        collector_cfg = config.collector

        self._sampler: CpuSampler | None = None
        if collector_cfg.cpu_mode == "background":
            self._sampler = CpuSampler(sources.proc_path, collector_cfg.cpu_interval_seconds)

        self._collectors: list[BaseCollector] = [
            CpuCollector(
                sources.proc_path,
                pause=collector_cfg.cpu_blocking_pause_seconds,
                sampler=self._sampler,
            ),
            MemoryCollector(sources.proc_path),
            DiskSpaceCollector(sources.proc_path, host_root=sources.host_root),
            NetworkCollector(sources.proc_path),
            DiskIOCollector(sources.proc_path),
            ThermalCollector(sources.sys_path),
        ]
        if collector_cfg.docker:
            self._collectors.append(ContainerCollector(runtime or DockerCliRuntime(
                sources.docker_command, timeout=sources.docker_timeout_seconds,
            )))

        if probes is None:
            probes = [
                SpeedtestCliProbe(config.probe.speedtest_command),
                DownloadProbe(config.probe.download_url, timeout=config.probe.download_timeout_seconds),
            ]
        self.probe_cache = ProbeCache()
        self._refresher = ProbeRefresher(self.probe_cache, probes, config.probe.interval_seconds)
        self._assembler = SnapshotAssembler(self._collectors, self.probe_cache)

        self._sinks: list[Callable[[Snapshot], None]] = []
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._started = False

    @property
    def collectors(self) -> list[BaseCollector]:
        return list(self._collectors)

    def add_sink(self, sink: Callable[[Snapshot], None]) -> None:
        """Register a callback that receives a snapshot every export interval."""
        self._sinks.append(sink)

    def collect_snapshot(self) -> Snapshot:
        return self._assembler.collect_snapshot()

    def collect_json(self, indent: int | None = 2) -> str:
        return self._assembler.collect_json(indent=indent)

    def refresh_probe_cache(self) -> ProbeResult:
        """Run one probe cycle now, independent of the schedule."""
        return self._refresher.refresh()

    def _run(self) -> None:
        """Sink loop."""
        while not self._stop_event.wait(self._config.otel.interval_seconds):
            snapshot = self.collect_snapshot()
            for sink in self._sinks:
                try:
                    sink(snapshot)
                except Exception:
                    logger.exception("Sink failed")

    def start(self) -> None:
        """Start the CPU sampler, the probe refresher and the sink loop."""
        if self._started:
            return
        self._started = True
        if self._sampler is not None:
            self._sampler.start()
        if self._config.probe.enabled:
            self._refresher.start()
        if self._sinks:
            self._stop_event.clear()
            self._thread = threading.Thread(target=self._run, name="snapshot-sinks", daemon=True)
            self._thread.start()
        logger.info(
            "CollectorManager started (cpu_mode=%s, collectors=%s)",
            self._config.collector.cpu_mode,
            ", ".join(c.name for c in self._collectors),
        )

    def stop(self) -> None:
        """Stop all background work."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None
        if self._sampler is not None:
            self._sampler.stop()
        self._refresher.stop()
        self._started = False
        logger.info("CollectorManager stopped")
