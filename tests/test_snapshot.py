"""Tests for snapshot assembly, serialization and the collector manager."""

import json
from datetime import datetime, timezone

from conftest import write_proc
from serverhealth.collector.base import BaseCollector, ListCollector
from serverhealth.collector.containers import ContainerCollector, ContainerRuntime
from serverhealth.collector.cpu import CpuInfo
from serverhealth.collector.disk import DiskSpaceCollector
from serverhealth.collector.diskio import DiskIOCollector
from serverhealth.collector.manager import CollectorManager
from serverhealth.collector.memory import MemoryCollector
from serverhealth.collector.network import NetworkCollector
from serverhealth.collector.thermal import ThermalCollector
from serverhealth.config import ServerHealthConfig
from serverhealth.probe.cache import ProbeCache, ProbeResult
from serverhealth.probe.methods import Measurement, ThroughputProbe
from serverhealth.snapshot import SnapshotAssembler, to_json

FIXED_TIME = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)


class StaticRuntime(ContainerRuntime):
    def __init__(self, rows):
        self.rows = rows

    def list_containers(self):
        return self.rows


class FixedCpu(BaseCollector):
    name = "cpu"

    def collect(self):
        return CpuInfo(usage_percent=12.5, idle_percent=87.5)

    def empty(self):
        return CpuInfo()


class BrokenNetwork(ListCollector):
    name = "network"

    def collect(self):
        raise RuntimeError("parser bug")


class StaticProbe(ThroughputProbe):
    name = "static"

    def measure(self):
        return Measurement(80.0, 15.0)


def _assembler(proc_root, sys_root, fake_usage, rows=None):
    collectors = [
        FixedCpu(),
        MemoryCollector(str(proc_root)),
        DiskSpaceCollector(str(proc_root), usage=fake_usage),
        NetworkCollector(str(proc_root)),
        DiskIOCollector(str(proc_root)),
        ThermalCollector(str(sys_root)),
    ]
    if rows is not None:
        collectors.append(ContainerCollector(StaticRuntime(rows)))
    return SnapshotAssembler(collectors, ProbeCache(), clock=lambda: FIXED_TIME)


def test_snapshot_shape(proc_root, sys_root, fake_usage):
    assembler = _assembler(proc_root, sys_root, fake_usage, rows=[
        ["abc", "nginx", "web", "Up 2 hours (healthy)", "running"],
    ])
    data = json.loads(assembler.collect_json())

    assert list(data) == [
        "timestamp", "cpu", "memory", "disks", "network",
        "disk_io", "temperature", "docker", "internet_speed",
    ]
    assert data["timestamp"] == "2026-10-18T12:00:00Z"
    assert data["cpu"] == {"usage_percent": 12.5, "idle_percent": 87.5}
    assert data["memory"] == {
        "total_kb": 1000000,
        "used_kb": 600000,
        "free_kb": 400000,
        "available_kb": 600000,
        "usage_percent": 40.0,
    }
    assert data["disks"][0] == {
        "path": "/",
        "total_kb": 1048576,
        "used_kb": 262144,
        "free_kb": 786432,
        "usage_percent": 25.0,
    }
    assert set(data["network"][0]) == {"name", "rx_bytes", "tx_bytes", "rx_packets", "tx_packets"}
    assert set(data["disk_io"][0]) == {
        "name", "reads_completed", "writes_completed", "read_sectors", "write_sectors",
    }
    assert data["temperature"][0] == {"name": "x86_pkg_temp", "temperature_celsius": 45.0}
    assert data["docker"] == [{
        "id": "abc",
        "image": "nginx",
        "names": "web",
        "status": "Up 2 hours (healthy)",
        "state": "running",
        "health": "healthy",
    }]
    assert data["internet_speed"] == {
        "available": False,
        "download_mbps": 0.0,
        "upload_mbps": 0.0,
        "last_checked": "",
    }


def test_docker_key_omitted_without_container_collector(proc_root, sys_root, fake_usage):
    data = json.loads(_assembler(proc_root, sys_root, fake_usage).collect_json())
    assert "docker" not in data
    assert "internet_speed" in data


def test_failing_collector_does_not_abort(proc_root, sys_root, fake_usage):
    collectors = [c for c in _assembler(proc_root, sys_root, fake_usage)._collectors.values()
                  if c.name != "network"]
    assembler = SnapshotAssembler(collectors + [BrokenNetwork()], ProbeCache(), clock=lambda: FIXED_TIME)
    snapshot = assembler.collect_snapshot()
    assert snapshot.network == ()
    assert snapshot.memory.total_kb == 1_000_000


def test_unavailable_sources_render_as_zeros(tmp_path):
    empty = tmp_path / "empty"
    empty.mkdir()
    assembler = SnapshotAssembler(
        [
            MemoryCollector(str(empty)),
            DiskSpaceCollector(str(empty)),
            NetworkCollector(str(empty)),
            DiskIOCollector(str(empty)),
            ThermalCollector(str(empty)),
            ContainerCollector(StaticRuntime(None)),
        ],
        ProbeCache(),
    )
    data = json.loads(assembler.collect_json())
    assert data["cpu"] == {"usage_percent": 0.0, "idle_percent": 0.0}
    assert data["memory"]["total_kb"] == 0
    assert data["disks"] == data["network"] == data["disk_io"] == data["temperature"] == []
    assert data["docker"] == []


def test_string_fields_are_escaped(proc_root, sys_root, fake_usage):
    status = 'Up "quoted" \\ path\n\t(healthy)'
    assembler = _assembler(proc_root, sys_root, fake_usage, rows=[["id1", "img", "na\x01me", status, "running"]])
    text = to_json(assembler.collect_snapshot(), indent=None)
    assert "\n" not in text
    assert "\\u0001" in text
    data = json.loads(text)
    assert data["docker"][0]["status"] == status
    assert data["docker"][0]["names"] == "na\x01me"


def test_probe_cache_is_read_into_snapshot(proc_root, sys_root, fake_usage):
    assembler = _assembler(proc_root, sys_root, fake_usage)
    assembler._probe_cache.set(ProbeResult(
        download_mbps=93.25, upload_mbps=11.0, available=True, measured_at=FIXED_TIME,
    ))
    speed = json.loads(assembler.collect_json())["internet_speed"]
    assert speed == {
        "available": True,
        "download_mbps": 93.25,
        "upload_mbps": 11.0,
        "last_checked": "2026-10-18T12:00:00Z",
    }


def test_consecutive_snapshots_differ_only_in_timestamp(proc_root, sys_root, fake_usage):
    assembler = _assembler(proc_root, sys_root, fake_usage, rows=[])
    first = assembler.collect_snapshot().to_dict()
    second = assembler.collect_snapshot().to_dict()
    first.pop("timestamp")
    second.pop("timestamp")
    assert first == second


def test_counters_monotonic_between_snapshots(tmp_path, sys_root, fake_usage):
    proc = write_proc(tmp_path / "proc")
    assembler = _assembler(proc, sys_root, fake_usage)
    before = assembler.collect_snapshot()
    (proc / "net" / "dev").write_text((proc / "net" / "dev").read_text().replace("1000000", "1000500"))
    after = assembler.collect_snapshot()
    for old, new in zip(before.network, after.network):
        assert new.rx_bytes >= old.rx_bytes
    for old, new in zip(before.disk_io, after.disk_io):
        assert new.reads_completed >= old.reads_completed


# ---------------------------------------------------------------------------
# CollectorManager
# ---------------------------------------------------------------------------

def _config(proc_root, sys_root, cpu_mode="blocking", docker=False):
    cfg = ServerHealthConfig()
    cfg.sources.proc_path = str(proc_root)
    cfg.sources.sys_path = str(sys_root)
    cfg.collector.cpu_mode = cpu_mode
    cfg.collector.cpu_blocking_pause_seconds = 0.0
    cfg.collector.docker = docker
    return cfg


def test_manager_builds_collectors(proc_root, sys_root):
    manager = CollectorManager(_config(proc_root, sys_root, docker=True), runtime=StaticRuntime([]))
    names = [c.name for c in manager.collectors]
    assert names == ["cpu", "memory", "disks", "network", "disk_io", "temperature", "docker"]


def test_manager_without_docker(proc_root, sys_root):
    manager = CollectorManager(_config(proc_root, sys_root), probes=[])
    assert "docker" not in [c.name for c in manager.collectors]
    data = json.loads(manager.collect_json())
    assert "docker" not in data
    assert data["memory"]["usage_percent"] == 40.0


def test_manager_refresh_probe_cache(proc_root, sys_root):
    manager = CollectorManager(_config(proc_root, sys_root), probes=[StaticProbe()])
    assert manager.probe_cache.get().available is False
    manager.refresh_probe_cache()
    snapshot = manager.collect_snapshot()
    assert snapshot.internet_speed.available is True
    assert snapshot.internet_speed.download_mbps == 80.0
    assert snapshot.internet_speed.method == "static"


def test_manager_start_stop_background(proc_root, sys_root):
    cfg = _config(proc_root, sys_root, cpu_mode="background")
    cfg.collector.cpu_interval_seconds = 0.01
    cfg.probe.enabled = False
    manager = CollectorManager(cfg, probes=[])
    received = []
    manager.add_sink(received.append)
    cfg.otel.interval_seconds = 0.01
    manager.start()
    try:
        for _ in range(200):
            if received:
                break
            manager._stop_event.wait(0.01)
    finally:
        manager.stop()
    assert received
    assert manager._thread is None
