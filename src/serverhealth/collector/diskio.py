"""Per-device I/O counters from /proc/diskstats.

Only whole devices are reported. Partitions are recognised by a digit
anywhere in the device name, which also drops disks such as ``nvme0n1``
and ``mmcblk0``. This is a known limitation kept for compatibility with
existing dashboards.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

from .base import ListCollector
from .sources import read_lines

VIRTUAL_PREFIXES = ("loop", "ram")

# column offsets after major, minor, name
READS_COMPLETED, READ_SECTORS, WRITES_COMPLETED, WRITE_SECTORS = 0, 2, 4, 6


@dataclass(frozen=True)
class DiskIO:
    name: str
    reads_completed: int = 0
    writes_completed: int = 0
    read_sectors: int = 0
    write_sectors: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "reads_completed": self.reads_completed,
            "writes_completed": self.writes_completed,
            "read_sectors": self.read_sectors,
            "write_sectors": self.write_sectors,
        }


def is_whole_device(name: str) -> bool:
    if name.startswith(VIRTUAL_PREFIXES):
        return False
    return not any(c.isdigit() for c in name)


def parse_diskstats(lines: list[str]) -> list[DiskIO]:
    devices: list[DiskIO] = []
    for line in lines:
        parts = line.split()
        if len(parts) < 3 + WRITE_SECTORS + 1:
            continue
        name = parts[2]
        if not is_whole_device(name):
            continue
        stats = parts[3:]
        try:
            devices.append(DiskIO(
                name=name,
                reads_completed=int(stats[READS_COMPLETED]),
                writes_completed=int(stats[WRITES_COMPLETED]),
                read_sectors=int(stats[READ_SECTORS]),
                write_sectors=int(stats[WRITE_SECTORS]),
            ))
        except ValueError:
            continue
    return devices


class DiskIOCollector(ListCollector):
    """Collects cumulative I/O counters for whole block devices."""

    def __init__(self, proc_path: str = "/proc") -> None:
        self._proc_path = proc_path

    @property
    def name(self) -> str:
        return "disk_io"

    def collect(self) -> tuple[DiskIO, ...]:
        return tuple(parse_diskstats(read_lines(os.path.join(self._proc_path, "diskstats"))))
