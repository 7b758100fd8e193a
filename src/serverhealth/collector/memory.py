"""Memory collector for /proc/meminfo."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

from .base import BaseCollector
from .sources import read_lines

_KEYS = {
    "MemTotal:": "total_kb",
    "MemFree:": "free_kb",
    "MemAvailable:": "available_kb",
}


@dataclass(frozen=True)
class MemoryInfo:
    total_kb: int = 0
    free_kb: int = 0
    available_kb: int = 0
    used_kb: int = 0
    usage_percent: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_kb": self.total_kb,
            "used_kb": self.used_kb,
            "free_kb": self.free_kb,
            "available_kb": self.available_kb,
            "usage_percent": round(self.usage_percent, 2),
        }


def memory_info_from_values(total_kb: int, free_kb: int, available_kb: int) -> MemoryInfo:
    usage = 100.0 * (total_kb - available_kb) / total_kb if total_kb > 0 else 0.0
    return MemoryInfo(
        total_kb=total_kb,
        free_kb=free_kb,
        available_kb=available_kb,
        used_kb=total_kb - free_kb,
        usage_percent=usage,
    )


def parse_meminfo(lines: list[str]) -> MemoryInfo:
    """Parse ``Key: value kB`` lines. Missing or garbled keys count as 0."""
    values = {"total_kb": 0, "free_kb": 0, "available_kb": 0}
    for line in lines:
        parts = line.split()
        if len(parts) < 2 or parts[0] not in _KEYS:
            continue
        try:
            values[_KEYS[parts[0]]] = int(parts[1])
        except ValueError:
            continue
    return memory_info_from_values(**values)


class MemoryCollector(BaseCollector):
    """Collects memory usage from /proc/meminfo."""

    def __init__(self, proc_path: str = "/proc") -> None:
        self._proc_path = proc_path

    @property
    def name(self) -> str:
        return "memory"

    def empty(self) -> MemoryInfo:
        return MemoryInfo()

    def collect(self) -> MemoryInfo:
        return parse_meminfo(read_lines(os.path.join(self._proc_path, "meminfo")))
