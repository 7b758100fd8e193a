"""Disk space collector for mounted block-device filesystems."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Callable

import psutil

from .base import ListCollector
from .sources import read_lines

logger = logging.getLogger(__name__)

PSEUDO_FILESYSTEMS = frozenset({
    "proc",
    "sysfs",
    "tmpfs",
    "devtmpfs",
    "cgroup",
    "cgroup2",
    "devpts",
    "overlay",
    "none",
})

BLOCK_DEVICE_PREFIX = "/dev/"


@dataclass(frozen=True)
class DiskInfo:
    path: str
    total_kb: int = 0
    used_kb: int = 0
    free_kb: int = 0
    usage_percent: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "total_kb": self.total_kb,
            "used_kb": self.used_kb,
            "free_kb": self.free_kb,
            "usage_percent": round(self.usage_percent, 2),
        }


def _unescape_mount(path: str) -> str:
    """Decode the octal escapes the kernel uses in /proc/mounts (``\\040`` etc.)."""
    if "\\" not in path:
        return path
    out = []
    i = 0
    while i < len(path):
        chunk = path[i + 1:i + 4]
        if path[i] == "\\" and len(chunk) == 3 and all(c in "01234567" for c in chunk):
            out.append(chr(int(chunk, 8)))
            i += 4
        else:
            out.append(path[i])
            i += 1
    return "".join(out)


def parse_mounts(lines: list[str]) -> list[str]:
    """Return mount points backed by real block devices, in table order."""
    mounts: list[str] = []
    seen: set[str] = set()
    for line in lines:
        parts = line.split()
        if len(parts) < 3:
            continue
        device, mount, fstype = parts[0], _unescape_mount(parts[1]), parts[2]
        if fstype in PSEUDO_FILESYSTEMS:
            continue
        if not device.startswith(BLOCK_DEVICE_PREFIX):
            continue
        if mount in seen:
            continue
        seen.add(mount)
        mounts.append(mount)
    return mounts


def disk_info_from_usage(path: str, total_bytes: int, used_bytes: int) -> DiskInfo:
    """Build a :class:`DiskInfo`; free space includes root-reserved blocks."""
    total_kb = total_bytes // 1024
    free_kb = (total_bytes - used_bytes) // 1024
    used_kb = total_kb - free_kb
    usage = 100.0 * used_kb / total_kb if total_kb > 0 else 0.0
    return DiskInfo(
        path=path,
        total_kb=total_kb,
        used_kb=used_kb,
        free_kb=free_kb,
        usage_percent=usage,
    )


class DiskSpaceCollector(ListCollector):
    """Collects space usage for every mounted block-device filesystem.

    *usage* is the filesystem statistics query, ``psutil.disk_usage`` by
    default. A failed query drops only that mount point.
    """

    def __init__(
        self,
        proc_path: str = "/proc",
        host_root: str = "",
        usage: Callable[[str], Any] = psutil.disk_usage,
    ) -> None:
        self._proc_path = proc_path
        self._host_root = host_root
        self._usage = usage

    @property
    def name(self) -> str:
        return "disks"

    def _query_path(self, mount: str) -> str:
        if not self._host_root:
            return mount
        return os.path.join(self._host_root, mount.lstrip("/"))

    def collect(self) -> tuple[DiskInfo, ...]:
        result: list[DiskInfo] = []
        for mount in parse_mounts(read_lines(os.path.join(self._proc_path, "mounts"))):
            try:
                usage = self._usage(self._query_path(mount))
            except OSError as exc:
                logger.debug("Skipping %s: %s", mount, exc)
                continue
            result.append(disk_info_from_usage(mount, usage.total, usage.used))
        return tuple(result)
