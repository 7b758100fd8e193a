"""CPU utilisation collector based on /proc/stat delta sampling."""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .base import BaseCollector
from .sources import read_text

if TYPE_CHECKING:
    from .sampler import CpuSampler

logger = logging.getLogger(__name__)

# user nice system idle
MIN_COUNTERS = 4
IDLE_INDEX = 3


@dataclass(frozen=True)
class CpuSample:
    """One reading of the aggregate ``cpu`` counters."""

    counters: tuple[int, ...] = ()

    @property
    def valid(self) -> bool:
        return len(self.counters) >= MIN_COUNTERS

    @property
    def total(self) -> int:
        return sum(self.counters)

    @property
    def idle(self) -> int:
        return self.counters[IDLE_INDEX] if self.valid else 0


@dataclass(frozen=True)
class CpuInfo:
    usage_percent: float = 0.0
    idle_percent: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "usage_percent": round(self.usage_percent, 2),
            "idle_percent": round(self.idle_percent, 2),
        }


def parse_cpu_sample(text: str) -> CpuSample:
    """Parse the first line of /proc/stat into a :class:`CpuSample`.

    Anything other than a ``cpu`` label followed by integers yields an
    empty sample.
    """
    lines = text.splitlines()
    if not lines:
        return CpuSample()
    fields = lines[0].split()
    if not fields or fields[0] != "cpu":
        return CpuSample()
    try:
        counters = tuple(int(v) for v in fields[1:])
    except ValueError:
        return CpuSample()
    if any(v < 0 for v in counters):
        return CpuSample()
    return CpuSample(counters)


def compute_cpu_info(first: CpuSample, second: CpuSample) -> CpuInfo:
    """Derive utilisation from two readings taken some interval apart.

    Returns a zero :class:`CpuInfo` when either sample is malformed or the
    counters did not advance (or went backwards after a reset).
    """
    if not first.valid or not second.valid:
        return CpuInfo()
    d_total = second.total - first.total
    d_idle = second.idle - first.idle
    if d_total <= 0 or d_idle < 0:
        return CpuInfo()
    idle = min(100.0, 100.0 * d_idle / d_total)
    return CpuInfo(usage_percent=100.0 - idle, idle_percent=idle)


def read_cpu_sample(proc_path: str) -> CpuSample:
    return parse_cpu_sample(read_text(os.path.join(proc_path, "stat")))


class CpuCollector(BaseCollector):
    """Collects aggregate CPU usage.

    Without a *sampler* each call blocks for *pause* seconds between two
    readings. With a running :class:`CpuSampler` the latest precomputed
    value is returned immediately.
    """

    def __init__(
        self,
        proc_path: str = "/proc",
        pause: float = 0.2,
        sampler: CpuSampler | None = None,
    ) -> None:
        self._proc_path = proc_path
        self._pause = pause
        self._sampler = sampler

    @property
    def name(self) -> str:
        return "cpu"

    def empty(self) -> CpuInfo:
        return CpuInfo()

    def collect(self) -> CpuInfo:
        if self._sampler is not None:
            return self._sampler.latest()
        first = read_cpu_sample(self._proc_path)
        time.sleep(self._pause)
        second = read_cpu_sample(self._proc_path)
        info = compute_cpu_info(first, second)
        if not first.valid or not second.valid:
            logger.debug("Malformed cpu line in %s/stat", self._proc_path)
        return info
