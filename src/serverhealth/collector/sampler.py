"""Background CPU delta sampler.

Keeps a rolling pair of timestamped /proc/stat readings so request handlers
can read the latest utilisation without sleeping.
"""

from __future__ import annotations

import logging
import threading
import time

from .cpu import CpuInfo, CpuSample, compute_cpu_info, read_cpu_sample

logger = logging.getLogger(__name__)


class CpuSampler:
    """Periodically samples CPU counters on a daemon thread.

    After each tick the utilisation over the last interval is published.
    A counter reset (total or idle going backwards) publishes a zero value
    for that tick and the newer reading becomes the baseline.
    """

    def __init__(self, proc_path: str = "/proc", interval_seconds: float = 1.0) -> None:
        self._proc_path = proc_path
        self._interval = interval_seconds
        self._lock = threading.Lock()
        self._latest = CpuInfo()
        self._previous: tuple[float, CpuSample] | None = None
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()

    def latest(self) -> CpuInfo:
        with self._lock:
            return self._latest

    def sample_once(self) -> CpuInfo:
        """Take one reading and publish the rate against the previous one."""
        now = time.monotonic()
        current = read_cpu_sample(self._proc_path)
        previous = self._previous

        if not current.valid:
            info = CpuInfo()
            self._previous = None
        elif previous is None:
            # first reading only primes the pair
            self._previous = (now, current)
            return self.latest()
        else:
            info = compute_cpu_info(previous[1], current)
            if current.total < previous[1].total or current.idle < previous[1].idle:
                logger.info("CPU counters went backwards, re-priming sampler")
            self._previous = (now, current)

        with self._lock:
            self._latest = info
        return info

    def _run(self) -> None:
        """Background thread loop."""
        while not self._stop_event.is_set():
            try:
                self.sample_once()
            except Exception:
                logger.exception("CPU sampler tick failed")
            self._stop_event.wait(self._interval)

    def start(self) -> None:
        if self._thread is not None:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="cpu-sampler", daemon=True)
        self._thread.start()
        logger.info("CpuSampler started (interval=%.1fs)", self._interval)

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None
        logger.info("CpuSampler stopped")
