"""Background refresher that keeps the probe cache current."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Sequence

from .cache import ProbeCache, ProbeResult
from .methods import ThroughputProbe

logger = logging.getLogger(__name__)


class ProbeRefresher:
    """Runs the throughput probes once at start, then every *interval_seconds*.

    Probes are tried in order and the first usable measurement wins. The
    refresher is the only writer of *cache*; a failed cycle stores the
    unavailable result and the next cycle retries.
    """

    def __init__(
        self,
        cache: ProbeCache,
        probes: Sequence[ThroughputProbe],
        interval_seconds: float = 3600.0,
    ) -> None:
        self._cache = cache
        self._probes = list(probes)
        self._interval = interval_seconds
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()

    def _measure(self) -> ProbeResult:
        for probe in self._probes:
            try:
                measurement = probe.measure()
            except Exception:
                logger.exception("Probe %s raised", probe.name)
                continue
            if measurement is not None and measurement.usable:
                return ProbeResult(
                    download_mbps=measurement.download_mbps,
                    upload_mbps=measurement.upload_mbps,
                    available=True,
                    method=probe.name,
                )
            logger.info("Probe %s gave no usable rates", probe.name)
        return ProbeResult()

    def refresh(self) -> ProbeResult:
        """Run one probe cycle synchronously and publish its result."""
        measured = self._measure()
        result = ProbeResult(
            download_mbps=measured.download_mbps,
            upload_mbps=measured.upload_mbps,
            available=measured.available,
            measured_at=datetime.now(timezone.utc),
            method=measured.method,
        )
        self._cache.set(result)
        if result.available:
            logger.info(
                "Internet speed via %s: down=%.2f Mbit/s up=%.2f Mbit/s",
                result.method,
                result.download_mbps,
                result.upload_mbps,
            )
        else:
            logger.warning("Internet speed unavailable this cycle")
        return result

    def _run(self) -> None:
        """Background thread loop."""
        while not self._stop_event.is_set():
            try:
                self.refresh()
            except Exception:
                logger.exception("Probe refresh cycle failed")
            self._stop_event.wait(self._interval)

    def start(self) -> None:
        if self._thread is not None:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="probe-refresher", daemon=True)
        self._thread.start()
        logger.info("ProbeRefresher started (interval=%.0fs)", self._interval)

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None
        logger.info("ProbeRefresher stopped")
