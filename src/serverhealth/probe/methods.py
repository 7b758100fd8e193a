"""Internet throughput measurement methods."""

from __future__ import annotations

import abc
import logging
import time
import urllib.request
from dataclasses import dataclass
from typing import Callable

from ..collector.sources import run_command, which

logger = logging.getLogger(__name__)

DEFAULT_DOWNLOAD_URL = "https://speed.cloudflare.com/__down?bytes=5000000"
CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class Measurement:
    download_mbps: float = 0.0
    upload_mbps: float = 0.0

    @property
    def usable(self) -> bool:
        return self.download_mbps > 0.0 or self.upload_mbps > 0.0


class ThroughputProbe(abc.ABC):
    """One way of measuring internet throughput."""

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Method name recorded with the result."""

    @abc.abstractmethod
    def measure(self) -> Measurement | None:
        """Return a measurement, or ``None`` if this method is unavailable."""


def _parse_rate(text: str) -> float:
    parts = text.split()
    if not parts:
        return 0.0
    try:
        return float(parts[0])
    except ValueError:
        return 0.0


def parse_speedtest_simple(output: str) -> Measurement:
    """Parse ``speedtest-cli --simple`` output.

    Expected lines::

        Ping: 12.3 ms
        Download: 93.41 Mbit/s
        Upload: 11.02 Mbit/s
    """
    download = upload = 0.0
    for line in output.splitlines():
        line = line.strip()
        if line.startswith("Download:"):
            download = _parse_rate(line[len("Download:"):])
        elif line.startswith("Upload:"):
            upload = _parse_rate(line[len("Upload:"):])
    return Measurement(download_mbps=download, upload_mbps=upload)


class SpeedtestCliProbe(ThroughputProbe):
    """Runs the ``speedtest-cli`` utility when it is installed."""

    def __init__(self, command: str = "speedtest-cli", timeout: float | None = 120.0) -> None:
        self._command = command
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "speedtest-cli"

    def measure(self) -> Measurement | None:
        if which(self._command) is None:
            logger.debug("%s not installed", self._command)
            return None
        output = run_command([self._command, "--simple"], timeout=self._timeout)
        if output is None:
            return None
        return parse_speedtest_simple(output)


class DownloadProbe(ThroughputProbe):
    """Downloads a fixed-size payload and derives download throughput.

    The transfer stops at *timeout* seconds; whatever arrived by then is
    still measured. Upload is not measured.
    """

    def __init__(
        self,
        url: str = DEFAULT_DOWNLOAD_URL,
        timeout: float = 20.0,
        opener: Callable[..., object] = urllib.request.urlopen,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._opener = opener
        self._clock = clock

    @property
    def name(self) -> str:
        return "download"

    def measure(self) -> Measurement | None:
        received = 0
        start = self._clock()
        deadline = start + self._timeout
        try:
            request = urllib.request.Request(self._url, headers={"User-Agent": "serverhealth"})
            with self._opener(request, timeout=self._timeout) as response:
                while self._clock() < deadline:
                    chunk = response.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    received += len(chunk)
        except (OSError, ValueError) as exc:
            if received == 0:
                logger.info("Download probe failed: %s", exc)
                return None
            logger.debug("Download probe interrupted after %d bytes: %s", received, exc)

        elapsed = self._clock() - start
        if received == 0 or elapsed <= 0:
            return Measurement()
        return Measurement(download_mbps=received * 8.0 / elapsed / 1e6)
