"""Thread-safe cell holding the latest throughput probe result."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


@dataclass(frozen=True)
class ProbeResult:
    """One complete probe measurement.

    The default instance is the unmeasured state.
    """

    download_mbps: float = 0.0
    upload_mbps: float = 0.0
    available: bool = False
    measured_at: datetime | None = None
    method: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "available": self.available,
            "download_mbps": round(self.download_mbps, 2),
            "upload_mbps": round(self.upload_mbps, 2),
            "last_checked": self.measured_at.strftime(TIMESTAMP_FORMAT) if self.measured_at else "",
        }


class ProbeCache:
    """Holds one :class:`ProbeResult`, replaced wholesale on every write.

    The lock only guards the reference swap, so readers never wait on a
    running probe.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._result = ProbeResult()

    def get(self) -> ProbeResult:
        with self._lock:
            return self._result

    def set(self, result: ProbeResult) -> None:
        with self._lock:
            self._result = result
