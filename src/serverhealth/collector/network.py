"""Network interface counters from /proc/net/dev."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

from .base import ListCollector
from .sources import read_lines

LOOPBACK = "lo"

# column offsets after the interface name
RX_BYTES, RX_PACKETS, TX_BYTES, TX_PACKETS = 0, 1, 8, 9


@dataclass(frozen=True)
class NetworkInterface:
    name: str
    rx_bytes: int = 0
    tx_bytes: int = 0
    rx_packets: int = 0
    tx_packets: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "rx_bytes": self.rx_bytes,
            "tx_bytes": self.tx_bytes,
            "rx_packets": self.rx_packets,
            "tx_packets": self.tx_packets,
        }


def parse_net_dev(lines: list[str]) -> list[NetworkInterface]:
    """Parse the per-interface table, skipping its two header lines.

    Counters are cumulative; loopback and short or non-numeric rows are
    dropped.
    """
    interfaces: list[NetworkInterface] = []
    for line in lines[2:]:
        name, sep, rest = line.partition(":")
        name = name.strip()
        if not sep or not name or name == LOOPBACK:
            continue
        stats = rest.split()
        if len(stats) <= TX_PACKETS:
            continue
        try:
            interfaces.append(NetworkInterface(
                name=name,
                rx_bytes=int(stats[RX_BYTES]),
                tx_bytes=int(stats[TX_BYTES]),
                rx_packets=int(stats[RX_PACKETS]),
                tx_packets=int(stats[TX_PACKETS]),
            ))
        except ValueError:
            continue
    return interfaces


class NetworkCollector(ListCollector):
    """Collects cumulative per-interface traffic counters."""

    def __init__(self, proc_path: str = "/proc") -> None:
        self._proc_path = proc_path

    @property
    def name(self) -> str:
        return "network"

    def collect(self) -> tuple[NetworkInterface, ...]:
        return tuple(parse_net_dev(read_lines(os.path.join(self._proc_path, "net", "dev"))))
