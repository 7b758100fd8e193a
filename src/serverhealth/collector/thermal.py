"""Thermal zone temperatures from /sys/class/thermal."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .base import ListCollector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ThermalZone:
    name: str
    temperature_celsius: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "temperature_celsius": round(self.temperature_celsius, 2),
        }


def read_zone(zone_dir: Path) -> ThermalZone | None:
    """Read one ``thermal_zoneN`` directory; ``None`` if its temp is unusable."""
    try:
        raw = int((zone_dir / "temp").read_text().split()[0])
    except (OSError, ValueError, IndexError):
        return None

    label = zone_dir.name
    try:
        label = (zone_dir / "type").read_text().strip() or label
    except (OSError, ValueError):
        pass
    return ThermalZone(name=label, temperature_celsius=raw / 1000.0)


class ThermalCollector(ListCollector):
    """Collects temperatures of every readable thermal zone."""

    def __init__(self, sys_path: str = "/sys") -> None:
        self._base = Path(sys_path) / "class" / "thermal"

    @property
    def name(self) -> str:
        return "temperature"

    def collect(self) -> tuple[ThermalZone, ...]:
        try:
            entries = sorted(p for p in self._base.iterdir() if "thermal_zone" in p.name)
        except OSError as exc:
            logger.debug("No thermal zones under %s: %s", self._base, exc)
            return ()

        zones = []
        for entry in entries:
            zone = read_zone(entry)
            if zone is not None:
                zones.append(zone)
        return tuple(zones)
