"""Fake /proc and /sys trees shared by the test modules."""

from __future__ import annotations

from collections import namedtuple
from pathlib import Path

import pytest

STAT = "cpu  100 0 50 850 0 0 0 0 0 0\ncpu0 50 0 25 425 0 0 0 0 0 0\n"

MEMINFO = """\
MemTotal:        1000000 kB
MemFree:          400000 kB
MemAvailable:     600000 kB
Buffers:           10000 kB
Cached:           150000 kB
"""

MOUNTS = """\
/dev/sda1 / ext4 rw,relatime 0 0
proc /proc proc rw,nosuid 0 0
sysfs /sys sysfs rw 0 0
tmpfs /run tmpfs rw 0 0
/dev/sdb1 /data xfs rw 0 0
overlay /var/lib/docker/overlay2/x/merged overlay rw 0 0
//nas/share /mnt/nas cifs rw 0 0
"""

NET_DEV = """\
Inter-|   Receive                                                |  Transmit
 face |bytes    packets errs drop fifo frame compressed multicast|bytes    packets errs drop fifo colls carrier compressed
    lo:  123456     789    0    0    0     0          0         0   123456     789    0    0    0     0       0          0
  eth0: 1000000    2000    0    0    0     0          0         0   500000    1500    0    0    0     0       0          0
 wlan0:   30000     300    1    2    0     0          0         0    20000     200    0    0    0     0       0          0
"""

DISKSTATS = """\
   7       0 loop0 10 0 20 0 0 0 0 0 0 0 0
   1       0 ram0 0 0 0 0 0 0 0 0 0 0 0
   8       0 sda 1000 10 80000 500 2000 20 160000 900 0 1200 1400
   8       1 sda1 900 10 70000 400 1800 20 150000 800 0 1000 1200
 259       0 nvme0n1 5000 0 400000 100 6000 0 480000 200 0 300 300
   8      16 sdb 300 0 2400 50 400 0 3200 60 0 100 110
"""

Usage = namedtuple("Usage", "total used free percent")


def write_proc(root: Path, **files: str) -> Path:
    """Write files under *root*; keyword ``net_dev`` maps to ``net/dev``."""
    defaults = {
        "stat": STAT,
        "meminfo": MEMINFO,
        "mounts": MOUNTS,
        "net_dev": NET_DEV,
        "diskstats": DISKSTATS,
    }
    defaults.update(files)
    for name, content in defaults.items():
        if content is None:
            continue
        path = root / name.replace("_", "/")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return root


def write_thermal(root: Path, zones: dict[str, tuple[str | None, str | None]]) -> Path:
    """Create ``class/thermal/<zone>/{temp,type}``; None leaves the file out."""
    base = root / "class" / "thermal"
    base.mkdir(parents=True, exist_ok=True)
    for zone, (temp, label) in zones.items():
        zone_dir = base / zone
        zone_dir.mkdir()
        if temp is not None:
            (zone_dir / "temp").write_text(temp + "\n")
        if label is not None:
            (zone_dir / "type").write_text(label + "\n")
    return root


@pytest.fixture
def proc_root(tmp_path: Path) -> Path:
    return write_proc(tmp_path / "proc")


@pytest.fixture
def sys_root(tmp_path: Path) -> Path:
    root = write_thermal(tmp_path / "sys", {
        "thermal_zone0": ("45000", "x86_pkg_temp"),
        "thermal_zone1": ("38500", None),
    })
    (root / "class" / "thermal" / "cooling_device0").mkdir()
    return root


@pytest.fixture
def fake_usage():
    """Disk usage query: every mount is 1 GiB with 256 MiB used."""
    calls: list[str] = []

    def usage(path: str) -> Usage:
        calls.append(path)
        return Usage(total=1024 ** 3, used=256 * 1024 ** 2, free=768 * 1024 ** 2, percent=25.0)

    usage.calls = calls
    return usage
