"""Live, per-request views of disk partitions and network interfaces."""
import logging
from dataclasses import dataclass, asdict
from typing import Any, Dict, List

import psutil

logger = logging.getLogger(__name__)

# Pseudo and virtual filesystems that never hold user data
IGNORED_FSTYPES = frozenset(
    ["devfs", "autofs", "devtmpfs", "tmpfs", "proc", "sysfs", "squashfs"]
)
LOOPBACK_INTERFACES = frozenset(["lo", "lo0"])


class DeviceQueryError(Exception):
    """Raised when the OS cannot enumerate partitions or interfaces."""


@dataclass(frozen=True)
class DiskDevice:
    device: str
    mountpoint: str
    fstype: str
    total_bytes: int
    used_bytes: int
    free_bytes: int
    used_percent: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class NetworkStats:
    interface: str
    bytes_sent: int
    bytes_recv: int
    packets_sent: int
    packets_recv: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def list_disks() -> List[DiskDevice]:
    try:
        partitions = psutil.disk_partitions(all=False)
    except Exception as e:
        raise DeviceQueryError(str(e)) from e

    devices: List[DiskDevice] = []
    seen = set()
    for p in partitions:
        # First occurrence of a mountpoint wins
        if p.mountpoint in seen or p.fstype in IGNORED_FSTYPES:
            continue
        seen.add(p.mountpoint)

        try:
            usage = psutil.disk_usage(p.mountpoint)
        except Exception as e:
            logger.debug(f"Skipping {p.mountpoint}: {e}")
            continue
        if usage.total == 0:
            continue

        devices.append(
            DiskDevice(
                device=p.device,
                mountpoint=p.mountpoint,
                fstype=p.fstype,
                total_bytes=int(usage.total),
                used_bytes=int(usage.used),
                free_bytes=int(usage.free),
                used_percent=float(usage.percent),
            )
        )
    return devices


def list_network() -> List[NetworkStats]:
    try:
        counters = psutil.net_io_counters(pernic=True)
    except Exception as e:
        raise DeviceQueryError(str(e)) from e

    stats: List[NetworkStats] = []
    for name, io in counters.items():
        if name in LOOPBACK_INTERFACES or (io.bytes_sent == 0 and io.bytes_recv == 0):
            continue
        stats.append(
            NetworkStats(
                interface=name,
                bytes_sent=int(io.bytes_sent),
                bytes_recv=int(io.bytes_recv),
                packets_sent=int(io.packets_sent),
                packets_recv=int(io.packets_recv),
            )
        )
    return stats
