"""Host metric sampling.

`MetricSampler.sample()` reads the current CPU, memory, disk, network and
uptime figures through psutil and reduces them into one immutable `Snapshot`.
Every OS query is isolated: a failing source leaves its fields at zero/empty
and the rest of the snapshot is still produced.
"""
import os
import socket
import platform
import logging
import time
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional, Set

import psutil

logger = logging.getLogger(__name__)

GIB = 1024.0 ** 3


class DiskUsage(NamedTuple):
    used: int
    free: int
    total: int


ZERO_DISK = DiskUsage(used=0, free=0, total=0)


def _percent(used: int, total: int, digits: int = 2) -> float:
    if total <= 0:
        return 0.0
    return round(used / total * 100.0, digits)


def _gib(value: int) -> float:
    return round(value / GIB, 2)


def format_uptime(seconds: int) -> str:
    """Format seconds as e.g. ``3h4m5s`` (hours are not rolled into days)."""
    seconds = int(seconds)
    if seconds <= 0:
        return "0s"
    hours, rem = divmod(seconds, 3600)
    minutes, secs = divmod(rem, 60)
    if hours:
        return f"{hours}h{minutes}m{secs}s"
    if minutes:
        return f"{minutes}m{secs}s"
    return f"{secs}s"


@dataclass(frozen=True)
class Snapshot:
    timestamp: int
    hostname: str = ""
    platform: str = ""
    os: str = ""
    kernel: str = ""
    cpu_usage_percent: float = 0.0
    cpu_cores: int = 0
    cpu_threads: int = 0
    memory_used_bytes: int = 0
    memory_total_bytes: int = 0
    disk_used_bytes: int = 0
    disk_free_bytes: int = 0
    disk_total_bytes: int = 0
    network_bytes_sent: int = 0
    network_bytes_recv: int = 0
    uptime_seconds: int = 0

    @property
    def memory_percent(self) -> float:
        return _percent(self.memory_used_bytes, self.memory_total_bytes)

    @property
    def disk_percent(self) -> float:
        # Same formula as psutil.disk_usage().percent: blocks reserved for
        # root count neither as used nor as free
        return _percent(
            self.disk_used_bytes, self.disk_used_bytes + self.disk_free_bytes, digits=1
        )

    @property
    def uptime(self) -> str:
        return format_uptime(self.uptime_seconds)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data.update(
            {
                "memory_percent": self.memory_percent,
                "memory_used_gib": _gib(self.memory_used_bytes),
                "memory_total_gib": _gib(self.memory_total_bytes),
                "disk_percent": self.disk_percent,
                "disk_used_gib": _gib(self.disk_used_bytes),
                "disk_total_gib": _gib(self.disk_total_bytes),
                "uptime": self.uptime,
            }
        )
        return data


def default_disk_candidates() -> List[str]:
    """Mount points to try for the primary disk, most specific first.

    The root filesystem is not always the volume holding user data (macOS
    keeps it on a separate, read-only system volume), so the platform's data
    volume goes first, then the root, then the home directory.
    """
    candidates = []
    system = platform.system()
    if system == "Darwin":
        candidates.append("/System/Volumes/Data")
    elif system == "Windows":
        candidates.append(os.environ.get("SystemDrive", "C:") + "\\")
    candidates.append(os.path.abspath(os.sep))
    candidates.append(os.path.expanduser("~"))

    ordered: List[str] = []
    for path in candidates:
        if path not in ordered:
            ordered.append(path)
    return ordered


def resolve_primary_disk(
    candidates: Iterable[str], usage: Optional[Callable[[str], Any]] = None
) -> DiskUsage:
    """Return usage of the first candidate reporting a non-zero total.

    Candidates that raise are skipped. When none qualifies the result is a
    zero reading, never an error.
    """
    usage = usage or psutil.disk_usage
    for path in candidates:
        try:
            du = usage(path)
        except Exception as e:
            logger.debug(f"Disk candidate {path} unavailable: {e}")
            continue
        if du.total > 0:
            return DiskUsage(used=int(du.used), free=int(du.free), total=int(du.total))
    return ZERO_DISK


def read_platform_name() -> str:
    # Prefer the distribution name (PRETTY_NAME) over the bare system name
    if os.path.exists("/etc/os-release"):
        with open("/etc/os-release") as f:
            for line in f:
                if line.startswith("PRETTY_NAME="):
                    return line.strip().split("=", 1)[1].strip().strip('"')
    return platform.system()


class MetricSampler:
    def __init__(
        self,
        cpu_window: float = 1.0,
        disk_candidates: Optional[Iterable[str]] = None,
    ):
        self.cpu_window = float(cpu_window)
        self.disk_candidates = (
            list(disk_candidates)
            if disk_candidates is not None
            else default_disk_candidates()
        )
        self._last_timestamp = 0
        self._failed_sources: Set[str] = set()

    def _query(self, source: str, func: Callable[[], Any], default: Any) -> Any:
        try:
            value = func()
        except Exception as e:
            if source in self._failed_sources:
                logger.debug(f"Reading {source} failed again: {e}")
            else:
                self._failed_sources.add(source)
                logger.warning(f"Could not read {source}, using default: {e}")
            return default
        if source in self._failed_sources:
            self._failed_sources.discard(source)
            logger.info(f"Reading {source} recovered")
        return value

    def _next_timestamp(self) -> int:
        # Never go backwards, even if the wall clock is stepped
        ts = max(int(time.time()), self._last_timestamp)
        self._last_timestamp = ts
        return ts

    def sample(self) -> Snapshot:
        # Blocks for cpu_window seconds; an instantaneous reading is meaningless
        cpu_usage = self._query(
            "cpu_percent",
            lambda: float(psutil.cpu_percent(interval=self.cpu_window)),
            0.0,
        )
        cpu_cores = self._query(
            "cpu_count", lambda: psutil.cpu_count(logical=False) or 0, 0
        )
        cpu_threads = self._query(
            "cpu_count_logical", lambda: psutil.cpu_count(logical=True) or 0, 0
        )

        memory = self._query("memory", psutil.virtual_memory, None)
        disk = self._query(
            "disk",
            lambda: resolve_primary_disk(self.disk_candidates),
            ZERO_DISK,
        )
        net = self._query(
            "network", lambda: psutil.net_io_counters(pernic=False), None
        )
        boot_time = self._query("boot_time", psutil.boot_time, None)

        timestamp = self._next_timestamp()
        uptime = max(0, int(timestamp - boot_time)) if boot_time else 0

        return Snapshot(
            timestamp=timestamp,
            hostname=self._query("hostname", socket.gethostname, ""),
            platform=self._query("platform", read_platform_name, ""),
            os=self._query("os", lambda: platform.system().lower(), ""),
            kernel=self._query("kernel", platform.release, ""),
            cpu_usage_percent=cpu_usage,
            cpu_cores=cpu_cores,
            cpu_threads=cpu_threads,
            memory_used_bytes=int(memory.used) if memory else 0,
            memory_total_bytes=int(memory.total) if memory else 0,
            disk_used_bytes=disk.used,
            disk_free_bytes=disk.free,
            disk_total_bytes=disk.total,
            network_bytes_sent=int(net.bytes_sent) if net else 0,
            network_bytes_recv=int(net.bytes_recv) if net else 0,
            uptime_seconds=uptime,
        )
