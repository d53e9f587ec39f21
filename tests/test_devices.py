from types import SimpleNamespace

import psutil
import pytest

from hostpulse.devices import DeviceQueryError, list_disks, list_network


def _part(device, mountpoint, fstype="ext4"):
    return SimpleNamespace(device=device, mountpoint=mountpoint, fstype=fstype, opts="rw")


def _usage(total, used):
    return SimpleNamespace(total=total, used=used, free=total - used, percent=used / total * 100 if total else 0.0)


def _nic(sent, recv, psent=1, precv=1):
    return SimpleNamespace(bytes_sent=sent, bytes_recv=recv, packets_sent=psent, packets_recv=precv)


def _raise(*args, **kwargs):
    raise RuntimeError("partition table unavailable")


def test_duplicate_mountpoints_keep_first_seen(monkeypatch):
    parts = [
        _part("/dev/sda1", "/"),
        _part("/dev/sdb1", "/", "xfs"),
        _part("/dev/sdc1", "/data"),
    ]
    monkeypatch.setattr(psutil, "disk_partitions", lambda all=False: parts)
    monkeypatch.setattr(psutil, "disk_usage", lambda path: _usage(1000, 400))

    devices = list_disks()
    assert [(d.device, d.mountpoint) for d in devices] == [
        ("/dev/sda1", "/"),
        ("/dev/sdc1", "/data"),
    ]
    assert devices[0].to_dict() == {
        "device": "/dev/sda1",
        "mountpoint": "/",
        "fstype": "ext4",
        "total_bytes": 1000,
        "used_bytes": 400,
        "free_bytes": 600,
        "used_percent": 40.0,
    }


def test_pseudo_filesystems_are_skipped(monkeypatch):
    parts = [
        _part("devfs", "/dev", "devfs"),
        _part("map auto_home", "/System/Volumes/Data/home", "autofs"),
        _part("tmpfs", "/run", "tmpfs"),
        _part("/dev/disk1s1", "/System/Volumes/Data", "apfs"),
    ]
    monkeypatch.setattr(psutil, "disk_partitions", lambda all=False: parts)
    monkeypatch.setattr(psutil, "disk_usage", lambda path: _usage(1000, 1))

    assert [d.fstype for d in list_disks()] == ["apfs"]


def test_empty_and_unreadable_partitions_are_skipped(monkeypatch):
    parts = [_part("/dev/sr0", "/media/cd"), _part("/dev/sdx", "/gone"), _part("/dev/sda1", "/")]

    def usage(path):
        if path == "/gone":
            raise PermissionError(path)
        if path == "/media/cd":
            return _usage(0, 0)
        return _usage(10, 5)

    monkeypatch.setattr(psutil, "disk_partitions", lambda all=False: parts)
    monkeypatch.setattr(psutil, "disk_usage", usage)

    assert [d.mountpoint for d in list_disks()] == ["/"]


def test_partition_enumeration_failure_raises(monkeypatch):
    monkeypatch.setattr(psutil, "disk_partitions", _raise)
    with pytest.raises(DeviceQueryError, match="partition table unavailable"):
        list_disks()


def test_network_skips_loopback_and_idle_interfaces(monkeypatch):
    counters = {
        "lo": _nic(500, 500),
        "lo0": _nic(500, 500),
        "eth0": _nic(100, 200, 3, 4),
        "docker0": _nic(0, 0),
        "wlan0": _nic(0, 7),
    }
    monkeypatch.setattr(psutil, "net_io_counters", lambda pernic=False: counters)

    stats = list_network()
    assert [s.interface for s in stats] == ["eth0", "wlan0"]
    assert stats[0].to_dict() == {
        "interface": "eth0",
        "bytes_sent": 100,
        "bytes_recv": 200,
        "packets_sent": 3,
        "packets_recv": 4,
    }


def test_network_enumeration_failure_raises(monkeypatch):
    monkeypatch.setattr(psutil, "net_io_counters", _raise)
    with pytest.raises(DeviceQueryError):
        list_network()
