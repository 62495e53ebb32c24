"""Linux procfs providers for host and block-device statistics.

Reads kernel statistics directly from /proc instead of shelling out to
vmstat, free, df or iostat:
- /proc/stat: aggregate CPU time counters
- /proc/meminfo: MemTotal, MemAvailable (MemFree on old kernels)
- /proc/diskstats: per-device I/O counters
Filesystem usage comes from statvfs via shutil.disk_usage.
"""

from __future__ import annotations

import logging
import math
import os
import shutil
from pathlib import Path

from infra_monitor.monitoring.base import (
    BlockDeviceStats,
    CpuTimes,
    DiskStatsSnapshot,
    HostStats,
    MemoryReading,
    Reading,
)

logger = logging.getLogger(__name__)

PROC_ROOT = Path("/proc")


def parse_proc_stat_cpu(content: str) -> CpuTimes | None:
    """Parse the aggregate ``cpu`` line of /proc/stat.

    Format:
        cpu  user nice system idle iowait irq softirq steal guest guest_nice

    Guest time is already included in user/nice and is not added again.
    """
    for line in content.splitlines():
        parts = line.split()
        if not parts or parts[0] != "cpu":
            continue
        values = [int(v) for v in parts[1:9]]
        values += [0] * (8 - len(values))
        return CpuTimes(*values)
    return None


def parse_proc_meminfo(content: str) -> dict[str, int]:
    """Parse /proc/meminfo into a mapping of key -> kB."""
    result: dict[str, int] = {}
    for line in content.splitlines():
        if ":" not in line:
            continue
        key, _, rest = line.partition(":")
        parts = rest.split()
        if not parts:
            continue
        try:
            result[key.strip()] = int(parts[0])
        except ValueError:
            continue
    return result


def parse_proc_diskstats(content: str) -> dict[str, DiskStatsSnapshot]:
    """Parse /proc/diskstats into snapshots keyed by device name.

    Fields: major minor name reads_completed reads_merged sectors_read
    time_reading writes_completed writes_merged sectors_written time_writing
    ios_in_progress time_doing_ios weighted_time [discard and flush fields]
    """
    disks: dict[str, DiskStatsSnapshot] = {}
    for line in content.splitlines():
        parts = line.split()
        if len(parts) < 14:
            continue
        try:
            disks[parts[2]] = DiskStatsSnapshot(
                device=parts[2],
                reads_completed=int(parts[3]),
                time_reading_ms=int(parts[6]),
                writes_completed=int(parts[7]),
                time_writing_ms=int(parts[10]),
                ios_in_progress=int(parts[11]),
                io_ticks_ms=int(parts[12]),
                weighted_io_ms=int(parts[13]),
            )
        except ValueError:
            continue
    return disks


def usage_percent(used: int, free: int) -> int:
    """Filesystem usage rounded up to a whole percent, as df reports it."""
    if used + free <= 0:
        return 0
    return min(100, math.ceil(used * 100 / (used + free)))


class ProcfsHostStats(HostStats):
    """Host statistics read from /proc and statvfs."""

    def __init__(self, proc_root: Path = PROC_ROOT) -> None:
        self._proc_root = Path(proc_root)

    @property
    def name(self) -> str:
        return "procfs"

    def cpu_times(self) -> Reading[CpuTimes]:
        path = self._proc_root / "stat"
        try:
            times = parse_proc_stat_cpu(path.read_text())
        except (OSError, ValueError) as e:
            return Reading.unavailable(f"Cannot read CPU counters from {path}: {e}")
        if times is None:
            return Reading.unavailable(f"No aggregate cpu line in {path}")
        return Reading.ok(times)

    def memory(self) -> Reading[MemoryReading]:
        path = self._proc_root / "meminfo"
        try:
            meminfo = parse_proc_meminfo(path.read_text())
        except OSError as e:
            return Reading.unavailable(f"Cannot read memory info from {path}: {e}")

        total_kb = meminfo.get("MemTotal")
        available_kb = meminfo.get("MemAvailable", meminfo.get("MemFree"))
        if total_kb is None or available_kb is None:
            return Reading.unavailable(f"MemTotal/MemAvailable missing from {path}")

        used_kb = max(0, total_kb - available_kb)
        return Reading.ok(MemoryReading(used_mb=used_kb // 1024, available_mb=available_kb // 1024))

    def disk_usage(self, path: str) -> Reading[int]:
        if not os.path.isdir(path):
            return Reading.unavailable(f"Path {path} does not exist")
        try:
            usage = shutil.disk_usage(path)
        except OSError as e:
            return Reading.unavailable(f"Cannot stat filesystem at {path}: {e}")
        return Reading.ok(usage_percent(usage.used, usage.free))


class ProcfsBlockDeviceStats(BlockDeviceStats):
    """Block-device counters read from /proc/diskstats."""

    def __init__(self, proc_root: Path = PROC_ROOT) -> None:
        self._proc_root = Path(proc_root)

    @property
    def name(self) -> str:
        return "diskstats"

    def snapshot(self, device: str) -> Reading[DiskStatsSnapshot]:
        path = self._proc_root / "diskstats"
        try:
            disks = parse_proc_diskstats(path.read_text())
        except OSError as e:
            return Reading.unavailable(f"Cannot read {path}: {e}")

        snapshot = disks.get(device)
        if snapshot is None:
            return Reading.unavailable(f"Device '{device}' not found in {path}")
        logger.debug(f"diskstats for {device}: {snapshot}")
        return Reading.ok(snapshot)
