"""Shared fixtures: deterministic providers and sample builders."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

import pytest

from infra_monitor.core.schemas import Sample
from infra_monitor.monitoring.base import (
    BlockDeviceStats,
    CpuTimes,
    DiskStatsSnapshot,
    HostStats,
    MemoryReading,
    OrchestratorPods,
    PodPhaseCounts,
    Reading,
    TopPods,
)
from infra_monitor.monitoring.collector import MetricsCollector
from infra_monitor.results.storage import MetricsStore

CPU_BEFORE = CpuTimes(user=100, nice=0, system=50, idle=850)
CPU_AFTER = CpuTimes(user=140, nice=0, system=60, idle=900)  # 40% user, 10% system

DISK_BEFORE = DiskStatsSnapshot(device="sda", reads_completed=100, writes_completed=200)
DISK_AFTER = DiskStatsSnapshot(
    device="sda",
    reads_completed=150,
    time_reading_ms=100,
    writes_completed=220,
    time_writing_ms=100,
    io_ticks_ms=500,
    weighted_io_ms=2500,
)


class FakeHostStats(HostStats):
    def __init__(
        self,
        cpu: list[CpuTimes | None] | None = None,
        memory: MemoryReading | None = MemoryReading(used_mb=3000, available_mb=1000),
        disks: dict[str, int] | None = None,
    ) -> None:
        self._cpu = list(cpu if cpu is not None else [CPU_BEFORE, CPU_AFTER])
        self._memory = memory
        self._disks = disks if disks is not None else {"/": 42, "/var": 60}

    @property
    def name(self) -> str:
        return "fake-host"

    def cpu_times(self) -> Reading[CpuTimes]:
        value = self._cpu.pop(0)
        return Reading.ok(value) if value is not None else Reading.unavailable("no /proc/stat")

    def memory(self) -> Reading[MemoryReading]:
        if self._memory is None:
            return Reading.unavailable("no /proc/meminfo")
        return Reading.ok(self._memory)

    def disk_usage(self, path: str) -> Reading[int]:
        if path not in self._disks:
            return Reading.unavailable(f"Path {path} does not exist")
        return Reading.ok(self._disks[path])


class FakeBlockDevices(BlockDeviceStats):
    def __init__(self, snapshots: list[DiskStatsSnapshot] | None = None) -> None:
        self._snapshots = list(snapshots if snapshots is not None else [DISK_BEFORE, DISK_AFTER])

    @property
    def name(self) -> str:
        return "fake-disk"

    def snapshot(self, device: str) -> Reading[DiskStatsSnapshot]:
        if not self._snapshots:
            return Reading.unavailable(f"Device '{device}' not found")
        return Reading.ok(self._snapshots.pop(0))


class FakePods(OrchestratorPods):
    def __init__(
        self,
        reachable: bool = True,
        counts: PodPhaseCounts | None = PodPhaseCounts(total=10, running=6, succeeded=2, pending=1),
        top: TopPods | None = TopPods(cpu="default/api", memory="default/db"),
    ) -> None:
        self._reachable = reachable
        self._counts = counts
        self._top = top

    @property
    def name(self) -> str:
        return "fake-pods"

    def is_reachable(self) -> bool:
        return self._reachable

    def phase_counts(self) -> Reading[PodPhaseCounts]:
        if self._counts is None:
            return Reading.unavailable("listing failed")
        return Reading.ok(self._counts)

    def top_pods(self) -> Reading[TopPods]:
        if self._top is None:
            return Reading.unavailable("'kubectl top' command failed.")
        return Reading.ok(self._top)


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "infra_metrics.csv"


@pytest.fixture
def make_collector(store_path: Path) -> Callable[..., MetricsCollector]:
    """Build a collector over fake providers; keyword args replace providers."""

    def _make(**overrides: Any) -> MetricsCollector:
        kwargs: dict[str, Any] = {
            "store": MetricsStore(store_path),
            "host": FakeHostStats(),
            "block_devices": FakeBlockDevices(),
            "pods": FakePods(),
            "device": "sda",
            "interval_seconds": 1.0,
            "disk_mounts": {"disk_root_used": "/", "disk_var_used": "/var", "disk_opt_used": "/opt"},
            "sleep": lambda seconds: None,
            "clock": iter([0.0, 1.0]).__next__,
            "now": lambda: datetime(2024, 1, 1, 9, 30, 15),
        }
        kwargs.update(overrides)
        return MetricsCollector(**kwargs)

    return _make


@pytest.fixture
def make_sample() -> Callable[..., Sample]:
    """Build a Sample from a timestamp string and field overrides."""

    def _make(timestamp: str | datetime, **fields: Any) -> Sample:
        return Sample(timestamp=timestamp, **fields)

    return _make
