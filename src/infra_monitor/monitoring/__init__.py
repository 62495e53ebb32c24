"""Monitoring module - sample collection from host and cluster sources.

Provider implementations:
- ProcfsHostStats / ProcfsBlockDeviceStats: Linux /proc and statvfs
- KubectlPods: Kubernetes via the kubectl CLI

Shared utilities:
- io_utils: two-point delta rate helpers
"""

from __future__ import annotations

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
from infra_monitor.monitoring.bottlenecks import check_bottlenecks
from infra_monitor.monitoring.collector import (
    MetricsCollector,
    PodSample,
    build_collector,
    check_dependencies,
)
from infra_monitor.monitoring.io_utils import DeviceRates, compute_device_rates
from infra_monitor.monitoring.kubectl import KubectlPods
from infra_monitor.monitoring.procfs import ProcfsBlockDeviceStats, ProcfsHostStats

__all__ = [
    "BlockDeviceStats",
    "CpuTimes",
    "DeviceRates",
    "DiskStatsSnapshot",
    "HostStats",
    "KubectlPods",
    "MemoryReading",
    "MetricsCollector",
    "OrchestratorPods",
    "PodPhaseCounts",
    "PodSample",
    "ProcfsBlockDeviceStats",
    "ProcfsHostStats",
    "Reading",
    "TopPods",
    "build_collector",
    "check_bottlenecks",
    "check_dependencies",
    "compute_device_rates",
]
