"""Metrics collector producing one sample per invocation.

Gathers CPU, memory, disk usage, pod health and block-device rates from
pluggable providers, assembles a single fixed-schema ``Sample`` and appends it
to the store. A failing source degrades to zeros or the ``N/A`` sentinel with
a warning; it never aborts the cycle. Missing tools or kernel sources are
detected up front by ``check_dependencies`` before any sampling happens.
"""

from __future__ import annotations

import logging
import os
import shutil
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from infra_monitor.core.constants import (
    DEFAULT_DEVICE,
    DEFAULT_SAMPLE_INTERVAL,
    DISK_MOUNTS,
    UNAVAILABLE,
)
from infra_monitor.core.errors import DependencyError
from infra_monitor.core.schemas import Sample, derive_other_pods
from infra_monitor.monitoring.base import BlockDeviceStats, HostStats, OrchestratorPods
from infra_monitor.monitoring.io_utils import (
    DeviceRates,
    compute_cpu_percentages,
    compute_device_rates,
)
from infra_monitor.monitoring.kubectl import KubectlPods
from infra_monitor.monitoring.procfs import PROC_ROOT, ProcfsBlockDeviceStats, ProcfsHostStats
from infra_monitor.results.storage import MetricsStore

logger = logging.getLogger(__name__)

REQUIRED_TOOLS: tuple[str, ...] = ("kubectl",)
REQUIRED_PROC_FILES: tuple[str, ...] = ("stat", "meminfo", "diskstats")

INSTALL_HINTS: dict[str, str] = {
    "kubectl": "Install kubectl: https://kubernetes.io/docs/tasks/tools/",
    "diskstats": "Block-device statistics require a Linux kernel with /proc/diskstats",
}


def check_dependencies(
    tools: Sequence[str] = REQUIRED_TOOLS,
    proc_root: Path = PROC_ROOT,
    proc_files: Sequence[str] = REQUIRED_PROC_FILES,
) -> None:
    """Verify required tools and kernel statistics sources before sampling.

    Raises:
        DependencyError: For the first missing dependency
    """
    for tool in tools:
        if shutil.which(tool) is None:
            raise DependencyError(
                f"Missing dependency: {tool}. The collector cannot continue.",
                dependency=tool,
                suggestion=INSTALL_HINTS.get(tool, ""),
            )

    for name in proc_files:
        path = Path(proc_root) / name
        if not os.access(path, os.R_OK):
            raise DependencyError(
                f"Missing statistics source: {path} is not readable.",
                dependency=str(path),
                suggestion=INSTALL_HINTS.get(name, "A Linux host with procfs mounted is required"),
            )

    logger.debug(f"Dependencies satisfied: tools={list(tools)}, proc={list(proc_files)}")


@dataclass(frozen=True)
class PodSample:
    """Pod-related fields of one sample."""

    top_cpu_pod: str = UNAVAILABLE
    top_mem_pod: str = UNAVAILABLE
    total_pods: int = 0
    running: int = 0
    completed: int = 0
    pending: int = 0
    other: int = 0


class MetricsCollector:
    """Collects one sample from all sources and appends it to the store.

    Example:
        ```python
        collector = build_collector("./infra_metrics.csv", "nvme0n1")
        sample = collector.collect()
        check_bottlenecks(sample)
        ```
    """

    def __init__(
        self,
        store: MetricsStore,
        host: HostStats,
        block_devices: BlockDeviceStats,
        pods: OrchestratorPods,
        device: str = DEFAULT_DEVICE,
        interval_seconds: float = DEFAULT_SAMPLE_INTERVAL,
        disk_mounts: dict[str, str] | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Initialize the collector.

        Args:
            store: Destination store
            host: CPU, memory and filesystem provider
            block_devices: Block-device statistics provider
            pods: Orchestrator provider
            device: Block device to sample (e.g. sda, nvme0n1)
            interval_seconds: Two-point sampling window for CPU and I/O
            disk_mounts: Store column -> mount point for disk usage
            sleep: Wait function between readings
            clock: Monotonic clock for measuring the I/O window
            now: Wall clock for the sample timestamp
        """
        self.store = store
        self.device = device
        self._host = host
        self._block_devices = block_devices
        self._pods = pods
        self._interval_seconds = max(0.1, interval_seconds)
        self._disk_mounts = dict(DISK_MOUNTS if disk_mounts is None else disk_mounts)
        self._sleep = sleep
        self._clock = clock
        self._now = now

    def sample_cpu(self) -> tuple[float, float]:
        """Sample user and system CPU percentages over one interval."""
        before = self._host.cpu_times()
        self._sleep(self._interval_seconds)
        after = self._host.cpu_times()

        if before.value is None or after.value is None:
            reason = before.reason or after.reason
            logger.warning(f"Unable to obtain CPU metrics: {reason}")
            return 0.0, 0.0
        return compute_cpu_percentages(before.value, after.value)

    def sample_memory(self) -> tuple[int, int]:
        """Current used and available memory in MB."""
        reading = self._host.memory()
        if reading.value is None:
            logger.warning(f"Unable to obtain memory metrics: {reading.reason}")
            return 0, 0
        return reading.value.used_mb, reading.value.available_mb

    def sample_disk_usage(self, path: str) -> int:
        """Percentage used for a mount point; 0 if the path is absent."""
        reading = self._host.disk_usage(path)
        if reading.value is None:
            logger.debug(f"Disk usage unavailable for {path}: {reading.reason}")
            return 0
        return reading.value

    def sample_pods(self) -> PodSample:
        """Pod phase counts and top consumers; sentinels when the cluster is unreachable."""
        if not self._pods.is_reachable():
            logger.warning("Kubernetes is not accessible; pod metrics will not be collected.")
            return PodSample()

        counts = self._pods.phase_counts()
        if counts.value is None:
            logger.warning(f"Unable to obtain pod counts: {counts.reason}")
            return PodSample()

        c = counts.value
        top_cpu_pod = top_mem_pod = UNAVAILABLE
        top = self._pods.top_pods()
        if top.value is None:
            logger.warning(top.reason)
        else:
            top_cpu_pod, top_mem_pod = top.value.cpu, top.value.memory

        return PodSample(
            top_cpu_pod=top_cpu_pod,
            top_mem_pod=top_mem_pod,
            total_pods=c.total,
            running=c.running,
            completed=c.succeeded,
            pending=c.pending,
            other=derive_other_pods(c.total, c.running, c.succeeded, c.pending),
        )

    def sample_io(self, device: str | None = None) -> DeviceRates:
        """Extended statistics for a block device over one interval."""
        device = device or self.device
        before = self._block_devices.snapshot(device)
        start = self._clock()
        if before.value is None:
            logger.warning(f"Unable to obtain I/O metrics for device '{device}': {before.reason}")
            return DeviceRates()

        self._sleep(self._interval_seconds)
        after = self._block_devices.snapshot(device)
        elapsed = self._clock() - start
        if after.value is None:
            logger.warning(f"Unable to obtain I/O metrics for device '{device}': {after.reason}")
            return DeviceRates()

        if elapsed <= 0:
            elapsed = self._interval_seconds
        return compute_device_rates(before.value, after.value, elapsed)

    def take_sample(self) -> Sample:
        """Gather every source into one Sample without persisting it."""
        timestamp = self._now()
        logger.info("Collecting metrics...")

        cpu_user, cpu_system = self.sample_cpu()
        mem_used, mem_free = self.sample_memory()
        disks = {column: self.sample_disk_usage(path) for column, path in self._disk_mounts.items()}
        pods = self.sample_pods()
        io = self.sample_io()

        return Sample(
            timestamp=timestamp,
            cpu_user=cpu_user,
            cpu_system=cpu_system,
            mem_used=mem_used,
            mem_free=mem_free,
            disk_root_used=disks.get("disk_root_used", 0),
            disk_var_used=disks.get("disk_var_used", 0),
            disk_opt_used=disks.get("disk_opt_used", 0),
            top_cpu_pod=pods.top_cpu_pod,
            top_mem_pod=pods.top_mem_pod,
            total_pods=pods.total_pods,
            running=pods.running,
            completed=pods.completed,
            pending=pods.pending,
            other=pods.other,
            reads_per_sec=io.reads_per_sec,
            writes_per_sec=io.writes_per_sec,
            avg_queue_size=io.avg_queue_size,
            read_await_ms=io.read_await_ms,
            write_await_ms=io.write_await_ms,
            disk_util_pct=io.util_pct,
        )

    def collect(self) -> Sample:
        """Take one sample and append it to the store.

        Raises:
            StoreError: If the store cannot be created or written
        """
        sample = self.take_sample()
        self.store.append(sample)
        logger.info(f"Metrics collected and saved to {self.store.path}")
        return sample


def build_collector(
    store_path: Path | str,
    device: str = DEFAULT_DEVICE,
    interval_seconds: float = DEFAULT_SAMPLE_INTERVAL,
) -> MetricsCollector:
    """Create a collector wired to the procfs and kubectl providers."""
    return MetricsCollector(
        store=MetricsStore(store_path),
        host=ProcfsHostStats(),
        block_devices=ProcfsBlockDeviceStats(),
        pods=KubectlPods(),
        device=device,
        interval_seconds=interval_seconds,
    )
