"""Data provider interfaces for metrics collection.

Each external source the collector depends on is modelled as a provider with
one capability per source type. Providers never raise for an unavailable
source; they return ``Reading.unavailable(reason)`` and leave the degradation
policy to the collector. This keeps sources swappable and lets tests use
deterministic fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Reading(Generic[T]):
    """A value from a data source, or the reason it is unavailable."""

    value: T | None = None
    reason: str = ""

    @property
    def available(self) -> bool:
        return self.value is not None

    @classmethod
    def ok(cls, value: T) -> Reading[T]:
        return cls(value=value)

    @classmethod
    def unavailable(cls, reason: str) -> Reading[T]:
        return cls(value=None, reason=reason)


@dataclass(frozen=True)
class CpuTimes:
    """Cumulative CPU time counters (jiffies) from the aggregate cpu line."""

    user: int = 0
    nice: int = 0
    system: int = 0
    idle: int = 0
    iowait: int = 0
    irq: int = 0
    softirq: int = 0
    steal: int = 0

    @property
    def total(self) -> int:
        return (
            self.user
            + self.nice
            + self.system
            + self.idle
            + self.iowait
            + self.irq
            + self.softirq
            + self.steal
        )


@dataclass(frozen=True)
class MemoryReading:
    """Current memory in megabytes."""

    used_mb: int
    available_mb: int


@dataclass(frozen=True)
class DiskStatsSnapshot:
    """Cumulative counters for one block device.

    Fields follow Documentation/admin-guide/iostats.rst.
    """

    device: str
    reads_completed: int = 0
    time_reading_ms: int = 0
    writes_completed: int = 0
    time_writing_ms: int = 0
    ios_in_progress: int = 0
    io_ticks_ms: int = 0  # time spent doing I/Os
    weighted_io_ms: int = 0  # weighted time spent doing I/Os


@dataclass(frozen=True)
class PodPhaseCounts:
    """Pod counts across all namespaces."""

    total: int = 0
    running: int = 0
    succeeded: int = 0
    pending: int = 0


@dataclass(frozen=True)
class TopPods:
    """Highest CPU and memory consumers as ``namespace/name``."""

    cpu: str
    memory: str


class HostStats(ABC):
    """Host CPU, memory and filesystem statistics."""

    @abstractmethod
    def cpu_times(self) -> Reading[CpuTimes]:
        """Read cumulative CPU counters."""

    @abstractmethod
    def memory(self) -> Reading[MemoryReading]:
        """Read current used and available memory."""

    @abstractmethod
    def disk_usage(self, path: str) -> Reading[int]:
        """Percentage of the filesystem holding ``path`` in use.

        Unavailable when the path does not exist.
        """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name of this provider."""


class BlockDeviceStats(ABC):
    """Extended block-device statistics."""

    @abstractmethod
    def snapshot(self, device: str) -> Reading[DiskStatsSnapshot]:
        """Read cumulative counters for ``device``."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name of this provider."""


class OrchestratorPods(ABC):
    """Cluster pod listing and top-consumer queries."""

    @abstractmethod
    def is_reachable(self) -> bool:
        """Check whether the cluster API answers."""

    @abstractmethod
    def phase_counts(self) -> Reading[PodPhaseCounts]:
        """Count pods by phase across all namespaces."""

    @abstractmethod
    def top_pods(self) -> Reading[TopPods]:
        """Highest CPU and memory pods; unavailable without a metrics API."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name of this provider."""
