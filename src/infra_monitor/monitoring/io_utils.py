"""Two-point delta helpers for rate metrics.

Used by the collector to turn cumulative kernel counters read twice, a short
interval apart, into instantaneous rates.

Functions:
    compute_cpu_percentages: user/system busy percentages from CPU counters
    compute_rate: events per second from a counter delta
    compute_await_ms: average time per completed operation
    compute_avg_queue_size: average number of in-flight requests
    compute_util_percent: share of wall time the device was busy
    compute_device_rates: all block-device rates for one window
"""

from __future__ import annotations

from dataclasses import dataclass

from infra_monitor.monitoring.base import CpuTimes, DiskStatsSnapshot


@dataclass(frozen=True)
class DeviceRates:
    """Block-device rates over one sampling window."""

    reads_per_sec: float = 0.0
    writes_per_sec: float = 0.0
    avg_queue_size: float = 0.0
    read_await_ms: float = 0.0
    write_await_ms: float = 0.0
    util_pct: float = 0.0


def _delta(after: int, before: int) -> int:
    # Counters reset on device re-attach or wrap; treat as no activity.
    return max(0, after - before)


def compute_cpu_percentages(before: CpuTimes, after: CpuTimes) -> tuple[float, float]:
    """Compute user and system CPU percentages for the window between readings.

    User time includes nice; system time includes hard and soft IRQ time.

    Args:
        before: Counters at the start of the window
        after: Counters at the end of the window

    Returns:
        (user_percent, system_percent), (0.0, 0.0) if no time elapsed
    """
    total = _delta(after.total, before.total)
    if total <= 0:
        return 0.0, 0.0
    user = _delta(after.user + after.nice, before.user + before.nice)
    system = _delta(
        after.system + after.irq + after.softirq,
        before.system + before.irq + before.softirq,
    )
    return round(user * 100 / total, 2), round(system * 100 / total, 2)


def compute_rate(count_delta: int, duration_seconds: float) -> float:
    """Compute events per second from a counter delta.

    Args:
        count_delta: Number of completed operations in the window
        duration_seconds: Duration of the window in seconds

    Returns:
        Operations per second, 0.0 if duration is zero
    """
    if duration_seconds <= 0:
        return 0.0
    return count_delta / duration_seconds


def compute_await_ms(time_delta_ms: int, ops_delta: int) -> float:
    """Compute average time per completed operation (iostat await).

    Args:
        time_delta_ms: Milliseconds spent on operations in the window
        ops_delta: Number of operations completed in the window

    Returns:
        Average milliseconds per operation, 0.0 with no operations
    """
    if ops_delta <= 0:
        return 0.0
    return time_delta_ms / ops_delta


def compute_avg_queue_size(weighted_delta_ms: int, duration_seconds: float) -> float:
    """Compute average request queue length (iostat avgqu-sz).

    Args:
        weighted_delta_ms: Delta of the weighted I/O time counter
        duration_seconds: Duration of the window in seconds

    Returns:
        Average number of in-flight requests, 0.0 if duration is zero
    """
    if duration_seconds <= 0:
        return 0.0
    return weighted_delta_ms / (duration_seconds * 1000.0)


def compute_util_percent(io_ticks_delta_ms: int, duration_seconds: float) -> float:
    """Compute device utilization (iostat %util).

    Args:
        io_ticks_delta_ms: Milliseconds the device had I/O in flight
        duration_seconds: Duration of the window in seconds

    Returns:
        Percentage of the window the device was busy, capped at 100.0
    """
    if duration_seconds <= 0:
        return 0.0
    return min(100.0, io_ticks_delta_ms / (duration_seconds * 1000.0) * 100.0)


def compute_device_rates(
    before: DiskStatsSnapshot, after: DiskStatsSnapshot, duration_seconds: float
) -> DeviceRates:
    """Derive iostat-style extended statistics from two snapshots.

    Args:
        before: Snapshot at the start of the window
        after: Snapshot at the end of the window
        duration_seconds: Measured duration of the window in seconds

    Returns:
        DeviceRates rounded to two decimal places
    """
    reads = _delta(after.reads_completed, before.reads_completed)
    writes = _delta(after.writes_completed, before.writes_completed)
    return DeviceRates(
        reads_per_sec=round(compute_rate(reads, duration_seconds), 2),
        writes_per_sec=round(compute_rate(writes, duration_seconds), 2),
        avg_queue_size=round(
            compute_avg_queue_size(
                _delta(after.weighted_io_ms, before.weighted_io_ms), duration_seconds
            ),
            2,
        ),
        read_await_ms=round(
            compute_await_ms(_delta(after.time_reading_ms, before.time_reading_ms), reads), 2
        ),
        write_await_ms=round(
            compute_await_ms(_delta(after.time_writing_ms, before.time_writing_ms), writes), 2
        ),
        util_pct=round(
            compute_util_percent(_delta(after.io_ticks_ms, before.io_ticks_ms), duration_seconds),
            2,
        ),
    )
