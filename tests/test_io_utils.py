"""Tests for two-point delta helpers."""

import pytest

from infra_monitor.monitoring.base import CpuTimes, DiskStatsSnapshot
from infra_monitor.monitoring.io_utils import (
    DeviceRates,
    compute_avg_queue_size,
    compute_await_ms,
    compute_cpu_percentages,
    compute_device_rates,
    compute_rate,
    compute_util_percent,
)

from conftest import CPU_AFTER, CPU_BEFORE, DISK_AFTER, DISK_BEFORE


class TestCpuPercentages:
    """Tests for compute_cpu_percentages."""

    def test_user_and_system(self):
        assert compute_cpu_percentages(CPU_BEFORE, CPU_AFTER) == (40.0, 10.0)

    def test_nice_and_irq_folded_in(self):
        before = CpuTimes(idle=100)
        after = CpuTimes(user=10, nice=10, system=5, irq=3, softirq=2, idle=170)
        assert compute_cpu_percentages(before, after) == (20.0, 10.0)

    def test_no_elapsed_time(self):
        assert compute_cpu_percentages(CPU_BEFORE, CPU_BEFORE) == (0.0, 0.0)


class TestRateHelpers:
    """Tests for the scalar helpers."""

    def test_compute_rate(self):
        assert compute_rate(50, 2.0) == 25.0
        assert compute_rate(50, 0) == 0.0

    def test_compute_await(self):
        assert compute_await_ms(100, 50) == 2.0
        assert compute_await_ms(100, 0) == 0.0

    def test_avg_queue_size(self):
        assert compute_avg_queue_size(2500, 1.0) == 2.5

    def test_util_capped(self):
        assert compute_util_percent(500, 1.0) == 50.0
        assert compute_util_percent(5000, 1.0) == 100.0


class TestDeviceRates:
    """Tests for compute_device_rates."""

    def test_rates_over_one_second(self):
        rates = compute_device_rates(DISK_BEFORE, DISK_AFTER, 1.0)
        assert rates == DeviceRates(
            reads_per_sec=50.0,
            writes_per_sec=20.0,
            avg_queue_size=2.5,
            read_await_ms=2.0,
            write_await_ms=5.0,
            util_pct=50.0,
        )

    def test_counter_reset_treated_as_idle(self):
        rates = compute_device_rates(DISK_AFTER, DISK_BEFORE, 1.0)
        assert rates == DeviceRates()

    def test_rounded_to_two_places(self):
        before = DiskStatsSnapshot(device="sda")
        after = DiskStatsSnapshot(device="sda", reads_completed=10)
        rates = compute_device_rates(before, after, 3.0)
        assert rates.reads_per_sec == pytest.approx(3.33)
