"""Core module - configuration, schemas and errors."""

from __future__ import annotations

from infra_monitor.core.config import DEFAULT_THRESHOLDS, load_thresholds
from infra_monitor.core.constants import SAMPLE_COLUMNS, TIMESTAMP_FORMAT, UNAVAILABLE
from infra_monitor.core.errors import DependencyError, InfraMonitorError, StoreError
from infra_monitor.core.schemas import (
    Direction,
    HourlyBucket,
    MetricStats,
    PeakDetection,
    PeakEvent,
    Sample,
    SummaryStatistics,
    Threshold,
    ThresholdConfig,
    ThresholdPolicy,
    TrendAnalysis,
    TrendDirection,
    TrendReport,
    cpu_total,
    derive_other_pods,
    mem_percent,
    metric_value,
)

__all__ = [
    "DEFAULT_THRESHOLDS",
    "DependencyError",
    "Direction",
    "HourlyBucket",
    "InfraMonitorError",
    "MetricStats",
    "PeakDetection",
    "PeakEvent",
    "SAMPLE_COLUMNS",
    "Sample",
    "StoreError",
    "SummaryStatistics",
    "TIMESTAMP_FORMAT",
    "Threshold",
    "ThresholdConfig",
    "ThresholdPolicy",
    "TrendAnalysis",
    "TrendDirection",
    "TrendReport",
    "UNAVAILABLE",
    "cpu_total",
    "derive_other_pods",
    "load_thresholds",
    "mem_percent",
    "metric_value",
]
