"""infra-monitor - host and cluster metrics collection and analysis."""

from __future__ import annotations

from infra_monitor.core.schemas import (
    Direction,
    PeakEvent,
    Sample,
    Threshold,
    ThresholdConfig,
    ThresholdPolicy,
    TrendReport,
)

__version__ = "0.1.0"

__all__ = [
    "Direction",
    "PeakEvent",
    "Sample",
    "Threshold",
    "ThresholdConfig",
    "ThresholdPolicy",
    "TrendReport",
    "__version__",
]
