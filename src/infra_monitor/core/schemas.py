"""Pydantic schemas for infra-monitor.

This module defines the data contracts shared by the collector and the
analyzer: the fixed-schema ``Sample`` row, the compound metrics derived from
it, threshold policies, and the result structures produced by analysis.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_serializer, field_validator, model_validator

from infra_monitor.core.constants import SAMPLE_COLUMNS, TIMESTAMP_FORMAT, UNAVAILABLE

# Columns that are not numeric metrics
_LABEL_COLUMNS = frozenset({"timestamp", "top_cpu_pod", "top_mem_pod"})

NUMERIC_COLUMNS: tuple[str, ...] = tuple(c for c in SAMPLE_COLUMNS if c not in _LABEL_COLUMNS)
COMPOUND_METRICS: tuple[str, ...] = ("cpu_total", "mem_percent")
KNOWN_METRICS: frozenset[str] = frozenset(NUMERIC_COLUMNS + COMPOUND_METRICS)


def derive_other_pods(total: int, running: int, completed: int, pending: int) -> int:
    """Pods in any phase other than Running, Succeeded or Pending.

    Derived by subtraction and floored at zero, so overlapping or stale phase
    counts can never produce a negative value.
    """
    return max(0, total - running - completed - pending)


class Sample(BaseModel):
    """One observation of host and cluster state.

    Field order matches ``SAMPLE_COLUMNS`` and therefore the store header.
    """

    timestamp: datetime
    # CPU (percent, two-point delta)
    cpu_user: float = Field(default=0.0, ge=0)
    cpu_system: float = Field(default=0.0, ge=0)
    # Memory (MB)
    mem_used: int = Field(default=0, ge=0)
    mem_free: int = Field(default=0, ge=0)
    # Disk usage (percent, 0 if mount absent)
    disk_root_used: int = Field(default=0, ge=0, le=100)
    disk_var_used: int = Field(default=0, ge=0, le=100)
    disk_opt_used: int = Field(default=0, ge=0, le=100)
    # Orchestrator
    top_cpu_pod: str = Field(default=UNAVAILABLE, min_length=1)
    top_mem_pod: str = Field(default=UNAVAILABLE, min_length=1)
    total_pods: int = Field(default=0, ge=0)
    running: int = Field(default=0, ge=0)
    completed: int = Field(default=0, ge=0)
    pending: int = Field(default=0, ge=0)
    other: int = Field(default=0, ge=0)
    # Block device rates
    reads_per_sec: float = Field(default=0.0, ge=0)
    writes_per_sec: float = Field(default=0.0, ge=0)
    avg_queue_size: float = Field(default=0.0, ge=0)
    read_await_ms: float = Field(default=0.0, ge=0)
    write_await_ms: float = Field(default=0.0, ge=0)
    disk_util_pct: float = Field(default=0.0, ge=0)

    model_config = {"frozen": True}

    @field_validator("timestamp", mode="before")
    @classmethod
    def parse_timestamp(cls, v: Any) -> Any:
        """Accept the store's text format and truncate to whole seconds."""
        if isinstance(v, str):
            v = datetime.strptime(v.strip(), TIMESTAMP_FORMAT)
        if isinstance(v, datetime):
            return v.replace(microsecond=0)
        return v

    @field_serializer("timestamp")
    def serialize_timestamp(self, v: datetime) -> str:
        return v.strftime(TIMESTAMP_FORMAT)

    @model_validator(mode="after")
    def check_other_pods(self) -> Sample:
        """Reject rows whose ``other`` count disagrees with the phase counts."""
        expected = derive_other_pods(self.total_pods, self.running, self.completed, self.pending)
        if self.other != expected:
            raise ValueError(
                f"other={self.other} does not match total_pods - running - completed - "
                f"pending floored at 0 (expected {expected})"
            )
        return self

    @property
    def cpu_total(self) -> float:
        return cpu_total(self.cpu_user, self.cpu_system)

    @property
    def mem_percent(self) -> float:
        return mem_percent(self.mem_used, self.mem_free)

    def to_row(self) -> list[str]:
        """Serialize to store cells in header order."""
        data = self.model_dump()
        return [str(data[column]) for column in SAMPLE_COLUMNS]

    @classmethod
    def from_row(cls, row: list[str]) -> Sample:
        """Parse store cells (header order) into a validated Sample.

        Raises:
            ValueError: If the row has the wrong number of cells
            pydantic.ValidationError: If a cell cannot be parsed
        """
        if len(row) != len(SAMPLE_COLUMNS):
            raise ValueError(f"Expected {len(SAMPLE_COLUMNS)} fields, got {len(row)}")
        return cls.model_validate(dict(zip(SAMPLE_COLUMNS, row, strict=True)))


# =============================================================================
# COMPOUND METRICS
# =============================================================================


def cpu_total(cpu_user: float, cpu_system: float) -> float:
    """Total CPU busy percentage (user + system)."""
    return cpu_user + cpu_system


def mem_percent(mem_used: float, mem_free: float) -> float:
    """Memory used as a percentage of used + free; 0 when both are 0."""
    total = mem_used + mem_free
    if total <= 0:
        return 0.0
    return mem_used / total * 100


def metric_value(sample: Sample, metric: str) -> float:
    """Resolve a raw numeric column or compound metric for a sample.

    Both the bottleneck checker and the analyzer go through this function so
    the compound derivations cannot drift apart.

    Raises:
        KeyError: If the metric name is unknown
    """
    if metric == "cpu_total":
        return sample.cpu_total
    if metric == "mem_percent":
        return sample.mem_percent
    if metric not in NUMERIC_COLUMNS:
        raise KeyError(f"Unknown metric: {metric}")
    return float(getattr(sample, metric))


# =============================================================================
# THRESHOLDS
# =============================================================================


class Direction(str, Enum):
    """Comparison direction for a threshold."""

    ABOVE = "above"
    BELOW = "below"


class Threshold(BaseModel):
    """A single metric limit."""

    metric: str = Field(..., description="Raw column or compound metric name")
    limit: float
    direction: Direction = Field(default=Direction.ABOVE)
    label: str = Field(default="", description="Human-readable metric name for reports")

    model_config = {"frozen": True}

    @field_validator("metric")
    @classmethod
    def validate_metric(cls, v: str) -> str:
        if v not in KNOWN_METRICS:
            raise ValueError(f"Unknown metric '{v}'. Known: {', '.join(sorted(KNOWN_METRICS))}")
        return v

    @model_validator(mode="before")
    @classmethod
    def default_label(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("label"):
            data = {**data, "label": data.get("metric", "")}
        return data

    def is_breached(self, value: float) -> bool:
        """Strict comparison of ``value`` against the limit."""
        if self.direction is Direction.ABOVE:
            return value > self.limit
        return value < self.limit

    def describe(self) -> str:
        symbol = ">" if self.direction is Direction.ABOVE else "<"
        return f"{self.metric} {symbol} {self.limit:g}"


class ThresholdPolicy(BaseModel):
    """Named, immutable table of thresholds keyed by metric name."""

    name: str
    thresholds: tuple[Threshold, ...] = Field(default_factory=tuple)

    model_config = {"frozen": True}

    @field_validator("thresholds")
    @classmethod
    def unique_metrics(cls, v: tuple[Threshold, ...]) -> tuple[Threshold, ...]:
        seen: set[str] = set()
        for threshold in v:
            if threshold.metric in seen:
                raise ValueError(f"Duplicate threshold for metric '{threshold.metric}'")
            seen.add(threshold.metric)
        return v

    @property
    def metrics(self) -> list[str]:
        return [t.metric for t in self.thresholds]

    def get(self, metric: str) -> Threshold:
        """Return the threshold for ``metric``.

        Raises:
            KeyError: If the policy has no threshold for the metric
        """
        for threshold in self.thresholds:
            if threshold.metric == metric:
                return threshold
        raise KeyError(f"Policy '{self.name}' has no threshold for '{metric}'")


class ThresholdConfig(BaseModel):
    """Threshold policies shared by the collector and the analyzer."""

    bottleneck: ThresholdPolicy
    peaks: ThresholdPolicy

    model_config = {"frozen": True}


# =============================================================================
# ANALYSIS RESULTS
# =============================================================================


class MetricStats(BaseModel):
    """Aggregate statistics for one metric over the whole history."""

    metric: str
    minimum: float = 0.0
    maximum: float = 0.0
    mean: float = 0.0
    count: int = Field(default=0, ge=0)


class SummaryStatistics(BaseModel):
    """General statistics section of the report."""

    first_timestamp: datetime
    last_timestamp: datetime
    total_samples: int = Field(ge=0)
    metrics: list[MetricStats] = Field(default_factory=list)

    @property
    def duration_hours(self) -> int:
        """Whole hours between the first and last sample."""
        return int((self.last_timestamp - self.first_timestamp).total_seconds() // 3600)


class HourlyBucket(BaseModel):
    """Averages for one hour of the day, merged across calendar days."""

    hour: int = Field(ge=0, le=23)
    avg_cpu_total: float
    avg_mem_percent: float
    samples: int = Field(ge=1)


class TrendDirection(str, Enum):
    """Classification of a windowed trend."""

    INCREASE = "increase"
    DECREASE = "decrease"
    STABLE = "stable"


class TrendReport(BaseModel):
    """Recent-window vs older-window comparison for one metric."""

    metric: str
    recent_avg: float
    older_avg: float
    delta: float
    significance: float = Field(ge=0)
    classification: TrendDirection


class TrendAnalysis(BaseModel):
    """Result of trend detection; ``reports`` is empty when data is insufficient."""

    sample_count: int = Field(ge=0)
    window: int = Field(ge=1)
    sufficient: bool
    reports: list[TrendReport] = Field(default_factory=list)


class PeakEvent(BaseModel):
    """A sample where a tracked metric breached its threshold."""

    timestamp: datetime
    metric: str
    value: float
    minutes_since_previous: int | None = Field(
        default=None, description="None for the first peak of a metric"
    )


class PeakDetection(BaseModel):
    """All peaks of one metric, in chronological order."""

    threshold: Threshold
    events: list[PeakEvent] = Field(default_factory=list)
