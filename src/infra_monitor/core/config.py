"""Threshold configuration loading and defaults.

Threshold policies are immutable and built once per process. The same
``ThresholdConfig`` is handed to the collector's bottleneck checker and to the
analyzer's peak detector. Supports YAML and JSON override files.
"""

from __future__ import annotations

import json
from pathlib import Path

import yaml

from infra_monitor.core.schemas import Threshold, ThresholdConfig, ThresholdPolicy

BOTTLENECK_POLICY = ThresholdPolicy(
    name="bottleneck",
    thresholds=(
        Threshold(metric="cpu_total", limit=85, label="Total CPU"),
        Threshold(metric="mem_percent", limit=90, label="Memory"),
        Threshold(metric="disk_root_used", limit=85, label="Disk Root"),
        Threshold(metric="avg_queue_size", limit=5, label="I/O Queue"),
        Threshold(metric="disk_util_pct", limit=90, label="I/O Utilization"),
        Threshold(metric="other", limit=0, label="Anomalous Pods"),
        Threshold(metric="pending", limit=0, label="Pending Pods"),
    ),
)

PEAK_POLICY = ThresholdPolicy(
    name="peaks",
    thresholds=(
        Threshold(metric="cpu_total", limit=80, label="Total CPU"),
        Threshold(metric="mem_percent", limit=85, label="Memory"),
        Threshold(metric="disk_root_used", limit=90, label="Disk Root"),
        Threshold(metric="disk_var_used", limit=90, label="Disk /var"),
        Threshold(metric="disk_opt_used", limit=90, label="Disk /opt"),
        Threshold(metric="disk_util_pct", limit=85, label="I/O Utilization"),
        Threshold(metric="avg_queue_size", limit=3, label="I/O Queue"),
        Threshold(metric="other", limit=1, label="Anomalous Pods"),
    ),
)

DEFAULT_THRESHOLDS = ThresholdConfig(bottleneck=BOTTLENECK_POLICY, peaks=PEAK_POLICY)

# Significance band for trend classification, in the metric's own unit
TREND_SIGNIFICANCE: dict[str, float] = {
    "cpu_total": 5.0,  # percentage points
    "mem_used": 100.0,  # MB
}


def load_thresholds(path: Path | str | None = None) -> ThresholdConfig:
    """Load and validate a threshold configuration file.

    The file holds optional ``bottleneck`` and ``peaks`` lists of thresholds.
    A section that is absent keeps its default policy.

    Args:
        path: Path to YAML or JSON file, or None for the defaults

    Returns:
        Validated, frozen ThresholdConfig

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the format is unsupported, the file does not parse, the
            content is not a mapping, or a section is not a list
        pydantic.ValidationError: If a threshold is invalid
    """
    if path is None:
        return DEFAULT_THRESHOLDS

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Threshold file not found: {path}")

    suffix = path.suffix.lower()
    with open(path, encoding="utf-8") as f:
        if suffix in (".yaml", ".yml"):
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in threshold file {path}: {e}") from e
        elif suffix == ".json":
            data = json.load(f)
        else:
            raise ValueError(f"Unsupported threshold format: {suffix}. Use .yaml, .yml, or .json")

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Threshold file must contain a mapping, got {type(data).__name__}")

    policies: dict[str, ThresholdPolicy] = {}
    for section, default in (("bottleneck", BOTTLENECK_POLICY), ("peaks", PEAK_POLICY)):
        entries = data.get(section)
        if entries is None:
            policies[section] = default
        elif not isinstance(entries, list):
            raise ValueError(
                f"Section '{section}' must be a list of thresholds, got {type(entries).__name__}"
            )
        else:
            policies[section] = ThresholdPolicy(name=section, thresholds=tuple(entries))

    return ThresholdConfig(**policies)


def dump_thresholds(config: ThresholdConfig = DEFAULT_THRESHOLDS) -> str:
    """Render a threshold configuration as YAML accepted by ``load_thresholds``."""
    data = {
        section: [
            {
                "metric": t.metric,
                "limit": t.limit,
                "direction": t.direction.value,
                "label": t.label,
            }
            for t in policy.thresholds
        ]
        for section, policy in (("bottleneck", config.bottleneck), ("peaks", config.peaks))
    }
    header = (
        "# infra-monitor threshold configuration\n"
        "# direction: 'above' flags values strictly greater than limit,\n"
        "#            'below' flags values strictly less than limit.\n"
    )
    return header + yaml.safe_dump(data, sort_keys=False)


__all__ = [
    "BOTTLENECK_POLICY",
    "DEFAULT_THRESHOLDS",
    "PEAK_POLICY",
    "TREND_SIGNIFICANCE",
    "dump_thresholds",
    "load_thresholds",
]
