"""Immediate bottleneck check for a freshly collected sample.

Evaluates only the newest sample against the bottleneck policy. No history is
consulted and nothing is persisted; the output is log lines.
"""

from __future__ import annotations

import logging

from infra_monitor.core.config import BOTTLENECK_POLICY
from infra_monitor.core.schemas import Sample, Threshold, ThresholdPolicy, metric_value

logger = logging.getLogger(__name__)


def _alert_message(sample: Sample, threshold: Threshold, value: float) -> str:
    metric = threshold.metric
    if metric == "cpu_total":
        return (
            f"High CPU usage detected: {sample.cpu_user:g}% user + {sample.cpu_system:g}% "
            f"system. Total > {threshold.limit:g}%."
        )
    if metric == "mem_percent":
        return f"High memory usage detected: {value:.2f}% used."
    if metric == "disk_root_used":
        return f"Root disk low on space: {value:g}% used."
    if metric == "avg_queue_size":
        return f"High I/O queue size: avgqu-sz={value:g}. May indicate I/O saturation."
    if metric == "disk_util_pct":
        return f"Disk heavily utilized: {value:g}% utilization."
    if metric == "other":
        return f"{value:g} pod(s) in anomalous state detected (Failed, Unknown, etc.)."
    if metric == "pending":
        return f"{value:g} pod(s) pending. May indicate resource starvation."
    return f"{threshold.label} at {value:g} breaches {threshold.describe()}."


def check_bottlenecks(
    sample: Sample, policy: ThresholdPolicy = BOTTLENECK_POLICY
) -> list[Threshold]:
    """Warn about every threshold the sample breaches.

    Args:
        sample: The sample just collected
        policy: Thresholds to evaluate

    Returns:
        Breached thresholds, in policy order
    """
    logger.info("Analyzing last collection for potential bottlenecks...")
    breached: list[Threshold] = []
    for threshold in policy.thresholds:
        value = metric_value(sample, threshold.metric)
        if threshold.is_breached(value):
            logger.warning(f"ALERT: {_alert_message(sample, threshold, value)}")
            breached.append(threshold)

    logger.info(
        f"Pod status - Total: {sample.total_pods} | Running: {sample.running} | "
        f"Completed: {sample.completed} | Pending: {sample.pending} | Other: {sample.other}"
    )
    return breached
