"""Shared constants for infra-monitor.

Centralized constants so the collector and the analyzer agree on file
locations, the store layout and the analysis windows.
"""

from __future__ import annotations

# Ordered store columns. The header written to a new store is exactly this
# tuple; it must never change once samples exist.
SAMPLE_COLUMNS: tuple[str, ...] = (
    "timestamp",
    "cpu_user",
    "cpu_system",
    "mem_used",
    "mem_free",
    "disk_root_used",
    "disk_var_used",
    "disk_opt_used",
    "top_cpu_pod",
    "top_mem_pod",
    "total_pods",
    "running",
    "completed",
    "pending",
    "other",
    "reads_per_sec",
    "writes_per_sec",
    "avg_queue_size",
    "read_await_ms",
    "write_await_ms",
    "disk_util_pct",
)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Placeholder for pod identifiers when the orchestrator cannot be queried
UNAVAILABLE = "N/A"

DEFAULT_STORE_PATH = "./infra_metrics.csv"
DEFAULT_REPORT_PATH = "./analysis_report.txt"
DEFAULT_DEVICE = "sda"

# Mount points sampled for disk usage, keyed by the store column they fill
DISK_MOUNTS: dict[str, str] = {
    "disk_root_used": "/",
    "disk_var_used": "/var",
    "disk_opt_used": "/opt",
}

# Two-point sampling interval for CPU and block-device rates (seconds)
DEFAULT_SAMPLE_INTERVAL = 1.0

# Upper bound for a single kubectl invocation (seconds)
KUBECTL_TIMEOUT_SECONDS = 10.0

# Trend detection compares the newest window against the oldest window
TREND_WINDOW = 20
