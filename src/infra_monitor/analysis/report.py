"""Plain-text rendering of analysis report sections."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from infra_monitor.core.constants import TIMESTAMP_FORMAT
from infra_monitor.core.schemas import (
    HourlyBucket,
    PeakDetection,
    SummaryStatistics,
    TrendAnalysis,
    TrendDirection,
)

RULE = "=" * 40

_STATS_LAYOUT: dict[str, tuple[str, str]] = {
    # metric -> (heading, value format)
    "cpu_total": ("CPU (User + System):", "{:.1f}%"),
    "mem_used": ("Memory Used (MB):", "{:.0f} MB"),
    "disk_util_pct": ("Disk I/O Utilization (%):", "{:.1f}%"),
}

_TREND_LAYOUT: dict[str, tuple[str, str]] = {
    "cpu_total": ("CPU", "%"),
    "mem_used": ("Memory", "MB"),
}


def format_value(value: float) -> str:
    """Integral values without decimals, others with two."""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}"


def format_header(store_path: Path, generated_at: datetime) -> str:
    return "\n".join(
        [
            RULE,
            "  METRICS ANALYSIS REPORT",
            RULE,
            f"Generated on: {generated_at.strftime(TIMESTAMP_FORMAT)}",
            f"Analyzed file: {store_path}",
            RULE,
        ]
    )


def format_footer() -> str:
    return "\n".join([RULE, "Analysis completed!", RULE])


def format_summary(stats: SummaryStatistics) -> str:
    lines = [
        "=== GENERAL STATISTICS ===",
        f"Analysis period: {stats.first_timestamp.strftime(TIMESTAMP_FORMAT)} to "
        f"{stats.last_timestamp.strftime(TIMESTAMP_FORMAT)}",
        f"Total samples: {stats.total_samples}",
        f"Monitoring duration: {stats.duration_hours} hours",
        "",
    ]
    for m in stats.metrics:
        heading, fmt = _STATS_LAYOUT.get(m.metric, (f"{m.metric}:", "{:.2f}"))
        lines.append(heading)
        lines.append(
            f"  Min: {fmt.format(m.minimum)} | Max: {fmt.format(m.maximum)} | "
            f"Avg: {fmt.format(m.mean)} | Samples: {m.count}"
        )
    return "\n".join(lines)


def format_hourly(buckets: list[HourlyBucket]) -> str:
    lines = ["=== ANALYSIS BY HOUR ==="]
    for b in buckets:
        lines.append(
            f"Hour {b.hour:02d}:00 - CPU: {b.avg_cpu_total:.1f}% | "
            f"Memory: {b.avg_mem_percent:.1f}% | Samples: {b.samples}"
        )
    return "\n".join(lines)


def format_trends(analysis: TrendAnalysis) -> str:
    if not analysis.sufficient:
        return (
            f"Insufficient data for trend analysis (minimum {2 * analysis.window} samples, "
            f"found {analysis.sample_count})"
        )

    window = analysis.window
    lines = [f"=== TRENDS (Last {window} vs First {window} samples) ==="]
    for r in analysis.reports:
        name, unit = _TREND_LAYOUT.get(r.metric, (r.metric, ""))
        if r.classification is TrendDirection.INCREASE:
            text = f"Significant increase (+{r.delta:.2f}{unit})"
        elif r.classification is TrendDirection.DECREASE:
            text = f"Significant decrease ({r.delta:.2f}{unit})"
        else:
            text = f"Stable ({r.delta:.2f}{unit})"
        lines.append(
            f"{name}: {text} [recent avg {r.recent_avg:.2f}, older avg {r.older_avg:.2f}]"
        )
    return "\n".join(lines)


def format_peaks(detection: PeakDetection) -> str:
    t = detection.threshold
    lines = [f"Analyzing peaks for {t.label} (threshold: {t.describe()})"]
    for event in detection.events:
        lines.append(
            f"PEAK: {event.timestamp.strftime(TIMESTAMP_FORMAT)} - {t.label}: "
            f"{format_value(event.value)}"
        )
        if event.minutes_since_previous is not None:
            lines.append(f"  -> Interval since last peak: {event.minutes_since_previous} minutes")
    if not detection.events:
        lines.append(f"No peaks found for {t.label}")
    return "\n".join(lines)
