"""Historical analysis of the metrics store.

Reads the whole store once and derives:
- summary statistics (min/max/mean/count) for CPU, memory and I/O utilization
- hour-of-day averages merged across calendar days
- recent-window vs older-window trend classification
- threshold-based peak detection with inter-peak intervals

The store is never modified. Sections are rendered independently so a failure
in one does not prevent the others from being reported.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from rich.console import Console

from infra_monitor.analysis import report
from infra_monitor.core.config import DEFAULT_THRESHOLDS, TREND_SIGNIFICANCE
from infra_monitor.core.constants import SAMPLE_COLUMNS, TREND_WINDOW
from infra_monitor.core.errors import StoreError
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
    TrendAnalysis,
    TrendDirection,
    TrendReport,
    metric_value,
)
from infra_monitor.results.storage import MetricsStore, samples_to_dataframe

logger = logging.getLogger(__name__)

# Metrics in the general statistics section; I/O utilization is the last column
SUMMARY_METRICS: tuple[str, ...] = ("cpu_total", "mem_used", SAMPLE_COLUMNS[-1])


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


class HistoricalAnalyzer:
    """Analyzer over a snapshot of stored samples.

    The snapshot is taken once so every report section describes the same
    rows, even if a collector appends while the report is being built.

    Example:
        ```python
        analyzer = HistoricalAnalyzer.from_store(MetricsStore("infra_metrics.csv"))
        text = analyzer.render_report(Path("analysis_report.txt"), console=Console())
        ```
    """

    def __init__(
        self,
        samples: list[Sample],
        thresholds: ThresholdConfig = DEFAULT_THRESHOLDS,
        source: Path | str = "<memory>",
        window: int = TREND_WINDOW,
    ) -> None:
        """Initialize the analyzer.

        Args:
            samples: Samples in chronological (stored) order
            thresholds: Policies; ``thresholds.peaks`` drives peak detection
            source: Store location shown in the report header
            window: Trend window size in samples
        """
        self.samples = list(samples)
        self.thresholds = thresholds
        self.source = Path(source)
        self.window = window

    @classmethod
    def from_store(
        cls, store: MetricsStore, thresholds: ThresholdConfig = DEFAULT_THRESHOLDS
    ) -> HistoricalAnalyzer:
        """Validate the store and load its samples.

        Raises:
            StoreError: If the store is missing, incompatible, or has no
                parseable samples
        """
        store.validate()
        samples = store.load()
        if not samples:
            raise StoreError(f"No valid samples could be parsed from {store.path}", store.path)
        logger.info(f"Loaded {len(samples)} samples from {store.path}")
        return cls(samples, thresholds=thresholds, source=store.path)

    def summary_statistics(self) -> SummaryStatistics:
        """Min, max, mean and count for the summary metrics over all samples."""
        logger.info("Generating general statistics")
        df = samples_to_dataframe(self.samples)
        metrics = []
        for metric in SUMMARY_METRICS:
            series = df[metric].astype(float)
            metrics.append(
                MetricStats(
                    metric=metric,
                    minimum=float(series.min()),
                    maximum=float(series.max()),
                    mean=float(series.mean()),
                    count=int(series.count()),
                )
            )
        return SummaryStatistics(
            first_timestamp=self.samples[0].timestamp,
            last_timestamp=self.samples[-1].timestamp,
            total_samples=len(self.samples),
            metrics=metrics,
        )

    def hourly_pattern(self) -> list[HourlyBucket]:
        """Average CPU total and memory percent per hour of day (0-23).

        Samples from different days that share an hour land in the same bucket.
        """
        logger.info("Analyzing time-based usage patterns")
        df = samples_to_dataframe(self.samples)
        grouped = df.groupby(df["timestamp"].dt.hour).agg(
            cpu=("cpu_total", "mean"),
            mem=("mem_percent", "mean"),
            samples=("cpu_total", "size"),
        )
        return [
            HourlyBucket(
                hour=int(hour),
                avg_cpu_total=float(row["cpu"]),
                avg_mem_percent=float(row["mem"]),
                samples=int(row["samples"]),
            )
            for hour, row in grouped.sort_index().iterrows()
        ]

    def trend_detection(self) -> TrendAnalysis:
        """Compare the newest window against the oldest window.

        Requires two full windows; with fewer samples the result is marked
        insufficient and no comparison is made.
        """
        logger.info("Detecting growth/decline trends")
        count = len(self.samples)
        if count < 2 * self.window:
            logger.info(f"Insufficient data for trend analysis: {count} samples")
            return TrendAnalysis(sample_count=count, window=self.window, sufficient=False)

        recent = self.samples[-self.window :]
        older = self.samples[: self.window]
        reports = []
        for metric, significance in TREND_SIGNIFICANCE.items():
            recent_avg = _mean([metric_value(s, metric) for s in recent])
            older_avg = _mean([metric_value(s, metric) for s in older])
            delta = recent_avg - older_avg
            if delta > significance:
                classification = TrendDirection.INCREASE
            elif delta < -significance:
                classification = TrendDirection.DECREASE
            else:
                classification = TrendDirection.STABLE
            reports.append(
                TrendReport(
                    metric=metric,
                    recent_avg=recent_avg,
                    older_avg=older_avg,
                    delta=delta,
                    significance=significance,
                    classification=classification,
                )
            )
        return TrendAnalysis(sample_count=count, window=self.window, sufficient=True, reports=reports)

    def find_peaks(
        self, metric: str, threshold: float, direction: Direction | str = Direction.ABOVE
    ) -> list[PeakEvent]:
        """Scan samples in stored order for threshold breaches of one metric.

        Args:
            metric: Raw column or compound metric name
            threshold: Limit; comparison is strict
            direction: ``above`` or ``below``

        Returns:
            Peak events in chronological order. The first has no interval;
            later ones carry whole minutes (truncated) since the previous peak.
        """
        rule = Threshold(metric=metric, limit=threshold, direction=Direction(direction))
        events: list[PeakEvent] = []
        last_peak: datetime | None = None
        for sample in self.samples:
            value = metric_value(sample, metric)
            if not rule.is_breached(value):
                continue
            interval = None
            if last_peak is not None:
                interval = int((sample.timestamp - last_peak).total_seconds() / 60)
            events.append(
                PeakEvent(
                    timestamp=sample.timestamp,
                    metric=metric,
                    value=value,
                    minutes_since_previous=interval,
                )
            )
            last_peak = sample.timestamp
        logger.debug(f"{len(events)} peaks for {rule.describe()}")
        return events

    def detect_peaks(self, threshold: Threshold) -> PeakDetection:
        """Run ``find_peaks`` for one policy threshold."""
        logger.info(f"Analyzing peaks for {threshold.label} (threshold: {threshold.limit:g})")
        events = self.find_peaks(threshold.metric, threshold.limit, threshold.direction)
        return PeakDetection(threshold=threshold, events=events)

    def _peaks_section(self) -> str:
        parts = ["=== PEAK DETECTION ==="]
        for threshold in self.thresholds.peaks.thresholds:
            parts.append(
                _render_section(
                    f"peaks:{threshold.metric}",
                    lambda t=threshold: report.format_peaks(self.detect_peaks(t)),
                )
            )
            parts.append("")
        return "\n".join(parts).rstrip("\n")

    def build_report(self, generated_at: datetime | None = None) -> str:
        """Concatenate all sections in their fixed order."""
        sections = [
            report.format_header(self.source, generated_at or datetime.now()),
            "",
            _render_section("statistics", lambda: report.format_summary(self.summary_statistics())),
            "",
            _render_section("hourly", lambda: report.format_hourly(self.hourly_pattern())),
            "",
            _render_section("trends", lambda: report.format_trends(self.trend_detection())),
            "",
            self._peaks_section(),
            "",
            report.format_footer(),
        ]
        return "\n".join(sections) + "\n"

    def render_report(
        self,
        report_path: Path | str | None = None,
        console: Console | None = None,
        generated_at: datetime | None = None,
    ) -> str:
        """Build the report, write it to ``report_path`` and print it to ``console``.

        Raises:
            OSError: If the report file cannot be written
        """
        text = self.build_report(generated_at)
        if report_path is not None:
            report_path = Path(report_path)
            report_path.parent.mkdir(parents=True, exist_ok=True)
            report_path.write_text(text, encoding="utf-8")
            logger.info(f"Report saved to: {report_path}")
        if console is not None:
            console.print(text, markup=False, highlight=False, soft_wrap=True, end="")
        return text


def _render_section(name: str, render: Callable[[], str]) -> str:
    """Render one section, replacing it with an error line if it fails."""
    try:
        return render()
    except Exception as e:
        logger.exception(f"Report section '{name}' failed")
        return f"[{name}] section could not be produced: {e}"
