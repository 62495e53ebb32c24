"""CLI for infra-monitor.

Provides a command-line interface using Typer for:
- Collecting one sample into the metrics store (run from cron or a timer)
- Analyzing the store and writing a report
- Generating a threshold configuration file
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from infra_monitor.analysis.analyzer import HistoricalAnalyzer
from infra_monitor.core.config import DEFAULT_THRESHOLDS, dump_thresholds, load_thresholds
from infra_monitor.core.constants import (
    DEFAULT_DEVICE,
    DEFAULT_REPORT_PATH,
    DEFAULT_SAMPLE_INTERVAL,
    DEFAULT_STORE_PATH,
)
from infra_monitor.core.errors import DependencyError, StoreError
from infra_monitor.core.schemas import ThresholdConfig
from infra_monitor.monitoring.bottlenecks import check_bottlenecks
from infra_monitor.monitoring.collector import build_collector, check_dependencies
from infra_monitor.results.storage import MetricsStore
from infra_monitor.utils.logging import get_logger, setup_logging

app = typer.Typer(
    name="infra-monitor",
    help="Host and cluster metrics collection and analysis",
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)


def _load_thresholds_or_exit(path: Path | None) -> ThresholdConfig:
    try:
        return load_thresholds(path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error loading thresholds: {escape(str(e))}[/]")
        raise typer.Exit(1) from e


def _show_thresholds(config: ThresholdConfig) -> None:
    """Display the bottleneck and peak threshold policies."""
    for policy in (config.bottleneck, config.peaks):
        table = Table(title=f"{policy.name.capitalize()} thresholds")
        table.add_column("Metric", style="cyan")
        table.add_column("Label", style="white")
        table.add_column("Rule", style="green")
        for t in policy.thresholds:
            table.add_row(t.metric, t.label, t.describe())
        console.print(table)


def _analyze_help(ctx: typer.Context, value: bool) -> None:
    if not value or ctx.resilient_parsing:
        return
    console.print(ctx.get_usage(), markup=False, highlight=False)
    console.print(
        "\nAnalyze the metrics store for peaks, hourly patterns and trends.\n\n"
        "Arguments:\n"
        f"  STORE_PATH   CSV store to analyze (default: {DEFAULT_STORE_PATH})\n"
        f"  REPORT_PATH  Output report file (default: {DEFAULT_REPORT_PATH})\n\n"
        "Options:\n"
        "  -t, --thresholds FILE  YAML/JSON threshold overrides\n"
        "  -l, --log-level TEXT   Logging level\n"
        "  --log-file FILE        Write logs to file in addition to console\n"
        "  --json-logs            Output logs in JSON format\n"
        "  -h, --help             Show this message and the thresholds, then exit\n",
        markup=False,
        highlight=False,
    )
    _show_thresholds(DEFAULT_THRESHOLDS)
    console.print(
        "Default thresholds shown; a --thresholds file replaces a whole section when "
        "analyzing, but is not reflected here. Run 'infra-monitor init-config' to "
        "generate an editable copy.",
        markup=False,
        highlight=False,
    )
    raise typer.Exit()


@app.command()
def collect(
    store_path: Path = typer.Argument(
        Path(DEFAULT_STORE_PATH), help="CSV store to append the sample to"
    ),
    device: str = typer.Argument(DEFAULT_DEVICE, help="Block device to sample (e.g. nvme0n1)"),
    thresholds: Path | None = typer.Option(
        None, "--thresholds", "-t", help="YAML/JSON threshold overrides"
    ),
    interval: float = typer.Option(
        DEFAULT_SAMPLE_INTERVAL, "--interval", "-i", help="Two-point sampling interval (seconds)"
    ),
    log_level: str = typer.Option("INFO", "--log-level", "-l", help="Logging level"),
    log_file: Path | None = typer.Option(
        None, "--log-file", help="Write logs to file in addition to console"
    ),
    json_logs: bool = typer.Option(
        False, "--json-logs", help="Output logs in JSON format (for programmatic parsing)"
    ),
) -> None:
    """Collect one sample, append it to the store and check for bottlenecks."""
    setup_logging(
        level=log_level, log_file=log_file, json_format=json_logs, rich_console=not json_logs
    )
    logger.info("Starting single-run execution of the metrics collector.")

    threshold_config = _load_thresholds_or_exit(thresholds)

    try:
        check_dependencies()
    except DependencyError as e:
        console.print(f"[bold red]{escape(str(e))}[/]")
        raise typer.Exit(1) from e

    collector = build_collector(store_path, device=device, interval_seconds=interval)
    try:
        collector.store.ensure_compatible()
        sample = collector.collect()
    except StoreError as e:
        console.print(f"[bold red]{escape(str(e))}[/]")
        raise typer.Exit(1) from e

    check_bottlenecks(sample, threshold_config.bottleneck)
    logger.info("Execution completed.")


@app.command(add_help_option=False)
def analyze(
    store_path: Path = typer.Argument(Path(DEFAULT_STORE_PATH), help="CSV store to analyze"),
    report_path: Path = typer.Argument(Path(DEFAULT_REPORT_PATH), help="Output report file"),
    thresholds: Path | None = typer.Option(
        None, "--thresholds", "-t", help="YAML/JSON threshold overrides"
    ),
    log_level: str = typer.Option("INFO", "--log-level", "-l", help="Logging level"),
    log_file: Path | None = typer.Option(
        None, "--log-file", help="Write logs to file in addition to console"
    ),
    json_logs: bool = typer.Option(
        False, "--json-logs", help="Output logs in JSON format (for programmatic parsing)"
    ),
    show_help: bool = typer.Option(
        False,
        "--help",
        "-h",
        is_eager=True,
        expose_value=False,
        callback=_analyze_help,
        help="Show usage and the threshold configuration, then exit",
    ),
) -> None:
    """Analyze the metrics store and write a report."""
    setup_logging(
        level=log_level, log_file=log_file, json_format=json_logs, rich_console=not json_logs
    )
    logger.info(f"Starting metrics analysis for file: {store_path}")

    threshold_config = _load_thresholds_or_exit(thresholds)

    try:
        analyzer = HistoricalAnalyzer.from_store(MetricsStore(store_path), threshold_config)
    except StoreError as e:
        console.print(f"[bold red]{escape(str(e))}[/]")
        raise typer.Exit(1) from e

    try:
        analyzer.render_report(report_path, console=console)
    except OSError as e:
        console.print(f"[bold red]Failed to write report {report_path}: {escape(str(e))}[/]")
        raise typer.Exit(1) from e

    logger.info("Analysis completed successfully!")


@app.command()
def init_config(
    output: Path = typer.Option(
        Path("thresholds.yaml"), "--output", "-o", help="Output threshold configuration file"
    ),
) -> None:
    """Generate a threshold configuration file with the default policies."""
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(dump_thresholds())
    console.print(f"[bold green]Threshold configuration written to {output}[/]")


if __name__ == "__main__":
    app()
