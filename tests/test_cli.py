"""Tests for the infra-monitor CLI."""

from datetime import datetime, timedelta

import pytest
from typer.testing import CliRunner

from infra_monitor.cli import app
from infra_monitor.core.config import DEFAULT_THRESHOLDS, load_thresholds
from infra_monitor.core.constants import SAMPLE_COLUMNS
from infra_monitor.core.errors import DependencyError
from infra_monitor.core.schemas import Sample
from infra_monitor.results.storage import MetricsStore

from conftest import FakePods

runner = CliRunner()


@pytest.fixture
def populated_store(store_path):
    store = MetricsStore(store_path)
    start = datetime(2024, 1, 1, 9, 0, 0)
    for i, cpu in enumerate([20, 85, 30, 95]):
        store.append(Sample(timestamp=start + timedelta(minutes=5 * i), cpu_user=cpu))
    return store_path


@pytest.fixture
def fake_collection(monkeypatch, make_collector):
    """Patch the CLI to skip real dependency checks and use fake providers."""
    overrides = {}

    def build(store_path, device, interval_seconds):
        return make_collector(store=MetricsStore(store_path), device=device, **overrides)

    monkeypatch.setattr("infra_monitor.cli.check_dependencies", lambda: None)
    monkeypatch.setattr("infra_monitor.cli.build_collector", build)
    return overrides


class TestAnalyzeCommand:
    """Tests for the analyze command."""

    def test_help_shows_thresholds(self):
        result = runner.invoke(app, ["analyze", "--help"])

        assert result.exit_code == 0
        assert "STORE_PATH" in result.output
        assert "REPORT_PATH" in result.output
        assert "Bottleneck thresholds" in result.output
        assert "Peaks thresholds" in result.output
        assert "cpu_total > 80" in result.output

    def test_help_notes_overrides_not_shown(self, tmp_path):
        config = tmp_path / "thresholds.yaml"
        config.write_text("peaks:\n  - metric: cpu_total\n    limit: 10\n")

        result = runner.invoke(app, ["analyze", "-t", str(config), "--help"])

        assert result.exit_code == 0
        assert "Default thresholds shown" in " ".join(result.output.split())
        assert "cpu_total > 80" in result.output

    def test_short_help_flag(self):
        result = runner.invoke(app, ["analyze", "-h"])
        assert result.exit_code == 0
        assert "Peaks thresholds" in result.output

    def test_missing_store(self, store_path, tmp_path):
        report = tmp_path / "report.txt"
        result = runner.invoke(app, ["analyze", str(store_path), str(report)])

        assert result.exit_code == 1
        assert "Metrics store not found" in result.output
        assert not report.exists()

    def test_header_only_store(self, store_path, tmp_path):
        store_path.write_text(",".join(SAMPLE_COLUMNS) + "\n")
        report = tmp_path / "report.txt"

        result = runner.invoke(app, ["analyze", str(store_path), str(report)])

        assert result.exit_code == 1
        assert not report.exists()

    def test_writes_report(self, populated_store, tmp_path):
        report = tmp_path / "report.txt"

        result = runner.invoke(app, ["analyze", str(populated_store), str(report)])

        assert result.exit_code == 0
        assert "METRICS ANALYSIS REPORT" in result.output
        text = report.read_text()
        assert "PEAK: 2024-01-01 09:05:00 - Total CPU: 85" in text
        assert "  -> Interval since last peak: 10 minutes" in text
        assert "Analysis completed!" in text

    def test_threshold_overrides(self, populated_store, tmp_path):
        config = tmp_path / "thresholds.yaml"
        config.write_text("peaks:\n  - metric: cpu_total\n    limit: 90\n    label: CPU\n")
        report = tmp_path / "report.txt"

        result = runner.invoke(
            app, ["analyze", str(populated_store), str(report), "--thresholds", str(config)]
        )

        assert result.exit_code == 0
        text = report.read_text()
        assert "Analyzing peaks for CPU (threshold: cpu_total > 90)" in text
        assert "PEAK: 2024-01-01 09:15:00 - CPU: 95" in text
        assert "Memory" not in text.split("=== PEAK DETECTION ===")[1]

    def test_missing_threshold_file(self, populated_store, tmp_path):
        result = runner.invoke(
            app, ["analyze", str(populated_store), "-t", str(tmp_path / "absent.yaml")]
        )
        assert result.exit_code == 1
        assert "Error loading thresholds" in result.output

    @pytest.mark.parametrize("content", ["peaks: [unclosed\n", "peaks: 5\n"])
    def test_invalid_threshold_file(self, populated_store, tmp_path, content):
        config = tmp_path / "thresholds.yaml"
        config.write_text(content)
        report = tmp_path / "report.txt"

        result = runner.invoke(
            app, ["analyze", str(populated_store), str(report), "-t", str(config)]
        )

        assert result.exit_code == 1
        assert result.exception is None or isinstance(result.exception, SystemExit)
        assert "Error loading thresholds" in result.output
        assert not report.exists()


class TestCollectCommand:
    """Tests for the collect command."""

    def test_missing_dependency(self, monkeypatch, store_path):
        def missing():
            raise DependencyError(
                "Missing dependency: kubectl. The collector cannot continue.",
                dependency="kubectl",
            )

        monkeypatch.setattr("infra_monitor.cli.check_dependencies", missing)

        result = runner.invoke(app, ["collect", str(store_path)])

        assert result.exit_code == 1
        assert "Missing dependency: kubectl" in result.output
        assert not store_path.exists()

    def test_collects_one_sample(self, fake_collection, store_path):
        result = runner.invoke(app, ["collect", str(store_path), "sda"])

        assert result.exit_code == 0
        samples = MetricsStore(store_path).load()
        assert len(samples) == 1
        assert samples[0].top_cpu_pod == "default/api"

    def test_unreachable_cluster_still_collects(self, fake_collection, store_path):
        fake_collection["pods"] = FakePods(reachable=False)

        result = runner.invoke(app, ["collect", str(store_path)])

        assert result.exit_code == 0
        (sample,) = MetricsStore(store_path).load()
        assert sample.top_cpu_pod == "N/A"
        assert sample.total_pods == 0
        assert sample.cpu_user == 40.0

    def test_incompatible_store(self, fake_collection, store_path):
        store_path.write_text("timestamp,cpu\n")

        result = runner.invoke(app, ["collect", str(store_path)])

        assert result.exit_code == 1
        assert store_path.read_text() == "timestamp,cpu\n"


class TestInitConfig:
    def test_writes_loadable_defaults(self, tmp_path):
        output = tmp_path / "conf" / "thresholds.yaml"

        result = runner.invoke(app, ["init-config", "--output", str(output)])

        assert result.exit_code == 0
        assert load_thresholds(output) == DEFAULT_THRESHOLDS
