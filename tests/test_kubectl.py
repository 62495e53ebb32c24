"""Tests for the kubectl pod provider."""

import json
import subprocess
from unittest.mock import MagicMock

from infra_monitor.monitoring.base import PodPhaseCounts
from infra_monitor.monitoring.kubectl import KubectlPods, count_pod_phases, parse_top_pod


def completed(stdout: str = "", returncode: int = 0, stderr: str = "") -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


def pod_list(*phases: str) -> dict:
    return {"items": [{"metadata": {"name": f"p{i}"}, "status": {"phase": p}} for i, p in enumerate(phases)]}


TOP_CPU = """\
monitoring   prometheus-0   950m   1200Mi
default      api-7d9f       120m   300Mi
"""

TOP_MEM = """\
default      redis-0        15m    2048Mi
monitoring   prometheus-0   950m   1200Mi
"""


class TestParsing:
    """Tests for kubectl output parsing."""

    def test_count_pod_phases(self):
        counts = count_pod_phases(
            pod_list("Running", "Running", "Succeeded", "Pending", "Failed", "Unknown")
        )
        assert counts == PodPhaseCounts(total=6, running=2, succeeded=1, pending=1)

    def test_count_pod_phases_empty(self):
        assert count_pod_phases({"items": []}) == PodPhaseCounts()

    def test_pod_without_status(self):
        counts = count_pod_phases({"items": [{"metadata": {}}]})
        assert counts.total == 1
        assert counts.running == 0

    def test_parse_top_pod_first_row(self):
        assert parse_top_pod(TOP_CPU) == "monitoring/prometheus-0"
        assert parse_top_pod(TOP_MEM) == "default/redis-0"

    def test_parse_top_pod_empty(self):
        assert parse_top_pod("\n") is None


class TestKubectlPods:
    """Tests for KubectlPods with a mocked command runner."""

    def test_reachable(self):
        runner = MagicMock(return_value=completed())
        assert KubectlPods(runner=runner).is_reachable()
        cmd = runner.call_args[0][0]
        assert cmd == ["kubectl", "cluster-info"]
        assert runner.call_args.kwargs["timeout"] > 0

    def test_unreachable_nonzero_exit(self):
        runner = MagicMock(return_value=completed(returncode=1, stderr="connection refused"))
        assert not KubectlPods(runner=runner).is_reachable()

    def test_unreachable_on_timeout(self):
        runner = MagicMock(side_effect=subprocess.TimeoutExpired(cmd="kubectl", timeout=10))
        assert not KubectlPods(runner=runner).is_reachable()

    def test_unreachable_when_binary_missing(self):
        runner = MagicMock(side_effect=FileNotFoundError("kubectl"))
        assert not KubectlPods(runner=runner).is_reachable()

    def test_phase_counts(self):
        runner = MagicMock(
            return_value=completed(json.dumps(pod_list("Running", "Pending", "Failed")))
        )
        reading = KubectlPods(runner=runner).phase_counts()
        assert reading.value == PodPhaseCounts(total=3, running=1, succeeded=0, pending=1)
        assert runner.call_args[0][0] == [
            "kubectl", "get", "pods", "--all-namespaces", "-o", "json",
        ]

    def test_phase_counts_failure(self):
        runner = MagicMock(return_value=completed(returncode=1, stderr="forbidden"))
        reading = KubectlPods(runner=runner).phase_counts()
        assert not reading.available
        assert "forbidden" in reading.reason

    def test_phase_counts_bad_json(self):
        runner = MagicMock(return_value=completed("not json"))
        assert not KubectlPods(runner=runner).phase_counts().available

    def test_top_pods(self):
        runner = MagicMock(side_effect=[completed(TOP_CPU), completed(TOP_MEM)])
        reading = KubectlPods(runner=runner).top_pods()
        assert reading.value.cpu == "monitoring/prometheus-0"
        assert reading.value.memory == "default/redis-0"
        sort_flags = [call[0][0][-1] for call in runner.call_args_list]
        assert sort_flags == ["--sort-by=cpu", "--sort-by=memory"]

    def test_top_pods_without_metrics_server(self):
        runner = MagicMock(
            return_value=completed(returncode=1, stderr="Metrics API not available")
        )
        reading = KubectlPods(runner=runner).top_pods()
        assert not reading.available
        assert "Metrics Server may not be installed" in reading.reason
