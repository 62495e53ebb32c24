"""Kubernetes pod provider backed by the kubectl CLI.

Pod phases come from a single ``kubectl get pods -o json`` listing so all
counts describe the same snapshot. Top consumers come from ``kubectl top``,
which needs metrics-server in the cluster. Every call is bounded by a timeout.
"""

from __future__ import annotations

import json
import logging
import subprocess
from collections.abc import Callable
from typing import Any

from infra_monitor.core.constants import KUBECTL_TIMEOUT_SECONDS
from infra_monitor.monitoring.base import OrchestratorPods, PodPhaseCounts, Reading, TopPods

logger = logging.getLogger(__name__)


def count_pod_phases(pod_list: dict[str, Any]) -> PodPhaseCounts:
    """Count pods by ``status.phase`` in a ``kubectl get pods -o json`` document."""
    items = pod_list.get("items") or []
    phases = [(item.get("status") or {}).get("phase", "Unknown") for item in items]
    return PodPhaseCounts(
        total=len(items),
        running=phases.count("Running"),
        succeeded=phases.count("Succeeded"),
        pending=phases.count("Pending"),
    )


def parse_top_pod(output: str) -> str | None:
    """Return ``namespace/name`` from the first row of ``kubectl top pod -A --no-headers``.

    ``--sort-by`` orders rows descending, so the first row is the heaviest pod.
    """
    for line in output.splitlines():
        parts = line.split()
        if len(parts) >= 2:
            return f"{parts[0]}/{parts[1]}"
    return None


class KubectlPods(OrchestratorPods):
    """Pod statistics gathered by invoking kubectl."""

    def __init__(
        self,
        kubectl: str = "kubectl",
        timeout: float = KUBECTL_TIMEOUT_SECONDS,
        runner: Callable[..., subprocess.CompletedProcess[str]] = subprocess.run,
    ) -> None:
        self._kubectl = kubectl
        self._timeout = timeout
        self._runner = runner

    @property
    def name(self) -> str:
        return "kubectl"

    def _run(self, *args: str) -> subprocess.CompletedProcess[str] | None:
        cmd = [self._kubectl, *args]
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            return self._runner(cmd, capture_output=True, text=True, timeout=self._timeout)
        except subprocess.TimeoutExpired:
            logger.debug(f"Timed out after {self._timeout}s: {' '.join(cmd)}")
        except OSError as e:
            logger.debug(f"Failed to run {' '.join(cmd)}: {e}")
        return None

    def is_reachable(self) -> bool:
        result = self._run("cluster-info")
        return result is not None and result.returncode == 0

    def phase_counts(self) -> Reading[PodPhaseCounts]:
        result = self._run("get", "pods", "--all-namespaces", "-o", "json")
        if result is None or result.returncode != 0:
            stderr = result.stderr.strip() if result is not None else "no response"
            return Reading.unavailable(f"Pod listing failed: {stderr}")
        try:
            return Reading.ok(count_pod_phases(json.loads(result.stdout)))
        except (json.JSONDecodeError, AttributeError) as e:
            return Reading.unavailable(f"Unparseable pod listing: {e}")

    def top_pods(self) -> Reading[TopPods]:
        ranked: dict[str, str] = {}
        for resource in ("cpu", "memory"):
            result = self._run(
                "top", "pod", "--all-namespaces", "--no-headers", f"--sort-by={resource}"
            )
            if result is None or result.returncode != 0:
                return Reading.unavailable(
                    "'kubectl top' command failed. Metrics Server may not be installed "
                    "or functioning."
                )
            pod = parse_top_pod(result.stdout)
            if pod is None:
                return Reading.unavailable("'kubectl top' returned no pods")
            ranked[resource] = pod
        return Reading.ok(TopPods(cpu=ranked["cpu"], memory=ranked["memory"]))
