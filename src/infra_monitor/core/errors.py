"""Exceptions for fatal setup problems.

Source-level failures during sampling are not exceptions: providers report
them as unavailable readings and the collector degrades that source only.
The errors below stop a command before it does any work.
"""

from __future__ import annotations

from pathlib import Path


class InfraMonitorError(Exception):
    """Base class for infra-monitor errors."""


class DependencyError(InfraMonitorError):
    """A required external tool or kernel statistics source is missing."""

    def __init__(self, message: str, dependency: str, suggestion: str = "") -> None:
        self.dependency = dependency
        self.suggestion = suggestion
        super().__init__(message)

    def __str__(self) -> str:
        text = super().__str__()
        if self.suggestion:
            return f"{text}\n  Suggestion: {self.suggestion}"
        return text


class StoreError(InfraMonitorError):
    """The metrics store is missing, empty, incompatible or not writable."""

    def __init__(self, message: str, path: Path | str) -> None:
        self.path = Path(path)
        super().__init__(message)
