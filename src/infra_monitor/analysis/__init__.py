"""Analysis module - historical analysis of stored samples."""

from infra_monitor.analysis.analyzer import HistoricalAnalyzer

__all__ = ["HistoricalAnalyzer"]
