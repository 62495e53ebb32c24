"""Results module - metrics store."""

from infra_monitor.results.storage import MetricsStore, samples_to_dataframe

__all__ = ["MetricsStore", "samples_to_dataframe"]
