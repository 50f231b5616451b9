"""Prometheus metrics for the launcher.

The launcher does not outlive the handoff, so metrics are exported through
the node-exporter textfile collector instead of an HTTP endpoint.
"""

from __future__ import annotations

from pathlib import Path

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    Info,
    write_to_textfile,
)


class MetricsRegistry:
    """Registry of all launcher metrics."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize metrics registry."""
        self._registry = registry or CollectorRegistry()

        self.steps_total = Counter(
            "launcher_steps_total",
            "Total startup steps run",
            ["step", "status"],  # succeeded, failed, skipped
            registry=self._registry,
        )

        self.storage_initializations_total = Counter(
            "storage_initializations_total",
            "Total storage file initializations",
            ["status"],  # created, unchanged, failed
            registry=self._registry,
        )

        self.bootstrap_duration_seconds = Histogram(
            "bootstrap_duration_seconds",
            "Time from launcher start to handoff",
            buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
            registry=self._registry,
        )

        self.service_handoffs_total = Counter(
            "service_handoffs_total",
            "Total service handoffs",
            ["mode"],  # exec, supervise
            registry=self._registry,
        )

        self.info = Info(
            "launcher",
            "Launcher information",
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def write(self, path: Path) -> None:
        """Write all metrics to a textfile collector file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        write_to_textfile(str(path), self._registry)


_metrics: MetricsRegistry | None = None


def setup_metrics(registry: CollectorRegistry | None = None) -> MetricsRegistry:
    """Set up the global metrics registry."""
    global _metrics
    _metrics = MetricsRegistry(registry)

    from db_launcher import __version__
    _metrics.info.info({"version": __version__})
    return _metrics


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsRegistry()
    return _metrics
