"""Prometheus metrics published by the exporter."""

from typing import Protocol

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge

from .models import MetricSample

RELEASE_VERSION_METRIC = "chart_release_version"
RELEASE_LABELS = ["repo", "chart", "version", "release_date"]


class MetricSet(Protocol):
    """Where the reconciliation loop publishes resolved releases."""

    def upsert(self, sample: MetricSample) -> None: ...

    def record_check(self, repo: str, chart: str, success: bool) -> None: ...

    def mark_cycle_complete(self) -> None: ...


class PrometheusMetricSet:
    """MetricSet backed by prometheus_client collectors on one registry.

    Label combinations are never removed: a chart whose version changes keeps
    its previous sample until the process restarts.
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        self.registry = registry if registry is not None else REGISTRY
        self.release_version = Gauge(
            RELEASE_VERSION_METRIC,
            "Release version of a Helm chart",
            RELEASE_LABELS,
            registry=self.registry,
        )
        self.checks_total = Counter(
            "chart_release_checks_total",
            "Number of chart release checks",
            ["repo", "chart", "status"],
            registry=self.registry,
        )
        self.last_cycle_timestamp = Gauge(
            "chart_release_last_cycle_timestamp_seconds",
            "Unix time at which the last release check cycle finished",
            registry=self.registry,
        )

    def upsert(self, sample: MetricSample) -> None:
        self.release_version.labels(**sample.labels).set(1)

    def record_check(self, repo: str, chart: str, success: bool) -> None:
        status = "success" if success else "error"
        self.checks_total.labels(repo=repo, chart=chart, status=status).inc()

    def mark_cycle_complete(self) -> None:
        self.last_cycle_timestamp.set_to_current_time()

    def samples(self) -> list[MetricSample]:
        """Label tuples currently published on the release version gauge."""
        published = []
        for family in self.release_version.collect():
            for sample in family.samples:
                published.append(MetricSample(**{k: sample.labels[k] for k in RELEASE_LABELS}))
        return published
