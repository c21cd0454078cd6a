"""Tests for the Prometheus metric set."""

from prometheus_client import CollectorRegistry, generate_latest
from prometheus_client.parser import text_string_to_metric_families

from release_exporter.metrics import PrometheusMetricSet
from release_exporter.models import MetricSample

REDIS = MetricSample(
    repo="https://charts.example.com",
    chart="redis",
    version="17.0.0",
    release_date="01-03-2024",
)


def test_upsert_publishes_gauge_of_one(registry: CollectorRegistry, metric_set: PrometheusMetricSet):
    metric_set.upsert(REDIS)

    assert registry.get_sample_value("chart_release_version", REDIS.labels) == 1.0


def test_upsert_is_idempotent(metric_set: PrometheusMetricSet):
    metric_set.upsert(REDIS)
    metric_set.upsert(REDIS)

    assert metric_set.samples() == [REDIS]


def test_new_version_keeps_previous_sample(registry: CollectorRegistry, metric_set: PrometheusMetricSet):
    newer = MetricSample(REDIS.repo, REDIS.chart, "17.1.0", "15-04-2024")

    metric_set.upsert(REDIS)
    metric_set.upsert(newer)

    assert set(metric_set.samples()) == {REDIS, newer}
    assert registry.get_sample_value("chart_release_version", REDIS.labels) == 1.0
    assert registry.get_sample_value("chart_release_version", newer.labels) == 1.0


def test_exposition_format(registry: CollectorRegistry, metric_set: PrometheusMetricSet):
    metric_set.upsert(REDIS)

    families = {
        family.name: family
        for family in text_string_to_metric_families(generate_latest(registry).decode())
    }

    release = families["chart_release_version"]
    assert release.documentation == "Release version of a Helm chart"
    assert release.type == "gauge"
    assert [(s.labels, s.value) for s in release.samples] == [(REDIS.labels, 1.0)]


def test_no_samples_before_upsert(metric_set: PrometheusMetricSet):
    assert metric_set.samples() == []


def test_check_counters(registry: CollectorRegistry, metric_set: PrometheusMetricSet):
    metric_set.record_check(REDIS.repo, "redis", success=True)
    metric_set.record_check(REDIS.repo, "redis", success=True)
    metric_set.record_check(REDIS.repo, "nginx", success=False)

    labels = {"repo": REDIS.repo, "chart": "redis", "status": "success"}
    assert registry.get_sample_value("chart_release_checks_total", labels) == 2.0
    labels = {"repo": REDIS.repo, "chart": "nginx", "status": "error"}
    assert registry.get_sample_value("chart_release_checks_total", labels) == 1.0


def test_mark_cycle_complete(registry: CollectorRegistry, metric_set: PrometheusMetricSet):
    assert registry.get_sample_value("chart_release_last_cycle_timestamp_seconds") == 0.0

    metric_set.mark_cycle_complete()

    assert registry.get_sample_value("chart_release_last_cycle_timestamp_seconds") > 0


def test_separate_registries_do_not_clash():
    first = PrometheusMetricSet(CollectorRegistry())
    second = PrometheusMetricSet(CollectorRegistry())

    first.upsert(REDIS)

    assert second.samples() == []
