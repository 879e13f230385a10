"""Tests for the refresh metrics sink."""

from prometheus_client import CollectorRegistry

from oci_sd.metrics import MetricsSink, PrometheusMetrics, default_metrics


class TestPrometheusMetrics:
    def test_counts_and_observes(self):
        registry = CollectorRegistry()
        metrics = PrometheusMetrics(registry=registry)
        metrics.inc_refresh_failures()
        metrics.observe_refresh_duration(1.5)
        metrics.observe_refresh_duration(0.5)

        assert registry.get_sample_value("prometheus_sd_oci_refresh_failures_total") == 1.0
        assert registry.get_sample_value("prometheus_sd_oci_refresh_duration_count") == 2.0
        assert registry.get_sample_value("prometheus_sd_oci_refresh_duration_sum") == 2.0

    def test_satisfies_sink_protocol(self):
        assert isinstance(PrometheusMetrics(registry=CollectorRegistry()), MetricsSink)

    def test_default_metrics_is_shared(self):
        assert default_metrics() is default_metrics()
