"""Refresh metrics: failure counter and duration summary."""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Summary, start_http_server

logger = logging.getLogger(__name__)

REFRESH_FAILURES_NAME = "prometheus_sd_oci_refresh_failures_total"
REFRESH_DURATION_NAME = "prometheus_sd_oci_refresh_duration"


@runtime_checkable
class MetricsSink(Protocol):
    """Where the refresh orchestrator reports cycle outcomes."""

    def observe_refresh_duration(self, seconds: float) -> None:
        ...

    def inc_refresh_failures(self) -> None:
        ...


class PrometheusMetrics:
    """MetricsSink backed by prometheus_client collectors.

    Pass a private CollectorRegistry in tests; the default registry only
    accepts one instance per process.
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        self.registry = registry if registry is not None else REGISTRY
        self.refresh_failures = Counter(
            REFRESH_FAILURES_NAME,
            "The number of OCI-SD refresh failures.",
            registry=self.registry,
        )
        self.refresh_duration = Summary(
            REFRESH_DURATION_NAME,
            "The duration of a OCI-SD refresh in seconds.",
            registry=self.registry,
        )

    def observe_refresh_duration(self, seconds: float) -> None:
        self.refresh_duration.observe(seconds)

    def inc_refresh_failures(self) -> None:
        self.refresh_failures.inc()

    def failure_count(self) -> float:
        return self.registry.get_sample_value(REFRESH_FAILURES_NAME) or 0.0

    def refresh_count(self) -> float:
        return self.registry.get_sample_value(REFRESH_DURATION_NAME + "_count") or 0.0


def serve_metrics(port: int, addr: str = "0.0.0.0", registry: CollectorRegistry | None = None) -> None:
    """Expose the registry over HTTP for scraping (background thread)."""
    start_http_server(port, addr=addr, registry=registry if registry is not None else REGISTRY)
    logger.info("Serving metrics on %s:%d", addr, port)


_default_metrics: PrometheusMetrics | None = None


def default_metrics() -> PrometheusMetrics:
    """Process-wide PrometheusMetrics on the default registry, created on first use."""
    global _default_metrics
    if _default_metrics is None:
        _default_metrics = PrometheusMetrics()
    return _default_metrics
