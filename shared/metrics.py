"""
Prometheus metrics for the FHIR Facade.

Metrics are declared once in the tables below and exported under the
``fhir_facade_`` namespace; callers address them by their short name.
"""

from typing import Any, Dict, Optional, Tuple

from prometheus_client import CollectorRegistry, Counter, Histogram, Info

NAMESPACE = "fhir_facade"

COUNTERS: Dict[str, Tuple[str, Tuple[str, ...]]] = {
    "http_requests_total": ("Total HTTP requests", ("method", "endpoint", "status_code")),
    "health_check_total": ("Total health check requests", ("status",)),
    "errors_total": ("Total errors returned to clients", ("error_type", "service")),
    "cache_lookups_total": ("Total cache lookups by outcome", ("cache_kind", "result")),
    "cache_invalidations_total": ("Total cache keys and patterns invalidated", ("resource_type",)),
    "cache_errors_total": ("Total cache operations that failed and were skipped", ("operation",)),
    "fhir_requests_total": ("Total requests sent to the FHIR server", ("resource_type", "operation", "outcome")),
}

HISTOGRAMS: Dict[str, Tuple[str, Tuple[str, ...]]] = {
    "http_request_duration_seconds": ("HTTP request duration in seconds", ("method", "endpoint")),
    "fhir_request_duration_seconds": ("FHIR server request duration in seconds", ("resource_type", "operation")),
}


class MetricsCollector:
    """Metrics for one service instance.

    Each collector owns its registry unless one is passed in, so several
    service instances can live in one process.
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}

        for name, (documentation, labels) in COUNTERS.items():
            self._metrics[name] = Counter(
                name, documentation, labels, namespace=NAMESPACE, registry=self.registry
            )
        for name, (documentation, labels) in HISTOGRAMS.items():
            self._metrics[name] = Histogram(
                name, documentation, labels, namespace=NAMESPACE, registry=self.registry
            )

        build_info = Info("build", "Service build information", namespace=NAMESPACE, registry=self.registry)
        build_info.info({"service": service_name, "version": "1.0.0"})

    def get_metric(self, name: str):
        return self._metrics.get(name)

    def record_http_request(self, method: str, endpoint: str, status_code: int, duration: float):
        self.increment_counter("http_requests_total", method=method, endpoint=endpoint, status_code=str(status_code))
        self.observe_histogram("http_request_duration_seconds", duration, method=method, endpoint=endpoint)

    def record_health_check(self, status: str):
        self.increment_counter("health_check_total", status=status)

    def record_error(self, error_type: str):
        self.increment_counter("errors_total", error_type=error_type, service=self.service_name)

    def increment_counter(self, metric_name: str, **labels):
        """Increment a counter by short name; unknown names are ignored."""
        metric = self._metrics.get(metric_name)
        if metric is not None:
            metric.labels(**labels).inc()

    def observe_histogram(self, metric_name: str, value: float, **labels):
        """Observe a histogram by short name; unknown names are ignored."""
        metric = self._metrics.get(metric_name)
        if metric is not None:
            metric.labels(**labels).observe(value)


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
