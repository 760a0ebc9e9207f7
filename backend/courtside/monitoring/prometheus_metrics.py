"""
Prometheus metrics module for Courtside.

Service timings come from the @measure_operation decorator; session
lifecycle counters come from the session metrics hook.
"""

from threading import Lock
from time import monotonic
from typing import Optional, cast

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Create a custom registry to avoid conflicts with default metrics
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "courtside_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "courtside_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "courtside_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

# Owner and day keys go to the metrics hook backend, never to labels
session_events_total = Counter(
    "courtside_session_events_total",
    "Session lifecycle events by service type",
    ["service_type", "metric"],
    registry=REGISTRY,
)

sessions_generated_total = Counter(
    "courtside_sessions_generated_total",
    "Sessions inserted by generation runs",
    ["service_type"],
    registry=REGISTRY,
)

session_generation_failures_total = Counter(
    "courtside_session_generation_failures_total",
    "Entities skipped by a generation run because of an error",
    ["service_type"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Manages Prometheus metrics collection and exposure."""

    _cache_lock: Lock = Lock()
    _cache_payload: Optional[bytes] = None
    _cache_ts: Optional[float] = None
    _cache_ttl_seconds: float = 1.0

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """
        Record service operation metrics from @measure_operation decorator.

        Args:
            service: Service name (e.g., 'SessionBookingService')
            operation: Operation/method name (e.g., 'confirm_session_request')
            duration: Operation duration in seconds
            status: Operation status ('success' or 'error')
            error_type: Type of error if status is 'error'
        """
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()
        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def inc_session_event(service_type: str, metric: str, amount: int = 1) -> None:
        session_events_total.labels(service_type=service_type, metric=metric).inc(amount)
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def inc_sessions_generated(service_type: str, amount: int) -> None:
        if amount:
            sessions_generated_total.labels(service_type=service_type).inc(amount)
            PrometheusMetrics._invalidate_cache()

    @staticmethod
    def inc_generation_failure(service_type: str) -> None:
        session_generation_failures_total.labels(service_type=service_type).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def get_metrics() -> bytes:
        """Generate Prometheus metrics in exposition format, cached briefly."""
        now = monotonic()
        payload = PrometheusMetrics._cache_payload
        ts = PrometheusMetrics._cache_ts
        ttl = PrometheusMetrics._cache_ttl_seconds
        if payload is not None and ts is not None and (now - ts) <= ttl:
            return payload

        with PrometheusMetrics._cache_lock:
            PrometheusMetrics._cache_payload = cast(bytes, generate_latest(REGISTRY))
            PrometheusMetrics._cache_ts = monotonic()
            return PrometheusMetrics._cache_payload

    @staticmethod
    def _invalidate_cache() -> None:
        with PrometheusMetrics._cache_lock:
            PrometheusMetrics._cache_ts = None
            PrometheusMetrics._cache_payload = None


# Singleton instance
prometheus_metrics = PrometheusMetrics()
