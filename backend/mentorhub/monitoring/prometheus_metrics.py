"""
Prometheus metrics for the MentorHub availability service.

Service timings come from the ``@measure_operation`` decorator; the
availability domain adds counters for validation rejections and booking
decisions. Everything is registered on a private registry exposed at
``/metrics``.
"""

from threading import Lock
from time import monotonic
from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Create a custom registry to avoid conflicts with default metrics
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "mentorhub_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "mentorhub_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "mentorhub_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

# Domain-specific counters
schedule_validation_failures_total = Counter(
    "mentorhub_schedule_validation_failures_total",
    "Schedule mutations rejected by validation",
    ["operation"],
    registry=REGISTRY,
)

booking_decisions_total = Counter(
    "mentorhub_booking_decisions_total",
    "Booking requests by outcome",
    ["outcome"],  # pending | confirmed | window | unavailable | inactive
    registry=REGISTRY,
)

schedule_version_conflicts_total = Counter(
    "mentorhub_schedule_version_conflicts_total",
    "Concurrent schedule writes rejected by the version check",
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
            service: Service name (e.g., 'AvailabilityService')
            operation: Operation/method name (e.g., 'upsert_block')
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
    def inc_validation_failure(operation: str) -> None:
        schedule_validation_failures_total.labels(operation=operation).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def inc_booking_decision(outcome: str) -> None:
        booking_decisions_total.labels(outcome=outcome).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def inc_version_conflict() -> None:
        schedule_version_conflicts_total.inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def get_metrics() -> bytes:
        """
        Generate Prometheus metrics in exposition format.

        Returns:
            Metrics data in Prometheus text format
        """
        now = monotonic()
        with PrometheusMetrics._cache_lock:
            payload = PrometheusMetrics._cache_payload
            ts = PrometheusMetrics._cache_ts
            if payload is None or ts is None or (now - ts) > PrometheusMetrics._cache_ttl_seconds:
                payload = cast(bytes, generate_latest(REGISTRY))
                PrometheusMetrics._cache_payload = payload
                PrometheusMetrics._cache_ts = now
        return payload

    @staticmethod
    def get_content_type() -> str:
        """Get the content type for Prometheus metrics."""
        return cast(str, CONTENT_TYPE_LATEST)

    @staticmethod
    def _invalidate_cache() -> None:
        """Invalidate cached metrics so next scrape refreshes."""
        with PrometheusMetrics._cache_lock:
            PrometheusMetrics._cache_ts = None
            PrometheusMetrics._cache_payload = None


# Singleton instance
prometheus_metrics = PrometheusMetrics()
