"""
Prometheus metrics for the training scheduler.

Service timings come from ``BaseService.measure_operation``. The scheduling
core adds a counter of rejected bookings and a gauge with the state of each
staged schema capability.
"""

from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

# Own registry so tests and reloads never clash with the process default
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "scheduler_service_operation_duration_seconds",
    "Time spent in measured scheduler service operations",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

service_operations_total = Counter(
    "scheduler_service_operations_total",
    "Measured scheduler service operations by outcome",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "scheduler_errors_total",
    "Exceptions raised by measured operations",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

resource_conflicts_total = Counter(
    "scheduler_resource_conflicts_total",
    "Resource conflicts detected before a booking write",
    ["resource_kind", "booking_kind"],
    registry=REGISTRY,
)

capability_fallbacks_total = Counter(
    "scheduler_capability_fallbacks_total",
    "Times a staged schema capability was found missing",
    ["capability"],
    registry=REGISTRY,
)

capability_supported = Gauge(
    "scheduler_capability_supported",
    "1 when the staged schema capability is available, 0 when queries run degraded",
    ["capability"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Thin facade over the module level collectors."""

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """
        Record one call of a method wrapped by ``measure_operation``.

        Args:
            service: Service class name (e.g., 'SessionService')
            operation: Measured operation (e.g., 'create_session')
            duration: Wall time in seconds
            status: 'success' or 'error'
            error_type: Exception class name when status is 'error'
        """
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()
        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()

    @staticmethod
    def inc_resource_conflict(resource_kind: str, booking_kind: str) -> None:
        resource_conflicts_total.labels(
            resource_kind=resource_kind, booking_kind=booking_kind
        ).inc()

    @staticmethod
    def set_capability(capability: str, supported: bool) -> None:
        capability_supported.labels(capability=capability).set(1 if supported else 0)
        if not supported:
            capability_fallbacks_total.labels(capability=capability).inc()

    @staticmethod
    def get_metrics() -> bytes:
        """Current exposition payload for the scheduler registry."""
        return cast(bytes, generate_latest(REGISTRY))

    @staticmethod
    def get_content_type() -> str:
        return cast(str, CONTENT_TYPE_LATEST)


prometheus_metrics = PrometheusMetrics()
