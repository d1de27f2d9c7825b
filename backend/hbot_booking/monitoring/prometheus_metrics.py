"""
Prometheus metrics for the booking platform.

Service timings come from the @measure_operation decorator; the domain
counters below are incremented directly by the slot, webhook and credit code
paths.
"""

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

http_request_duration_seconds = Histogram(
    "hbot_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint", "status_code"],
    registry=REGISTRY,
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

http_requests_total = Counter(
    "hbot_http_requests_total",
    "Total number of HTTP requests",
    ["method", "endpoint", "status_code"],
    registry=REGISTRY,
)

service_operation_duration_seconds = Histogram(
    "hbot_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "hbot_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "hbot_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

# Domain-specific counters
slot_reservations_total = Counter(
    "hbot_slot_reservations_total",
    "Slot reservation attempts by outcome",
    ["outcome"],  # reserved | exhausted | not_found | released
    registry=REGISTRY,
)

webhook_events_total = Counter(
    "hbot_webhook_events_total",
    "Payment gateway webhook events by type and outcome",
    ["event_type", "outcome"],  # processed | duplicate | ignored | inconsistent | failed
    registry=REGISTRY,
)

credits_granted_total = Counter(
    "hbot_credits_granted_total",
    "Credit packages appended to user ledgers",
    ["credit_type", "source"],  # webhook | repair
    registry=REGISTRY,
)

credit_grant_inconsistencies_total = Counter(
    "hbot_credit_grant_inconsistencies_total",
    "Bookings completed whose credit package could not be appended",
    registry=REGISTRY,
)

notifications_total = Counter(
    "hbot_notifications_total",
    "Notification send attempts",
    ["kind", "status"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Manages Prometheus metrics collection and exposure."""

    @staticmethod
    def record_http_request(method: str, endpoint: str, duration: float, status_code: int) -> None:
        labels = {"method": method, "endpoint": endpoint, "status_code": str(status_code)}
        http_request_duration_seconds.labels(**labels).observe(duration)
        http_requests_total.labels(**labels).inc()

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
            service: Service name (e.g., 'SlotService')
            operation: Operation name (e.g., 'slots.reserve')
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

    @staticmethod
    def record_slot_reservation(outcome: str) -> None:
        slot_reservations_total.labels(outcome=outcome).inc()

    @staticmethod
    def record_webhook_event(event_type: str, outcome: str) -> None:
        webhook_events_total.labels(event_type=event_type or "unknown", outcome=outcome).inc()

    @staticmethod
    def record_credit_grant(credit_type: str, source: str) -> None:
        credits_granted_total.labels(credit_type=credit_type, source=source).inc()

    @staticmethod
    def record_credit_inconsistency() -> None:
        credit_grant_inconsistencies_total.inc()

    @staticmethod
    def record_notification(kind: str, status: str) -> None:
        notifications_total.labels(kind=kind, status=status).inc()

    @staticmethod
    def get_metrics() -> bytes:
        """Generate Prometheus metrics in exposition format."""
        return cast(bytes, generate_latest(REGISTRY))

    @staticmethod
    def get_content_type() -> str:
        return cast(str, CONTENT_TYPE_LATEST)


prometheus_metrics = PrometheusMetrics()
