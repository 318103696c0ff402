"""
Prometheus metrics module for Parkbook.

Service timings are fed by the ``@BaseService.measure_operation`` decorator;
booking-specific counters are incremented by the checkout and webhook
services.
"""

from typing import cast

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
    "parkbook_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "parkbook_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "parkbook_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

webhook_events_total = Counter(
    "parkbook_webhook_events_total",
    "Payment notifications by outcome",
    ["outcome"],  # processed | duplicate | ignored | rejected | failed
    registry=REGISTRY,
)

checkout_denials_total = Counter(
    "parkbook_checkout_denials_total",
    "Checkout attempts refused before reaching the payment processor",
    ["reason"],
    registry=REGISTRY,
)

capacity_oversubscribed_total = Counter(
    "parkbook_capacity_oversubscribed_total",
    "Paid bookings confirmed after the program was already at capacity",
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Manages Prometheus metrics collection and exposure."""

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: str | None = None,
    ) -> None:
        """
        Record service operation metrics from @measure_operation decorator.

        Args:
            service: Service name (e.g., 'CheckoutService')
            operation: Operation name (e.g., 'start_checkout')
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
    def record_webhook_outcome(outcome: str) -> None:
        webhook_events_total.labels(outcome=outcome).inc()

    @staticmethod
    def record_checkout_denial(reason: str) -> None:
        checkout_denials_total.labels(reason=reason).inc()

    @staticmethod
    def record_oversubscription() -> None:
        capacity_oversubscribed_total.inc()

    @staticmethod
    def get_metrics() -> bytes:
        """Generate Prometheus metrics in exposition format."""
        return cast(bytes, generate_latest(REGISTRY))

    @staticmethod
    def get_content_type() -> str:
        return cast(str, CONTENT_TYPE_LATEST)


# Singleton instance
prometheus_metrics = PrometheusMetrics()
