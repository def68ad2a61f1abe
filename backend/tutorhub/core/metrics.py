"""
Prometheus metrics for the scheduling engine.

Service timings are fed by @BaseService.measure_operation; booking counters
are recorded by BookingStore/BookingScheduler and the slot lock helpers.
"""

from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Custom registry to avoid conflicts with default metrics
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "tutorhub_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "tutorhub_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "tutorhub_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

bookings_created_total = Counter(
    "tutorhub_bookings_created_total",
    "Bookings committed in pending state",
    registry=REGISTRY,
)

booking_conflicts_total = Counter(
    "tutorhub_booking_conflicts_total",
    "Booking attempts rejected because the slot was gone",
    ["reason"],  # slot_taken | slot_unavailable
    registry=REGISTRY,
)

booking_status_transitions_total = Counter(
    "tutorhub_booking_status_transitions_total",
    "Booking status transitions applied",
    ["from_status", "to_status"],
    registry=REGISTRY,
)

slot_lock_total = Counter(
    "tutorhub_slot_lock_total",
    "Slot lock acquisitions and releases by outcome",
    ["action", "outcome"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Thin facade so call sites do not touch label plumbing."""

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()
        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()

    @staticmethod
    def record_booking_created() -> None:
        bookings_created_total.inc()

    @staticmethod
    def record_booking_conflict(reason: str) -> None:
        booking_conflicts_total.labels(reason=reason).inc()

    @staticmethod
    def record_status_transition(from_status: str, to_status: str) -> None:
        booking_status_transitions_total.labels(
            from_status=from_status, to_status=to_status
        ).inc()

    @staticmethod
    def record_slot_lock(action: str, outcome: str) -> None:
        slot_lock_total.labels(action=action, outcome=outcome).inc()

    @staticmethod
    def get_metrics() -> bytes:
        """Generate Prometheus metrics in exposition format."""
        return cast(bytes, generate_latest(REGISTRY))

    @staticmethod
    def get_content_type() -> str:
        return cast(str, CONTENT_TYPE_LATEST)


prometheus_metrics = PrometheusMetrics()
