"""
Prometheus metrics for the studio booking backend.

Service timings come from ``BaseService.measure_operation``; the booking
core adds counters for admissions, group allocation and cancellations, and
a histogram of how long requests wait for a schedule lock.
"""

from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Custom registry keeps test processes from colliding with the default one
REGISTRY = CollectorRegistry()

http_request_duration_seconds = Histogram(
    "fitstudio_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint", "status_code"],
    registry=REGISTRY,
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

http_requests_total = Counter(
    "fitstudio_http_requests_total",
    "Total number of HTTP requests",
    ["method", "endpoint", "status_code"],
    registry=REGISTRY,
)

service_operation_duration_seconds = Histogram(
    "fitstudio_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "fitstudio_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "fitstudio_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

# Booking core
booking_admissions_total = Counter(
    "fitstudio_booking_admissions_total",
    "Bookings admitted, by initial status",
    ["status", "kind"],  # kind: guest | registered
    registry=REGISTRY,
)

group_allocations_total = Counter(
    "fitstudio_group_allocations_total",
    "Capacity group allocations",
    ["result"],  # reused | created
    registry=REGISTRY,
)

schedule_lock_wait_seconds = Histogram(
    "fitstudio_schedule_lock_wait_seconds",
    "Time spent waiting for the per-schedule allocation lock",
    ["dialect"],
    registry=REGISTRY,
    buckets=(0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 5.0),
)

booking_status_transitions_total = Counter(
    "fitstudio_booking_status_transitions_total",
    "Booking status changes",
    ["from_status", "to_status"],
    registry=REGISTRY,
)

cancellations_total = Counter(
    "fitstudio_cancellations_total",
    "Booking cancellations, by acting role",
    ["role"],
    registry=REGISTRY,
)

loyalty_points_awarded_total = Counter(
    "fitstudio_loyalty_points_awarded_total",
    "Loyalty points awarded",
    ["reason"],
    registry=REGISTRY,
)

side_effect_failures_total = Counter(
    "fitstudio_side_effect_failures_total",
    "Best-effort side effects that failed after the primary operation committed",
    ["effect"],  # loyalty | notification
    registry=REGISTRY,
)

rl_decisions_total = Counter(
    "fitstudio_rl_decisions_total",
    "rate-limit decisions",
    ["bucket", "action"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Thin facade so callers never touch metric objects directly."""

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
            service: Service name (e.g., 'BookingService')
            operation: Operation/method name (e.g., 'create_booking')
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
    def record_admission(status: str, is_guest: bool) -> None:
        booking_admissions_total.labels(
            status=status, kind="guest" if is_guest else "registered"
        ).inc()

    @staticmethod
    def record_group_allocation(created: bool) -> None:
        group_allocations_total.labels(result="created" if created else "reused").inc()

    @staticmethod
    def observe_schedule_lock_wait(dialect: str, seconds: float) -> None:
        schedule_lock_wait_seconds.labels(dialect=dialect).observe(max(seconds, 0.0))

    @staticmethod
    def record_status_transition(from_status: str, to_status: str) -> None:
        booking_status_transitions_total.labels(from_status=from_status, to_status=to_status).inc()

    @staticmethod
    def record_cancellation(role: str) -> None:
        cancellations_total.labels(role=role).inc()

    @staticmethod
    def record_loyalty_award(reason: str, points: int) -> None:
        loyalty_points_awarded_total.labels(reason=reason).inc(max(points, 0))

    @staticmethod
    def record_side_effect_failure(effect: str) -> None:
        side_effect_failures_total.labels(effect=effect).inc()

    @staticmethod
    def record_rate_limit_decision(bucket: str, allowed: bool) -> None:
        rl_decisions_total.labels(bucket=bucket, action="allow" if allowed else "block").inc()

    @staticmethod
    def get_metrics() -> bytes:
        """Metrics in Prometheus text exposition format."""
        return cast(bytes, generate_latest(REGISTRY))

    @staticmethod
    def get_content_type() -> str:
        return cast(str, CONTENT_TYPE_LATEST)


# Singleton instance
prometheus_metrics = PrometheusMetrics()
