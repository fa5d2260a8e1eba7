"""Metrics module for routekit.

Exposes dispatch counters and latencies through Prometheus.
"""

from prometheus_client import (
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

from routekit.core.config import MetricsConfig

DISPATCH_OUTCOMES = ("matched", "not_found", "method_not_allowed", "error")


class RoutekitMetrics:
    """Routekit metrics collector using Prometheus."""

    def __init__(self, config: MetricsConfig):
        """Initialize the metrics collector.

        Args:
            config: Metrics configuration
        """
        self.config = config

        self.dispatch_total = Counter(
            "routekit_dispatch_total",
            "Total number of dispatched requests",
            ["method", "outcome"],
        )

        self.dispatch_duration = Histogram(
            "routekit_dispatch_duration_seconds",
            "Request dispatch latency in seconds",
            ["outcome"],
            buckets=(0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
        )

        self.routes_registered = Gauge(
            "routekit_routes_registered",
            "Number of routes in the route table",
        )

        self.errors_total = Counter(
            "routekit_errors_total",
            "Total number of errors",
            ["error_type"],
        )

    def record_dispatch(self, method: str, outcome: str, duration_seconds: float) -> None:
        """Record a dispatched request.

        Args:
            method: HTTP method
            outcome: One of DISPATCH_OUTCOMES
            duration_seconds: Dispatch duration in seconds

        Raises:
            ValueError: If the outcome is unknown
        """
        if outcome not in DISPATCH_OUTCOMES:
            raise ValueError(f"Invalid outcome: {outcome}. Must be one of {DISPATCH_OUTCOMES}")

        self.dispatch_total.labels(method=method.upper(), outcome=outcome).inc()
        self.dispatch_duration.labels(outcome=outcome).observe(duration_seconds)

    def set_routes_registered(self, count: int) -> None:
        self.routes_registered.set(count)

    def record_error(self, error_type: str) -> None:
        self.errors_total.labels(error_type=error_type).inc()

    def export_metrics(self) -> bytes:
        """Export metrics in Prometheus format."""
        return generate_latest(REGISTRY)

