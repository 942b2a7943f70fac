"""Prometheus metric definitions for the gateway."""

from prometheus_client import Counter, Histogram, generate_latest
from starlette.responses import Response


charge_requests_total = Counter("charge_requests_total", "Total checkout charge attempts", ["service"])
charge_success_total = Counter("charge_success_total", "Total successful charges", ["service"])
charge_failure_total = Counter("charge_failure_total", "Total failed charges", ["service", "code"])
processor_latency_seconds = Histogram(
    "processor_latency_seconds",
    "Payment processor call latency seconds",
    ["service", "operation"],
)
customers_created_total = Counter(
    "customers_created_total",
    "Processor customers created for store users",
    ["service"],
)
cards_added_total = Counter("cards_added_total", "Cards attached to existing customers", ["service"])
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["service", "route", "method", "status_code"],
)
http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration seconds",
    ["service", "route", "method"],
)


def metrics_response() -> Response:
    """Expose all registered Prometheus metrics in text format."""

    return Response(content=generate_latest(), media_type="text/plain")
