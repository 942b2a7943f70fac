"""OpenTelemetry wiring for the gateway: provider, FastAPI spans, charge spans."""

from contextlib import contextmanager

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

tracer = trace.get_tracer("cardgate")


def setup_tracing(service_name: str, endpoint: str | None) -> None:
    """Register a tracer provider; spans are only exported when an OTLP endpoint is set."""

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    if endpoint:
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))
    trace.set_tracer_provider(provider)


def instrument_app(app: FastAPI) -> None:
    FastAPIInstrumentor.instrument_app(app, excluded_urls="health,metrics")


@contextmanager
def charge_span(order_id: int, livemode: bool, user_id: str | None):
    """Span around one charge attempt, tagged with the order and account mode."""

    with tracer.start_as_current_span("process_payment") as span:
        span.set_attribute("cardgate.order_id", order_id)
        span.set_attribute("cardgate.livemode", livemode)
        span.set_attribute("cardgate.guest", user_id is None)
        yield span
