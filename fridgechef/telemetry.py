import logging

from opentelemetry import trace as trace_api
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from fridgechef.config import Settings

logger = logging.getLogger(__name__)


def setup_telemetry(app, settings: Settings) -> TracerProvider:
    """Trace every request and ship spans to a Phoenix (or any OTLP/HTTP) collector."""
    resource = Resource(attributes={
        "service.name": "fridge-chef-api",
    })

    trace_provider = TracerProvider(resource=resource)
    exporter = OTLPSpanExporter(endpoint=settings.otlp_endpoint)

    trace_provider.add_span_processor(BatchSpanProcessor(exporter))
    trace_api.set_tracer_provider(trace_provider)

    FastAPIInstrumentor().instrument_app(app, tracer_provider=trace_provider)

    logger.info("Exporting traces to %s", settings.otlp_endpoint)
    return trace_provider
