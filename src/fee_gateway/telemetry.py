"""OpenTelemetry tracing setup and span helpers."""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Span, Status, StatusCode

from fee_gateway.config import VERSION, Settings

T = TypeVar("T")

AttributeValue = str | int | float | bool

_TRACER_NAME = "fee_gateway"
_logger = logging.getLogger(__name__)
_provider: TracerProvider | None = None


def configure_tracing(settings: Settings) -> TracerProvider | None:
    """Install the global tracer provider exporting spans over OTLP/HTTP."""
    global _provider  # noqa: PLW0603
    if _provider is not None:
        _logger.info("OpenTelemetry already initialised")
        return _provider
    if not settings.tracing_enabled or settings.environment == "test":
        _logger.info("Skipping OpenTelemetry tracing")
        return None

    resource = Resource.create(
        {
            SERVICE_NAME: settings.service_name,
            SERVICE_VERSION: VERSION,
            "deployment.environment": settings.environment,
        }
    )
    provider = TracerProvider(resource=resource)
    exporter = OTLPSpanExporter(endpoint=settings.otel_exporter_otlp_endpoint)
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)
    _provider = provider
    _logger.info(
        "OpenTelemetry tracing started, exporting to %s",
        settings.otel_exporter_otlp_endpoint,
    )
    return provider


def instrument_app(app: FastAPI) -> None:
    """Enable request spans for the app when tracing is configured."""
    if _provider is None:
        return
    FastAPIInstrumentor.instrument_app(app, tracer_provider=_provider)


def shutdown_tracing() -> None:
    """Flush and stop the tracer provider."""
    global _provider  # noqa: PLW0603
    if _provider is None:
        return
    try:
        _provider.shutdown()
        _logger.info("OpenTelemetry tracing shut down")
    except Exception:
        _logger.exception("Error shutting down OpenTelemetry tracing")
    _provider = None


async def with_span(
    name: str,
    func: Callable[[Span], Awaitable[T]],
    attributes: dict[str, AttributeValue] | None = None,
) -> T:
    """Run an async unit of work inside a named span."""
    tracer = trace.get_tracer(_TRACER_NAME)
    with tracer.start_as_current_span(
        name,
        attributes=attributes,
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        try:
            result = await func(span)
        except Exception as exc:
            span.set_status(Status(StatusCode.ERROR, str(exc)))
            span.record_exception(exc)
            raise
        span.set_status(Status(StatusCode.OK))
        return result


def add_span_attributes(attributes: dict[str, AttributeValue]) -> None:
    """Add attributes to the active span, if one is recording."""
    span = trace.get_current_span()
    if not span.is_recording():
        return
    for key, value in attributes.items():
        span.set_attribute(key, value)


def add_span_event(
    name: str, attributes: dict[str, AttributeValue] | None = None
) -> None:
    """Add an event to the active span, if one is recording."""
    span = trace.get_current_span()
    if span.is_recording():
        span.add_event(name, attributes or {})
