"""
Mediator DI - Tracing with OpenTelemetry

Spans around registration passes and mediator dispatch. Until
``setup_tracing`` installs an SDK provider the OpenTelemetry API hands out
non-recording spans, so instrumented code runs the same either way.

Span names:
    mediator.register   one registration pass
    mediator.send       dispatch of a request to its handler
    mediator.publish    broadcast of a notification

Usage:
    from observability.tracing import setup_tracing, start_registration_span

    setup_tracing(TracingConfig(console_export=True))

    with start_registration_span(candidates=12, templates=11) as span:
        ...
"""
from __future__ import annotations

import os
import sys
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional

from opentelemetry import trace
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor
from opentelemetry.sdk.trace.sampling import ALWAYS_OFF, ALWAYS_ON, ParentBased, TraceIdRatioBased
from opentelemetry.trace import SpanKind, Status, StatusCode

TRACER_NAME = "mediator"

_tracer_provider: Optional[TracerProvider] = None


@dataclass
class TracingConfig:
    """Configuration for OpenTelemetry tracing."""

    service_name: str = "mediator-di"
    service_version: str = "0.1.0"
    sample_rate: float = field(
        default_factory=lambda: float(os.getenv("OTEL_SAMPLE_RATE", "1.0"))
    )
    # Finished spans are printed to stderr; stdout carries command output
    console_export: bool = field(
        default_factory=lambda: os.getenv("OTEL_CONSOLE_EXPORT", "false").lower() == "true"
    )


def setup_tracing(config: Optional[TracingConfig] = None) -> TracerProvider:
    """
    Install an SDK tracer provider as the global provider.

    Calling it again returns the provider installed first; OpenTelemetry
    does not allow the global provider to be replaced.
    """
    global _tracer_provider

    if _tracer_provider is not None:
        return _tracer_provider

    config = config or TracingConfig()
    resource = Resource.create({
        SERVICE_NAME: config.service_name,
        SERVICE_VERSION: config.service_version,
    })

    if config.sample_rate <= 0.0:
        sampler = ALWAYS_OFF
    elif config.sample_rate >= 1.0:
        sampler = ALWAYS_ON
    else:
        sampler = ParentBased(root=TraceIdRatioBased(config.sample_rate))

    provider = TracerProvider(resource=resource, sampler=sampler)
    if config.console_export:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter(out=sys.stderr)))

    trace.set_tracer_provider(provider)
    _tracer_provider = provider
    return provider


def get_tracer(name: str = TRACER_NAME) -> trace.Tracer:
    """Get a tracer from the global provider."""
    return trace.get_tracer(name)


def shutdown_tracing() -> None:
    """Flush pending spans of the installed provider."""
    if _tracer_provider is not None:
        _tracer_provider.force_flush()
        _tracer_provider.shutdown()


@contextmanager
def create_span(
    name: str,
    kind: SpanKind = SpanKind.INTERNAL,
    attributes: Optional[Dict[str, Any]] = None,
) -> Iterator[trace.Span]:
    """
    Open a span that records any exception escaping the block.

    Args:
        name: Span name
        kind: Span kind
        attributes: Initial span attributes

    Yields:
        Active Span instance
    """
    tracer = get_tracer()
    with tracer.start_as_current_span(name, kind=kind, record_exception=False) as span:
        if attributes:
            for key, value in attributes.items():
                span.set_attribute(key, value)
        try:
            yield span
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
            raise


def start_registration_span(candidates: int, templates: int):
    """Span for one registration pass."""
    return create_span(
        "mediator.register",
        attributes={
            "mediator.candidates": candidates,
            "mediator.templates": templates,
        },
    )


def start_dispatch_span(operation: str, message_type: type):
    """Span for sending a request or publishing a notification."""
    return create_span(
        f"mediator.{operation}",
        attributes={"mediator.message_type": message_type.__qualname__},
    )
