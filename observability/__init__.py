"""
Mediator DI - Observability Package

Structured logging and tracing for registration passes and dispatch.

Components:
- logging: structlog integration with trace context propagation
- tracing: OpenTelemetry spans

Usage:
    from observability import setup_logging, setup_tracing, get_logger

    setup_logging()
    setup_tracing()
    logger = get_logger(__name__)
"""
from observability.logging import (
    LogContext,
    LoggingConfig,
    get_logger,
    setup_logging,
    shutdown_logging,
    type_name,
)
from observability.tracing import (
    TracingConfig,
    create_span,
    get_tracer,
    setup_tracing,
    shutdown_tracing,
    start_dispatch_span,
    start_registration_span,
)

__all__ = [
    # Logging
    "LogContext",
    "LoggingConfig",
    "get_logger",
    "setup_logging",
    "shutdown_logging",
    "type_name",
    # Tracing
    "TracingConfig",
    "create_span",
    "get_tracer",
    "setup_tracing",
    "shutdown_tracing",
    "start_dispatch_span",
    "start_registration_span",
]
