"""
Mediator DI - Structured Logging with Trace Context

structlog on top of the standard library: structlog events and records
from other libraries share one processor chain and are rendered by a
``structlog.stdlib.ProcessorFormatter`` on a stderr handler.

Every event carries the service name (``service_name``) and environment,
the current trace_id/span_id when a span is recording, and readable names for any
class or parameterized generic passed as a value, e.g.
``service=IRequestHandler[Ping, Pong]``.

Usage:
    from observability.logging import setup_logging, get_logger

    setup_logging(LoggingConfig(level="INFO", json_format=True))

    logger = get_logger(__name__)
    logger.info("Binding registered", contract=IRequestHandler[Ping, Pong])
"""
from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field
from typing import Any, List, Optional, get_args, get_origin

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

SERVICE_NAME = "mediator-di"

_configured: bool = False
_HANDLER_NAME = SERVICE_NAME


@dataclass
class LoggingConfig:
    """Configuration for structured logging."""

    service_name: str = SERVICE_NAME
    level: str = field(
        default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper()
    )
    json_format: bool = field(
        default_factory=lambda: os.getenv("LOG_FORMAT", "json").lower() == "json"
    )
    enable_trace_context: bool = True
    environment: str = field(
        default_factory=lambda: os.getenv("ENVIRONMENT", "development")
    )


def type_name(value: Any) -> str:
    """Short readable name of a class or parameterized generic."""
    origin = get_origin(value)
    if origin is None:
        return getattr(value, "__qualname__", None) or str(value)
    arguments = ", ".join(type_name(argument) for argument in get_args(value))
    return f"{type_name(origin)}[{arguments}]"


def render_type_names(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor replacing type values with their names."""
    for key, value in event_dict.items():
        if isinstance(value, type) or get_origin(value) is not None:
            event_dict[key] = type_name(value)
    return event_dict


def add_trace_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor adding the current OpenTelemetry span ids."""
    from opentelemetry import trace

    span = trace.get_current_span()
    if span.is_recording():
        ctx = span.get_span_context()
        if ctx.is_valid:
            event_dict["trace_id"] = format(ctx.trace_id, "032x")
            event_dict["span_id"] = format(ctx.span_id, "016x")
    return event_dict


def add_service_context(service_name: str, environment: str) -> Processor:
    """Create a processor that adds service context to all log events."""

    def processor(
        logger: WrappedLogger,
        method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        event_dict["service_name"] = service_name
        event_dict["environment"] = environment
        return event_dict

    return processor


def setup_logging(config: Optional[LoggingConfig] = None, force: bool = False) -> None:
    """
    Configure structlog and the root logger.

    Args:
        config: Logging configuration. Uses defaults if not provided.
        force: Reconfigure even if logging was already set up.
    """
    global _configured

    if _configured and not force:
        return

    config = config or LoggingConfig()

    shared: List[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_service_context(config.service_name, config.environment),
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
    ]
    if config.enable_trace_context:
        shared.append(add_trace_context)
    shared.append(render_type_names)

    structlog.configure(
        processors=[
            *shared,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if config.json_format:
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )
    _install_handler(formatter, getattr(logging, config.level, logging.INFO))

    _configured = True


def _install_handler(formatter: logging.Formatter, level: int) -> None:
    """Replace the root handler installed by a previous setup."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        if handler.get_name() == _HANDLER_NAME:
            root_logger.removeHandler(handler)

    # stdout is reserved for command output
    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    logging.getLogger("opentelemetry").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structlog logger, configuring logging on first use.

    Args:
        name: Logger name, typically __name__
    """
    if not _configured:
        setup_logging()

    return structlog.get_logger(name)


def shutdown_logging() -> None:
    """Flush handlers and allow logging to be configured again."""
    global _configured

    for handler in logging.getLogger().handlers:
        handler.flush()

    _configured = False


class LogContext:
    """
    Context manager binding key-value pairs to every event in the block.

    Example:
        >>> with LogContext(scan_target="app.handlers"):
        ...     logger.info("Scanning")
    """

    def __init__(self, **kwargs: Any):
        self.context = kwargs

    def __enter__(self) -> "LogContext":
        structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, *args: Any) -> None:
        structlog.contextvars.unbind_contextvars(*self.context.keys())
