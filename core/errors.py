"""
Mediator DI - Unified Error Handling

Provides the error hierarchy shared by the scanning core, the service
container and the mediator.

Features:
- Hierarchical exception classes with context preservation
- Error severity levels for prioritized handling
- Structured error context for debugging
- OpenTelemetry integration for error tracing

Only the speculative closing of open generic handlers swallows failures
(as a failed ``Result``); every other error here propagates to the host.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode


class ErrorSeverity(Enum):
    """Error severity levels for prioritized handling."""

    DEBUG = "debug"      # Non-critical, informational
    INFO = "info"        # Minor issue, operation continues
    WARNING = "warning"  # Potential problem, degraded operation
    ERROR = "error"      # Significant failure, operation failed
    CRITICAL = "critical"  # Startup cannot continue


@dataclass
class ErrorContext:
    """Structured context for error debugging and tracing."""

    operation: str
    component: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    trace_id: Optional[str] = None
    span_id: Optional[str] = None
    service_type: Optional[str] = None
    implementation_type: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    stack_trace: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary for serialization."""
        return {
            "operation": self.operation,
            "component": self.component,
            "timestamp": self.timestamp.isoformat(),
            "trace_id": self.trace_id,
            "span_id": self.span_id,
            "service_type": self.service_type,
            "implementation_type": self.implementation_type,
            "metadata": self.metadata,
            "stack_trace": self.stack_trace,
        }


class MediatorError(Exception):
    """
    Base exception for all mediator wiring errors.

    Provides:
    - Structured error context
    - Severity level
    - Chained exception support
    - OpenTelemetry span recording
    """

    default_severity: ErrorSeverity = ErrorSeverity.ERROR
    error_code: str = "MEDIATOR_ERROR"

    def __init__(
        self,
        message: str,
        context: Optional[ErrorContext] = None,
        severity: Optional[ErrorSeverity] = None,
        cause: Optional[Exception] = None,
        recoverable: bool = False,
        suggestions: Optional[List[str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context
        self.severity = severity or self.default_severity
        self.cause = cause
        self.recoverable = recoverable
        self.suggestions = suggestions or []
        self.timestamp = datetime.now(timezone.utc)

        self._record_to_span()

    def _record_to_span(self) -> None:
        """Record exception to current OpenTelemetry span."""
        span = trace.get_current_span()
        if span and span.is_recording():
            span.set_status(Status(StatusCode.ERROR, self.message))
            span.record_exception(self)
            span.set_attribute("error.code", self.error_code)
            span.set_attribute("error.severity", self.severity.value)
            span.set_attribute("error.recoverable", self.recoverable)
            if self.context:
                span.set_attribute("error.component", self.context.component)
                span.set_attribute("error.operation", self.context.operation)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for diagnostics output."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "severity": self.severity.value,
            "recoverable": self.recoverable,
            "suggestions": self.suggestions,
            "timestamp": self.timestamp.isoformat(),
            "context": self.context.to_dict() if self.context else None,
            "cause": str(self.cause) if self.cause else None,
        }

    def __str__(self) -> str:
        parts = [f"[{self.error_code}] {self.message}"]
        if self.context:
            parts.append(f" (component: {self.context.component})")
        if self.cause:
            parts.append(f" [caused by: {self.cause}]")
        return "".join(parts)

    def with_context(self, **kwargs: Any) -> "MediatorError":
        """Add additional context to the error."""
        if self.context:
            self.context.metadata.update(kwargs)
        else:
            self.context = ErrorContext(
                operation="unknown",
                component="unknown",
                metadata=kwargs
            )
        return self


class ConfigError(MediatorError):
    """Configuration-related errors."""

    error_code = "CONFIG_ERROR"
    default_severity = ErrorSeverity.CRITICAL

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        actual_value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.config_key = config_key
        self.actual_value = actual_value


class ScanError(MediatorError):
    """A scan target could not be imported or interpreted."""

    error_code = "SCAN_ERROR"
    default_severity = ErrorSeverity.CRITICAL

    def __init__(self, message: str, target: Any = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.target = target


class DescriptorError(MediatorError):
    """A live type could not be normalized into a type descriptor."""

    error_code = "DESCRIPTOR_ERROR"
    default_severity = ErrorSeverity.WARNING

    def __init__(self, message: str, type_name: Optional[str] = None, **kwargs: Any):
        super().__init__(message, recoverable=True, **kwargs)
        self.type_name = type_name


class ClosingError(MediatorError):
    """An open generic implementation could not be closed over a contract."""

    error_code = "CLOSING_ERROR"
    default_severity = ErrorSeverity.DEBUG

    def __init__(
        self,
        message: str,
        implementation: Optional[str] = None,
        contract: Optional[str] = None,
        **kwargs: Any,
    ):
        super().__init__(message, recoverable=True, **kwargs)
        self.implementation = implementation
        self.contract = contract

    def _record_to_span(self) -> None:
        # Speculative closings fail routinely and never mark the pass span.
        return None


class RegistrationError(MediatorError):
    """The service registry refused a binding."""

    error_code = "REGISTRATION_ERROR"
    default_severity = ErrorSeverity.CRITICAL

    def __init__(
        self,
        message: str,
        service_type: Any = None,
        implementation_type: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.service_type = service_type
        self.implementation_type = implementation_type


class ServiceNotRegisteredError(MediatorError, KeyError):
    """A service was requested that has no registration."""

    error_code = "SERVICE_NOT_REGISTERED"

    def __init__(self, service_type: Any, **kwargs: Any):
        super().__init__(f"Service '{_type_name(service_type)}' is not registered", **kwargs)
        self.service_type = service_type

    def __str__(self) -> str:
        return MediatorError.__str__(self)


class CircularDependencyError(MediatorError):
    """A singleton depends on itself, directly or transitively."""

    error_code = "CIRCULAR_DEPENDENCY"

    def __init__(self, service_type: Any, **kwargs: Any):
        super().__init__(
            f"Circular dependency detected for {_type_name(service_type)}", **kwargs
        )
        self.service_type = service_type


class HandlerNotFoundError(MediatorError):
    """The mediator found no handler registered for a request."""

    error_code = "HANDLER_NOT_FOUND"

    def __init__(self, request_type: Any, **kwargs: Any):
        super().__init__(
            f"No handler registered for {_type_name(request_type)}",
            suggestions=["Check that the handler's module is included in the scan"],
            **kwargs,
        )
        self.request_type = request_type


def _type_name(value: Any) -> str:
    return getattr(value, "__name__", None) or repr(value)
