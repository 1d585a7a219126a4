"""
Mediator DI - Core Module

Foundational pieces shared by every other package:
- Unified error handling
- The explicit ``Result`` type
- Shared enums

Nothing here imports from the other packages.

Usage:
    from core import MediatorError, Result, ServiceLifetime
"""

from core.errors import (
    CircularDependencyError,
    ClosingError,
    ConfigError,
    DescriptorError,
    ErrorContext,
    ErrorSeverity,
    HandlerNotFoundError,
    MediatorError,
    RegistrationError,
    ScanError,
    ServiceNotRegisteredError,
)
from core.types import Result, ServiceLifetime

__all__ = [
    # Errors
    "MediatorError",
    "ConfigError",
    "ScanError",
    "DescriptorError",
    "ClosingError",
    "RegistrationError",
    "ServiceNotRegisteredError",
    "CircularDependencyError",
    "HandlerNotFoundError",
    "ErrorContext",
    "ErrorSeverity",
    # Types
    "Result",
    "ServiceLifetime",
]
