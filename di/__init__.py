"""
Mediator DI - Dependency Injection Module

Provides the IoC container the scanned handlers are registered in, and
the extension that scans modules and wires the mediator:
- Scoped lifetimes (singleton, transient, scoped)
- Several registrations per service key
- Factory functions receiving the resolving provider
- Registry adapter for registration passes

Usage:
    from di import add_mediator, create_container

    container = create_container()
    add_mediator(container, "app.handlers")

    with container.create_scope() as scope:
        mediator = scope.resolve(IMediator)
"""

from di.container import (
    Container,
    IServiceProvider,
    Scope,
    ServiceDescriptor,
)
from di.extensions import (
    COLLECTOR_CONTRACTS,
    HANDLER_CONTRACTS,
    add_mediator,
    add_mediator_classes,
    add_required_services,
    create_container,
    mediator_templates,
)
from di.registry import ContainerRegistry
from core.types import ServiceLifetime

__all__ = [
    # Container
    "Container",
    "Scope",
    "ServiceDescriptor",
    "ServiceLifetime",
    "IServiceProvider",
    # Registration
    "ContainerRegistry",
    # Extensions
    "HANDLER_CONTRACTS",
    "COLLECTOR_CONTRACTS",
    "add_mediator",
    "add_mediator_classes",
    "add_required_services",
    "create_container",
    "mediator_templates",
]
