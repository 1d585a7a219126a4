"""
Mediator DI - Dependency Injection Container

Provides a lightweight IoC container for managing application
dependencies with support for various lifetimes and scopes.

Features:
- Service registration with multiple lifetimes
- Singleton, Scoped, and Transient services
- Several registrations per service key (``resolve_all``)
- Factory function support, factories receive the resolving provider
- Constructor injection from ``__init__`` type hints

Service keys are classes or parameterized generics such as
``IRequestHandler[Ping, Pong]``; any hashable key works.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Dict,
    Iterator,
    List,
    Optional,
    Protocol,
    Set,
    TypeVar,
    get_origin,
    get_type_hints,
)

from core.errors import (
    CircularDependencyError,
    RegistrationError,
    ServiceNotRegisteredError,
)
from core.types import ServiceLifetime
from observability.logging import get_logger, type_name


logger = get_logger(__name__)

T = TypeVar("T")


class IServiceProvider(Protocol):
    """Resolves services; implemented by the container and its scopes."""

    def resolve(self, service_type: Any) -> Any:
        ...

    def try_resolve(self, service_type: Any) -> Optional[Any]:
        ...

    def resolve_all(self, service_type: Any) -> List[Any]:
        ...


@dataclass(eq=False)
class ServiceDescriptor:
    """Describes how a service should be created and managed."""

    service_type: Any
    implementation_type: Optional[Any] = None
    factory: Optional[Callable[[IServiceProvider], Any]] = None
    instance: Optional[Any] = None
    lifetime: ServiceLifetime = ServiceLifetime.SINGLETON

    def __post_init__(self) -> None:
        if self.implementation_type is None and self.factory is None and self.instance is None:
            self.implementation_type = self.service_type


class Scope:
    """
    Scope for scoped services.

    Usage:
        with container.create_scope() as scope:
            service = scope.resolve(MyService)
    """

    def __init__(self, container: "Container"):
        self._container = container
        self._instances: Dict[ServiceDescriptor, Any] = {}
        self._lock = threading.RLock()

    def resolve(self, service_type: Any) -> Any:
        """Resolve a service within this scope."""
        return self._container.resolve(service_type, self)

    def try_resolve(self, service_type: Any) -> Optional[Any]:
        return self._container.try_resolve(service_type, self)

    def resolve_all(self, service_type: Any) -> List[Any]:
        return self._container.resolve_all(service_type, self)

    def _resolve_scoped(self, descriptor: ServiceDescriptor) -> Any:
        with self._lock:
            if descriptor not in self._instances:
                self._instances[descriptor] = self._container._create_instance(descriptor, self)
            return self._instances[descriptor]

    def dispose(self) -> None:
        """Dispose all scoped instances."""
        for instance in self._instances.values():
            _dispose_instance(instance)
        self._instances.clear()


class Container:
    """
    Dependency Injection Container.

    Manages service registration, resolution, and lifecycle.

    Usage:
        container = Container()

        # Register services
        container.register_singleton(Clock)
        container.register_transient(IRequestHandler[Ping, Pong], PingHandler)
        container.register_factory(Settings, lambda provider: load_settings())

        # Resolve services
        handler = container.resolve(IRequestHandler[Ping, Pong])
    """

    def __init__(self, reject_duplicates: bool = False) -> None:
        self._descriptors: Dict[Any, List[ServiceDescriptor]] = {}
        self._singletons: Dict[ServiceDescriptor, Any] = {}
        # Reentrant: singletons may depend on other singletons
        self._lock = threading.RLock()
        self._initializing: Set[ServiceDescriptor] = set()
        self.reject_duplicates = reject_duplicates

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def add(self, descriptor: ServiceDescriptor) -> "Container":
        """
        Add a registration; earlier registrations of the key are kept.

        Raises:
            RegistrationError: If duplicates are rejected and the same
                implementation is already registered for the key
        """
        registered = self._descriptors.setdefault(descriptor.service_type, [])
        if self.reject_duplicates and descriptor.implementation_type is not None:
            for existing in registered:
                if existing.implementation_type == descriptor.implementation_type:
                    raise RegistrationError(
                        f"{type_name(descriptor.implementation_type)} is already registered "
                        f"for {type_name(descriptor.service_type)}",
                        service_type=descriptor.service_type,
                        implementation_type=descriptor.implementation_type,
                    )
        registered.append(descriptor)
        logger.debug(
            "Service registered",
            service=descriptor.service_type,
            lifetime=descriptor.lifetime.value,
        )
        return self

    def register(
        self,
        service_type: Any,
        implementation_type: Optional[Any] = None,
        lifetime: ServiceLifetime = ServiceLifetime.SINGLETON,
    ) -> "Container":
        """Register a service with its implementation."""
        return self.add(
            ServiceDescriptor(
                service_type=service_type,
                implementation_type=implementation_type or service_type,
                lifetime=lifetime,
            )
        )

    def register_singleton(
        self,
        service_type: Any,
        implementation_type: Optional[Any] = None,
    ) -> "Container":
        """Register a singleton service."""
        return self.register(service_type, implementation_type, ServiceLifetime.SINGLETON)

    def register_scoped(
        self,
        service_type: Any,
        implementation_type: Optional[Any] = None,
    ) -> "Container":
        """Register a scoped service."""
        return self.register(service_type, implementation_type, ServiceLifetime.SCOPED)

    def register_transient(
        self,
        service_type: Any,
        implementation_type: Optional[Any] = None,
    ) -> "Container":
        """Register a transient service."""
        return self.register(service_type, implementation_type, ServiceLifetime.TRANSIENT)

    def register_instance(self, service_type: Any, instance: Any) -> "Container":
        """Register an existing instance as singleton."""
        return self.add(
            ServiceDescriptor(
                service_type=service_type,
                instance=instance,
                lifetime=ServiceLifetime.SINGLETON,
            )
        )

    def register_factory(
        self,
        service_type: Any,
        factory: Callable[[IServiceProvider], Any],
        lifetime: ServiceLifetime = ServiceLifetime.SINGLETON,
    ) -> "Container":
        """Register a factory called with the resolving provider."""
        return self.add(
            ServiceDescriptor(
                service_type=service_type,
                factory=factory,
                lifetime=lifetime,
            )
        )

    def is_registered(self, service_type: Any) -> bool:
        """Check if a service is registered."""
        return bool(self._descriptors.get(service_type))

    def registrations(self, service_type: Any) -> List[ServiceDescriptor]:
        """Registrations of a service key, oldest first."""
        return list(self._descriptors.get(service_type, ()))

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    def resolve(self, service_type: Any, scope: Optional[Scope] = None) -> Any:
        """
        Resolve the most recent registration of a service.

        Raises:
            ServiceNotRegisteredError: If the service has no registration
        """
        return self._resolve_descriptor(self._get_descriptor(service_type), scope)

    def try_resolve(self, service_type: Any, scope: Optional[Scope] = None) -> Optional[Any]:
        """Resolve a service, or ``None`` when it is not registered."""
        if not self.is_registered(service_type):
            return None
        return self.resolve(service_type, scope)

    def resolve_all(self, service_type: Any, scope: Optional[Scope] = None) -> List[Any]:
        """Resolve every registration of a service, in registration order."""
        return [
            self._resolve_descriptor(descriptor, scope)
            for descriptor in self._descriptors.get(service_type, ())
        ]

    @contextmanager
    def create_scope(self) -> Iterator[Scope]:
        """Create a new scope for scoped services."""
        scope = Scope(self)
        try:
            yield scope
        finally:
            scope.dispose()

    def dispose(self) -> None:
        """Dispose all singleton instances."""
        for instance in self._singletons.values():
            _dispose_instance(instance)
        self._singletons.clear()

    def _get_descriptor(self, service_type: Any) -> ServiceDescriptor:
        """Get the latest service descriptor or raise error."""
        registered = self._descriptors.get(service_type)
        if not registered:
            raise ServiceNotRegisteredError(service_type)
        return registered[-1]

    def _resolve_descriptor(
        self,
        descriptor: ServiceDescriptor,
        scope: Optional[Scope],
    ) -> Any:
        if descriptor.lifetime == ServiceLifetime.SINGLETON:
            with self._lock:
                if descriptor not in self._singletons:
                    # Detect circular dependencies
                    if descriptor in self._initializing:
                        raise CircularDependencyError(descriptor.service_type)
                    self._initializing.add(descriptor)
                    try:
                        self._singletons[descriptor] = self._create_instance(descriptor, scope)
                    finally:
                        self._initializing.discard(descriptor)
                return self._singletons[descriptor]

        elif descriptor.lifetime == ServiceLifetime.SCOPED:
            if scope is None:
                raise ValueError(
                    f"Scoped service '{type_name(descriptor.service_type)}' requires a scope"
                )
            return scope._resolve_scoped(descriptor)

        else:  # TRANSIENT
            return self._create_instance(descriptor, scope)

    def _get_dependencies(self, impl_type: Any) -> Dict[str, Any]:
        """Get constructor dependencies from type hints."""
        # Parameterized generics are constructed through their origin class
        target = get_origin(impl_type) or impl_type
        try:
            hints = get_type_hints(target.__init__)
        except Exception:
            hints = {}

        # Remove 'return' hint if present
        hints.pop("return", None)

        return hints

    def _create_instance(
        self,
        descriptor: ServiceDescriptor,
        scope: Optional[Scope] = None,
    ) -> Any:
        """Create a service instance."""
        # Use existing instance
        if descriptor.instance is not None:
            return descriptor.instance

        # Use factory
        if descriptor.factory is not None:
            return descriptor.factory(scope if scope is not None else self)

        impl_type = descriptor.implementation_type
        if impl_type is None:
            raise ValueError(f"No implementation for {type_name(descriptor.service_type)}")

        # Resolve dependencies
        resolved_deps = {}
        for param_name, param_type in self._get_dependencies(impl_type).items():
            if self._is_key(param_type) and self.is_registered(param_type):
                resolved_deps[param_name] = self.resolve(param_type, scope)

        return impl_type(**resolved_deps)

    @staticmethod
    def _is_key(value: Any) -> bool:
        try:
            hash(value)
        except TypeError:
            return False
        return True


def _dispose_instance(instance: Any) -> None:
    if hasattr(instance, "dispose"):
        instance.dispose()
    elif hasattr(instance, "close"):
        instance.close()
