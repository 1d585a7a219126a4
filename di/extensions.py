"""
Mediator DI - Container Extensions

Scans modules for mediator handlers and registers them in a container.

- Every implementation of a handler contract is registered transient under
  its closed contract, e.g. ``IRequestHandler[Ping, Pong]``
- Open generic handlers are closed over each closed contract found in the
  scan and registered when closing succeeds
- Pre/post processors are registered transient under the bare processor
  contract
- ``SingleInstanceFactory``, ``MultiInstanceFactory`` and ``IMediator`` are
  registered scoped

Pipeline behaviours are not scanned; register them on the container
directly.

Usage:
    container = create_container()
    add_mediator(container, "app.handlers")

    with container.create_scope() as scope:
        mediator = scope.resolve(IMediator)
        pong = await mediator.send(Ping("hello"))
"""
from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from config import Config, get_config
from core.errors import ConfigError
from core.types import ServiceLifetime
from di.container import Container
from di.registry import ContainerRegistry
from domain.contracts import (
    IAsyncNotificationHandler,
    IAsyncRequestHandler,
    IAsyncVoidRequestHandler,
    ICancellableAsyncNotificationHandler,
    ICancellableAsyncRequestHandler,
    ICancellableAsyncVoidRequestHandler,
    INotificationHandler,
    IRequestHandler,
    IRequestPostProcessor,
    IRequestPreProcessor,
    IVoidRequestHandler,
)
from domain.mediator import IMediator, Mediator, MultiInstanceFactory, SingleInstanceFactory
from observability.logging import get_logger
from scanning.descriptors import Binding, ContractTemplate, TypeDescriptor
from scanning.reflection import ScanTarget, TypeCatalog
from scanning.registration import RegistrationEngine


logger = get_logger(__name__)

# Contracts with one implementation per closed contract
HANDLER_CONTRACTS: Tuple[type, ...] = (
    IRequestHandler,
    IVoidRequestHandler,
    IAsyncRequestHandler,
    IAsyncVoidRequestHandler,
    ICancellableAsyncRequestHandler,
    ICancellableAsyncVoidRequestHandler,
    INotificationHandler,
    IAsyncNotificationHandler,
    ICancellableAsyncNotificationHandler,
)

# Contracts every implementation is collected under
COLLECTOR_CONTRACTS: Tuple[type, ...] = (
    IRequestPreProcessor,
    IRequestPostProcessor,
)


def create_container(config: Optional[Config] = None) -> Container:
    """A container with the configured duplicate policy."""
    config = config or get_config()
    return Container(reject_duplicates=config.scanning.reject_duplicates)


def add_required_services(container: Container) -> Container:
    """Register the instance factories and the mediator, scoped."""
    container.register_factory(
        SingleInstanceFactory,
        lambda provider: SingleInstanceFactory(provider.try_resolve),
        ServiceLifetime.SCOPED,
    )
    container.register_factory(
        MultiInstanceFactory,
        lambda provider: MultiInstanceFactory(provider.resolve_all),
        ServiceLifetime.SCOPED,
    )
    container.register_scoped(IMediator, Mediator)
    return container


def add_mediator(
    container: Container,
    *targets: ScanTarget,
    config: Optional[Config] = None,
) -> List[Binding]:
    """
    Register handlers and the mediator from the given scan targets.

    Targets are modules, dotted module names, or marker types whose module
    is scanned. Without targets the configured ``MEDIATOR_SCAN_MODULES``
    are scanned.

    Returns:
        The bindings registered by the pass

    Raises:
        ConfigError: If there is nothing to scan
        ScanError: If a target cannot be imported
        RegistrationError: If the container rejects a binding
    """
    config = config or get_config()
    scan_targets: Sequence[ScanTarget] = targets or tuple(config.scanning.modules)
    if not scan_targets:
        raise ConfigError(
            "No scan targets given and MEDIATOR_SCAN_MODULES is empty",
            config_key="MEDIATOR_SCAN_MODULES",
        )

    # Required services are added once per container
    if not container.is_registered(IMediator):
        add_required_services(container)

    catalog = TypeCatalog()
    candidates = catalog.scan(
        scan_targets,
        include_private=config.scanning.include_private,
        recursive=config.scanning.recursive,
    )
    return add_mediator_classes(container, catalog, candidates)


def add_mediator_classes(
    container: Container,
    catalog: TypeCatalog,
    candidates: Sequence[TypeDescriptor],
) -> List[Binding]:
    """Run a registration pass over already described candidates."""
    contracts, collectors = mediator_templates(catalog)
    engine = RegistrationEngine(ContainerRegistry(container, catalog), closer=catalog.close)
    return engine.register(candidates, contracts, collectors, table=catalog.table)


def mediator_templates(
    catalog: TypeCatalog,
) -> Tuple[List[ContractTemplate], List[ContractTemplate]]:
    """The handler and collector contract templates, described by ``catalog``."""
    return (
        [catalog.template(contract) for contract in HANDLER_CONTRACTS],
        [catalog.template(contract) for contract in COLLECTOR_CONTRACTS],
    )
