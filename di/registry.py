"""
Mediator DI - Container Registry

Receives the bindings of a registration pass and registers them in a
``Container`` under runtime keys.
"""
from __future__ import annotations

from typing import Union

from core.types import ServiceLifetime
from di.container import Container
from scanning.descriptors import ContractInstantiation, ContractTemplate, TypeIdentity
from scanning.reflection import TypeCatalog


class ContainerRegistry:
    """
    ``IServiceRegistry`` over a service container.

    Contracts and implementations are realized through the catalog that
    described them: ``IRequestHandler[Ping, Pong]`` for closed contracts,
    the bare class for collector templates, and closed generic aliases
    for implementations produced by closing.
    """

    def __init__(self, container: Container, catalog: TypeCatalog) -> None:
        self._container = container
        self._catalog = catalog

    def bind(
        self,
        contract: Union[ContractInstantiation, ContractTemplate],
        implementation: TypeIdentity,
        lifetime: ServiceLifetime,
    ) -> None:
        self._container.register(
            self._catalog.realize(contract),
            self._catalog.realize(implementation),
            lifetime,
        )
