"""
Mediator DI - Registration Engine

Scans a candidate set once per contract template and forwards the
resulting (contract, implementation) bindings to a service registry.

For every single-implementation template the engine:
    1. collects the concrete candidates implementing it and every distinct
       contract instantiation any candidate declares;
    2. binds each instantiation to the closed concretions implementing it
       exactly;
    3. for closed instantiations, attempts to close each open concretion
       over it, binding the closed form when closing succeeds.

Collector templates are bound afterwards, one binding per concrete
implementation, against the bare template.

The engine keeps no state between passes. Closing failures are dropped
silently; errors raised by the registry propagate unchanged.
"""
from __future__ import annotations

from typing import Dict, List, Optional, Protocol, Sequence, Set, Tuple, Union

from core.types import ServiceLifetime
from observability.logging import get_logger
from observability.tracing import start_registration_span
from scanning.closing import Closer, DescriptorCloser, could_close
from scanning.descriptors import (
    Binding,
    ContractInstantiation,
    ContractTemplate,
    TypeDescriptor,
    TypeIdentity,
    TypeTable,
    build_table,
)
from scanning.matching import ContractMatcher


logger = get_logger(__name__)

ContractKey = Union[ContractInstantiation, ContractTemplate]


class IServiceRegistry(Protocol):
    """The registry that accepts bindings produced by a pass."""

    def bind(
        self,
        contract: ContractKey,
        implementation: TypeIdentity,
        lifetime: ServiceLifetime,
    ) -> None:
        ...


class RecordingRegistry:
    """In-memory registry that keeps bindings in arrival order."""

    def __init__(self) -> None:
        self.bindings: List[Binding] = []

    def bind(
        self,
        contract: ContractKey,
        implementation: TypeIdentity,
        lifetime: ServiceLifetime,
    ) -> None:
        self.bindings.append(Binding(contract, implementation, lifetime))

    def for_contract(self, contract: ContractKey) -> List[TypeIdentity]:
        return [b.implementation for b in self.bindings if b.contract == contract]

    def __len__(self) -> int:
        return len(self.bindings)


class RegistrationEngine:
    """
    Resolves candidate implementations against contract templates.

    Usage:
        engine = RegistrationEngine(registry)
        bindings = engine.register(candidates, HANDLER_TEMPLATES, COLLECTOR_TEMPLATES)
    """

    def __init__(
        self,
        registry: IServiceRegistry,
        closer: Optional[Closer] = None,
        lifetime: ServiceLifetime = ServiceLifetime.TRANSIENT,
    ) -> None:
        self._registry = registry
        self._closer = closer
        self._lifetime = lifetime

    def register(
        self,
        candidates: Sequence[TypeDescriptor],
        contract_templates: Sequence[ContractTemplate],
        collector_templates: Sequence[ContractTemplate] = (),
        table: Optional[TypeTable] = None,
    ) -> List[Binding]:
        """
        Run one registration pass.

        Args:
            candidates: Descriptors of the scanned types
            contract_templates: Single-implementation contract templates
            collector_templates: One-to-many contract templates
            table: Descriptor table for base-type lookups; defaults to the
                candidates themselves

        Returns:
            The emitted bindings, in emission order
        """
        candidates = list(candidates)
        matcher = ContractMatcher(table if table is not None else build_table(candidates))
        closer = self._closer or DescriptorCloser(matcher)
        pass_state = _Pass(self._registry, self._lifetime)

        with start_registration_span(
            candidates=len(candidates),
            templates=len(contract_templates) + len(collector_templates),
        ) as span:
            for template in contract_templates:
                self._register_template(pass_state, matcher, closer, candidates, template)

            for template in collector_templates:
                self._register_collector(pass_state, matcher, candidates, template)

            span.set_attribute("mediator.bindings", len(pass_state.bindings))

        logger.info(
            "Registration pass complete",
            candidates=len(candidates),
            templates=len(contract_templates),
            collectors=len(collector_templates),
            bindings=len(pass_state.bindings),
        )
        return pass_state.bindings

    def _register_template(
        self,
        pass_state: "_Pass",
        matcher: ContractMatcher,
        closer: Closer,
        candidates: Sequence[TypeDescriptor],
        template: ContractTemplate,
    ) -> None:
        concretions: Dict[TypeIdentity, TypeDescriptor] = {}
        instantiations: Dict[ContractInstantiation, None] = {}

        for candidate in candidates:
            contracts = matcher.find_closing_contracts(candidate, template)
            if not contracts:
                continue
            if candidate.is_concrete:
                concretions.setdefault(candidate.identity, candidate)
            for contract in contracts:
                instantiations.setdefault(contract, None)

        for contract in instantiations:
            for concretion in concretions.values():
                if not concretion.is_open_generic and matcher.can_be_cast_to(concretion, contract):
                    pass_state.emit(contract, concretion.identity)

            if contract.is_open:
                continue

            for concretion in concretions.values():
                if not could_close(matcher, concretion, contract):
                    continue
                closed = closer(concretion, contract)
                if closed.is_success:
                    pass_state.emit(contract, closed.value.identity)

    def _register_collector(
        self,
        pass_state: "_Pass",
        matcher: ContractMatcher,
        candidates: Sequence[TypeDescriptor],
        template: ContractTemplate,
    ) -> None:
        concretions: Dict[TypeIdentity, None] = {}
        for candidate in candidates:
            if candidate.is_concrete and matcher.implements(candidate, template):
                concretions.setdefault(candidate.identity, None)

        for identity in concretions:
            pass_state.emit(template, identity)


class _Pass:
    """Bindings emitted so far in one pass, with duplicate suppression."""

    def __init__(self, registry: IServiceRegistry, lifetime: ServiceLifetime) -> None:
        self._registry = registry
        self._lifetime = lifetime
        self._seen: Set[Tuple[ContractKey, TypeIdentity]] = set()
        self.bindings: List[Binding] = []

    def emit(self, contract: ContractKey, implementation: TypeIdentity) -> None:
        key = (contract, implementation)
        if key in self._seen:
            return
        self._seen.add(key)
        self._registry.bind(contract, implementation, self._lifetime)
        self.bindings.append(Binding(contract, implementation, self._lifetime))
        logger.debug(
            "Binding registered",
            contract=str(contract),
            implementation=str(implementation),
        )
