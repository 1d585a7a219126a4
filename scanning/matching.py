"""
Mediator DI - Contract Matcher

Determines whether and how a candidate type implements a contract
template, walking the single-inheritance chain of base types.
"""
from __future__ import annotations

from typing import Dict, Iterator, List, Mapping, Optional, Set

from scanning.descriptors import (
    ContractInstantiation,
    ContractKind,
    ContractTemplate,
    TypeArgument,
    TypeDescriptor,
    TypeIdentity,
    TypeParameter,
    TypeTable,
    substitute,
)


class ContractMatcher:
    """
    Finds the contract instantiations a candidate closes for a template.

    Base types are resolved through ``table``; a base missing from the
    table ends the walk, as does the universal root type.

    Usage:
        matcher = ContractMatcher(table)
        for contract in matcher.find_closing_contracts(candidate, template):
            ...
    """

    def __init__(self, table: Optional[TypeTable] = None) -> None:
        self._table: TypeTable = table if table is not None else {}

    @property
    def table(self) -> TypeTable:
        return self._table

    def find_closing_contracts(
        self,
        candidate: TypeDescriptor,
        template: ContractTemplate,
    ) -> List[ContractInstantiation]:
        """
        Every instantiation of ``template`` that ``candidate`` implements.

        Matches are returned in discovery order, the candidate's own before
        its ancestors'. Duplicates are kept; callers deduplicate.
        """
        return list(self._iter_closing(candidate, template, {}, set()))

    def _iter_closing(
        self,
        candidate: TypeDescriptor,
        template: ContractTemplate,
        mapping: Mapping[TypeParameter, TypeArgument],
        visited: Set[TypeIdentity],
    ) -> Iterator[ContractInstantiation]:
        if candidate.is_root or candidate.identity in visited:
            return
        visited.add(candidate.identity)

        if template.kind is ContractKind.INTERFACE:
            for contract in candidate.declared_contracts:
                if contract.template == template and contract.is_well_formed:
                    yield contract.substitute(mapping)
        elif candidate.base_type is not None and candidate.base_type.definition == template.identity:
            contract = ContractInstantiation(template, tuple(candidate.base_arguments))
            if contract.is_well_formed:
                yield contract.substitute(mapping)

        if candidate.base_type is None:
            return
        base = self._table.get(candidate.base_type.definition)
        if base is None:
            return

        # Contracts of a generic base are seen through the arguments this
        # type applied to it; a wrong argument count matches nothing.
        if candidate.base_arguments and len(base.parameters) != len(candidate.base_arguments):
            return
        base_mapping: Dict[TypeParameter, TypeArgument] = {
            parameter: substitute(argument, mapping)
            for parameter, argument in zip(base.parameters, candidate.base_arguments)
        }
        yield from self._iter_closing(base, template, base_mapping, visited)

    def implements(self, candidate: TypeDescriptor, template: ContractTemplate) -> bool:
        """Whether ``candidate`` implements ``template`` with any arguments."""
        return next(self._iter_closing(candidate, template, {}, set()), None) is not None

    def can_be_cast_to(
        self,
        candidate: TypeDescriptor,
        contract: ContractInstantiation,
    ) -> bool:
        """Whether ``candidate`` implements exactly ``contract``."""
        return contract in self._iter_closing(candidate, contract.template, {}, set())

    def is_assignable(self, argument: TypeIdentity, target: TypeIdentity) -> bool:
        """
        Whether ``argument`` is ``target`` or derives from it.

        Derivation is proven through the table only: the base chain and the
        contracts declared along it. Types absent from the table are only
        assignable to themselves.
        """
        if argument.definition == target.definition:
            return True
        visited: Set[TypeIdentity] = set()
        current = self._table.get(argument.definition)
        while current is not None and current.identity not in visited:
            visited.add(current.identity)
            if current.identity == target.definition:
                return True
            if any(c.template.identity == target.definition for c in current.declared_contracts):
                return True
            if current.base_type is None:
                break
            if current.base_type.definition == target.definition:
                return True
            current = self._table.get(current.base_type.definition)
        return False
