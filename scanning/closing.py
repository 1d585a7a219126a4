"""
Mediator DI - Closing Resolver

Decides whether an open generic implementation could be closed over a
closed contract instantiation, and performs the closing as a
``Result``-returning operation.

The feasibility check is permissive: it compares the number
of the candidate's free type parameters with the number of contract type
arguments and does not prove that the parameters line up positionally.
The closer is the only judge of whether an instantiation succeeds, and a
failed closing is simply not registered.
"""
from __future__ import annotations

from typing import Dict, Protocol

from core.errors import ClosingError
from core.types import Result
from scanning.descriptors import (
    ContractInstantiation,
    TypeArgument,
    TypeDescriptor,
    TypeIdentity,
    TypeParameter,
    substitute,
)
from scanning.matching import ContractMatcher


class Closer(Protocol):
    """Produces the closed form of an open implementation for a contract."""

    def __call__(
        self,
        candidate: TypeDescriptor,
        contract: ContractInstantiation,
    ) -> Result[TypeDescriptor]:
        ...


def could_close(
    matcher: ContractMatcher,
    open_candidate: TypeDescriptor,
    closed_contract: ContractInstantiation,
) -> bool:
    """Whether ``open_candidate`` is worth closing over ``closed_contract``."""
    if not open_candidate.is_open_generic or closed_contract.is_open:
        return False
    if len(open_candidate.parameters) != len(closed_contract.type_arguments):
        return False
    return matcher.implements(open_candidate, closed_contract.template)


class DescriptorCloser:
    """
    Closes descriptors by positional substitution.

    Each argument is checked against its parameter's constraints and bound;
    bounds are proven through the matcher's table.
    """

    def __init__(self, matcher: ContractMatcher) -> None:
        self._matcher = matcher

    def __call__(
        self,
        candidate: TypeDescriptor,
        contract: ContractInstantiation,
    ) -> Result[TypeDescriptor]:
        arguments = contract.type_arguments
        if len(arguments) != len(candidate.parameters):
            return self._fail(
                candidate,
                contract,
                f"{candidate} takes {len(candidate.parameters)} type arguments, "
                f"got {len(arguments)}",
            )

        mapping: Dict[TypeParameter, TypeArgument] = {}
        for parameter, argument in zip(candidate.parameters, arguments):
            violation = self._check_argument(parameter, argument)
            if violation:
                return self._fail(candidate, contract, violation)
            mapping[parameter] = argument

        return Result.success(close_descriptor(candidate, mapping))

    def _check_argument(self, parameter: TypeParameter, argument: TypeArgument) -> str:
        if not isinstance(argument, TypeIdentity):
            return f"{argument} is not a closed type"
        if parameter.constraints and argument.definition not in {
            c.definition for c in parameter.constraints
        }:
            allowed = ", ".join(str(c) for c in parameter.constraints)
            return f"{argument} for {parameter} must be one of: {allowed}"
        if parameter.bound is not None and not self._matcher.is_assignable(argument, parameter.bound):
            return f"{argument} for {parameter} must satisfy bound {parameter.bound}"
        return ""

    @staticmethod
    def _fail(
        candidate: TypeDescriptor,
        contract: ContractInstantiation,
        message: str,
    ) -> Result[TypeDescriptor]:
        return Result.from_exception(
            ClosingError(message, implementation=str(candidate), contract=str(contract))
        )


def close_descriptor(
    candidate: TypeDescriptor,
    mapping: Dict[TypeParameter, TypeArgument],
) -> TypeDescriptor:
    """The closed descriptor of ``candidate`` under ``mapping``."""
    identity = TypeIdentity(
        candidate.identity.module,
        candidate.identity.name,
        tuple(mapping.get(parameter, parameter) for parameter in candidate.parameters),
    )
    return TypeDescriptor(
        identity=identity,
        is_concrete=candidate.is_concrete,
        parameters=(),
        declared_contracts=tuple(c.substitute(mapping) for c in candidate.declared_contracts),
        base_type=candidate.base_type,
        base_arguments=tuple(substitute(argument, mapping) for argument in candidate.base_arguments),
    )
