"""
Mediator DI - Type Descriptor Model

Plain, immutable data describing candidate implementation types and the
generic contracts they declare. Descriptors are computed once per
registration pass (see ``scanning.reflection``) so that matching and
closing operate on data rather than on live reflection.

Shapes:
    TypeIdentity           - name + defining module (+ type arguments once closed)
    TypeParameter          - an unbound type placeholder
    ContractTemplate       - the unparameterized contract (identity + arity)
    ContractInstantiation  - a template applied to type arguments
    TypeDescriptor         - a candidate type and its declared contracts
    Binding                - a (contract, implementation) registration request
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional, Tuple, Union

from core.types import ServiceLifetime


@dataclass(frozen=True)
class TypeIdentity:
    """Globally unique identity of a type, optionally with type arguments."""

    module: str
    name: str
    arguments: Tuple["TypeArgument", ...] = ()

    @property
    def qualified_name(self) -> str:
        return f"{self.module}.{self.name}"

    @property
    def definition(self) -> "TypeIdentity":
        """The identity with its type arguments stripped."""
        if not self.arguments:
            return self
        return TypeIdentity(self.module, self.name)

    def __str__(self) -> str:
        if not self.arguments:
            return self.name
        return f"{self.name}[{', '.join(str(a) for a in self.arguments)}]"


@dataclass(frozen=True)
class TypeParameter:
    """An unbound type placeholder, the data form of a ``TypeVar``."""

    name: str
    bound: Optional[TypeIdentity] = None
    constraints: Tuple[TypeIdentity, ...] = ()

    def __str__(self) -> str:
        return self.name


TypeArgument = Union[TypeIdentity, TypeParameter]
TypeMapping = Mapping[TypeParameter, TypeArgument]

ROOT_IDENTITY = TypeIdentity("builtins", "object")


def is_open(argument: TypeArgument) -> bool:
    """Whether a type argument still contains an unbound parameter."""
    if isinstance(argument, TypeParameter):
        return True
    return any(is_open(nested) for nested in argument.arguments)


def substitute(argument: TypeArgument, mapping: TypeMapping) -> TypeArgument:
    """Replace parameters in a type argument, recursing into nested arguments."""
    if isinstance(argument, TypeParameter):
        return mapping.get(argument, argument)
    if not argument.arguments or not mapping:
        return argument
    return TypeIdentity(
        argument.module,
        argument.name,
        tuple(substitute(nested, mapping) for nested in argument.arguments),
    )


class ContractKind(Enum):
    """How a contract template is implemented by candidate types."""

    INTERFACE = "interface"    # declared through implemented contracts
    BASE_CLASS = "base_class"  # inherited through the single base type


@dataclass(frozen=True)
class ContractTemplate:
    """The unparameterized shape of a capability contract."""

    identity: TypeIdentity
    arity: int
    kind: ContractKind = field(default=ContractKind.INTERFACE, compare=False)

    @property
    def name(self) -> str:
        return self.identity.name

    def __str__(self) -> str:
        return f"{self.identity.name}<{',' * (self.arity - 1)}>"


@dataclass(frozen=True)
class ContractInstantiation:
    """A contract template applied to concrete or open type arguments.

    Two instantiations are equal iff they share a template and their type
    arguments are pairwise equal.
    """

    template: ContractTemplate
    type_arguments: Tuple[TypeArgument, ...]

    @property
    def is_open(self) -> bool:
        return any(is_open(argument) for argument in self.type_arguments)

    @property
    def is_well_formed(self) -> bool:
        return len(self.type_arguments) == self.template.arity

    def substitute(self, mapping: TypeMapping) -> "ContractInstantiation":
        if not mapping:
            return self
        return ContractInstantiation(
            self.template,
            tuple(substitute(argument, mapping) for argument in self.type_arguments),
        )

    def __str__(self) -> str:
        return f"{self.template.name}[{', '.join(str(a) for a in self.type_arguments)}]"


@dataclass(frozen=True)
class TypeDescriptor:
    """Normalized snapshot of a candidate implementation type.

    ``base_type`` refers to the parent by identity only; the parent's
    descriptor is looked up in a ``TypeTable``. ``base_arguments`` holds the
    type arguments this type applies to a generic parent, and is empty when
    the parent is not generic.
    """

    identity: TypeIdentity
    is_concrete: bool
    parameters: Tuple[TypeParameter, ...] = ()
    declared_contracts: Tuple[ContractInstantiation, ...] = ()
    base_type: Optional[TypeIdentity] = None
    base_arguments: Tuple[TypeArgument, ...] = ()

    @property
    def is_open_generic(self) -> bool:
        return bool(self.parameters)

    @property
    def is_root(self) -> bool:
        return self.identity == ROOT_IDENTITY

    def __str__(self) -> str:
        if self.parameters:
            return f"{self.identity.name}[{', '.join(p.name for p in self.parameters)}]"
        return str(self.identity)


TypeTable = Mapping[TypeIdentity, TypeDescriptor]


@dataclass(frozen=True)
class Binding:
    """A registration request forwarded to the service registry.

    ``contract`` is a closed instantiation, or the bare template for
    collector contracts.
    """

    contract: Union[ContractInstantiation, ContractTemplate]
    implementation: TypeIdentity
    lifetime: ServiceLifetime = ServiceLifetime.TRANSIENT

    @property
    def is_collector(self) -> bool:
        return isinstance(self.contract, ContractTemplate)

    def __str__(self) -> str:
        return f"{self.contract} -> {self.implementation} ({self.lifetime.value})"


def build_table(*descriptor_groups) -> dict:
    """Index descriptors by identity, first occurrence wins."""
    table: dict = {}
    for group in descriptor_groups:
        for descriptor in group:
            table.setdefault(descriptor.identity, descriptor)
    return table
