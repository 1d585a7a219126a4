"""
Mediator DI - Scanning

Resolves scanned implementation types against generic contract templates
and produces the bindings a service registry receives.

Layers:
    descriptors   - immutable type descriptors
    matching      - which contracts a candidate implements
    closing       - closing open generic implementations
    registration  - the registration pass
    reflection    - live classes <-> descriptors

Usage:
    from scanning import RegistrationEngine, TypeCatalog
"""
from scanning.closing import Closer, DescriptorCloser, close_descriptor, could_close
from scanning.descriptors import (
    ROOT_IDENTITY,
    Binding,
    ContractInstantiation,
    ContractKind,
    ContractTemplate,
    TypeArgument,
    TypeDescriptor,
    TypeIdentity,
    TypeParameter,
    TypeTable,
    build_table,
    is_open,
    substitute,
)
from scanning.matching import ContractMatcher
from scanning.reflection import TypeCatalog, discover_types, identify
from scanning.registration import IServiceRegistry, RecordingRegistry, RegistrationEngine

__all__ = [
    # Descriptors
    "TypeIdentity",
    "TypeParameter",
    "TypeArgument",
    "TypeDescriptor",
    "TypeTable",
    "ContractKind",
    "ContractTemplate",
    "ContractInstantiation",
    "Binding",
    "ROOT_IDENTITY",
    "build_table",
    "is_open",
    "substitute",
    # Matching and closing
    "ContractMatcher",
    "Closer",
    "DescriptorCloser",
    "close_descriptor",
    "could_close",
    # Registration
    "IServiceRegistry",
    "RecordingRegistry",
    "RegistrationEngine",
    # Reflection
    "TypeCatalog",
    "discover_types",
    "identify",
]
