"""
Mediator DI - Reflection Adapter

Normalizes live Python classes into type descriptors and maps descriptors
back to runtime objects.

A class is read as:
    - parameters:          its ``__parameters__`` TypeVars
    - declared contracts:  every parameterized generic in its own
                           ``__orig_bases__``, plus the contracts reached
                           through its other bases (mixins come first in
                           ``__bases__``)
    - base type:           ``__bases__[0]`` (``object``, ``Generic`` and
                           ``Protocol`` end the chain), with the arguments
                           applied to it in ``__orig_bases__``
    - concrete:            not abstract and not a protocol

The matcher walks the single-base chain; contracts of the remaining bases
are folded into the declared contracts, seen through the arguments the
class applied to them.

Usage:
    catalog = TypeCatalog()
    candidates = catalog.scan(["app.handlers"])
    template = catalog.template(IRequestHandler)
    handler_key = catalog.realize(binding.contract)
"""
from __future__ import annotations

import importlib
import inspect
import pkgutil
import sys
from types import ModuleType
from typing import (
    Any,
    Dict,
    Generic,
    Iterable,
    List,
    Optional,
    Protocol,
    Sequence,
    Set,
    Tuple,
    TypeVar,
    Union,
    get_args,
    get_origin,
)

from core.errors import ClosingError, DescriptorError, ScanError
from core.types import Result
from observability.logging import get_logger
from scanning.closing import close_descriptor
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


logger = get_logger(__name__)

ScanTarget = Union[ModuleType, str, type]

_CHAIN_ENDS = (object, Generic, Protocol)


def identify(cls: Any) -> TypeIdentity:
    """Identity of a class: defining module and qualified name."""
    return TypeIdentity(cls.__module__, cls.__qualname__)


class TypeCatalog:
    """
    Descriptor table built from live classes.

    The catalog remembers the runtime object behind every identity it hands
    out, so bindings can be realized into container keys afterwards.
    """

    def __init__(self) -> None:
        self._descriptors: Dict[TypeIdentity, TypeDescriptor] = {}
        self._runtime: Dict[TypeIdentity, Any] = {}
        self._typevars: Dict[TypeParameter, TypeVar] = {}

    @property
    def table(self) -> TypeTable:
        return self._descriptors

    # -------------------------------------------------------------------------
    # Live types -> descriptors
    # -------------------------------------------------------------------------

    def template(self, cls: type, kind: ContractKind = ContractKind.INTERFACE) -> ContractTemplate:
        """Contract template for a generic class."""
        parameters = getattr(cls, "__parameters__", ())
        if not parameters:
            raise DescriptorError(f"{cls.__qualname__} is not generic", type_name=cls.__qualname__)
        identity = identify(cls)
        self._runtime.setdefault(identity, cls)
        return ContractTemplate(identity, len(parameters), kind)

    def describe(self, cls: type) -> TypeDescriptor:
        """
        Descriptor for ``cls``, describing its base chain as well.

        Raises:
            DescriptorError: If the class uses type arguments that have no
                descriptor form
        """
        identity = identify(cls)
        cached = self._descriptors.get(identity)
        if cached is not None:
            return cached

        raw_parameters = getattr(cls, "__parameters__", ())
        if any(not isinstance(p, TypeVar) for p in raw_parameters):
            raise DescriptorError(
                f"{cls.__qualname__} has non-TypeVar parameters", type_name=cls.__qualname__
            )
        parameters = tuple(self.parameter(p) for p in raw_parameters)

        orig_bases = cls.__dict__.get("__orig_bases__", ())
        declared: List[ContractInstantiation] = []
        for base in orig_bases:
            origin = get_origin(base)
            if origin is None or origin in _CHAIN_ENDS or not getattr(origin, "__parameters__", ()):
                continue
            template = self.template(origin)
            declared.append(
                ContractInstantiation(template, tuple(self.argument(a) for a in get_args(base)))
            )

        base_cls = cls.__bases__[0] if cls.__bases__ else object
        base_type = None
        base_arguments: tuple = ()
        if base_cls not in _CHAIN_ENDS:
            base_type = identify(base_cls)
            base_arguments = self._applied_arguments(orig_bases, base_cls)
            self.describe(base_cls)

        for other_cls in cls.__bases__[1:]:
            if other_cls in _CHAIN_ENDS:
                continue
            arguments = self._applied_arguments(orig_bases, other_cls)
            for contract in self._reachable_contracts(self.describe(other_cls), arguments):
                if contract not in declared:
                    declared.append(contract)

        descriptor = TypeDescriptor(
            identity=identity,
            is_concrete=not inspect.isabstract(cls) and not getattr(cls, "_is_protocol", False),
            parameters=parameters,
            declared_contracts=tuple(declared),
            base_type=base_type,
            base_arguments=base_arguments,
        )
        self._descriptors[identity] = descriptor
        self._runtime[identity] = cls
        return descriptor

    def _applied_arguments(self, orig_bases: Sequence[Any], base_cls: type) -> Tuple[TypeArgument, ...]:
        for base in orig_bases:
            if get_origin(base) is base_cls:
                return tuple(self.argument(a) for a in get_args(base))
        return ()

    def _reachable_contracts(
        self,
        descriptor: TypeDescriptor,
        arguments: Sequence[TypeArgument],
    ) -> List[ContractInstantiation]:
        """Every contract ``descriptor`` declares or inherits, seen through ``arguments``."""
        contracts: List[ContractInstantiation] = []
        mapping: Dict[TypeParameter, TypeArgument] = {}
        if arguments and len(arguments) == len(descriptor.parameters):
            mapping = dict(zip(descriptor.parameters, arguments))

        visited: Set[TypeIdentity] = set()
        current: Optional[TypeDescriptor] = descriptor
        while current is not None and current.identity not in visited:
            visited.add(current.identity)
            contracts.extend(c.substitute(mapping) for c in current.declared_contracts if c.is_well_formed)
            if current.base_type is None:
                break
            base = self._descriptors.get(current.base_type.definition)
            if base is None:
                break
            if current.base_arguments and len(base.parameters) != len(current.base_arguments):
                break
            mapping = {
                parameter: substitute(argument, mapping)
                for parameter, argument in zip(base.parameters, current.base_arguments)
            }
            current = base
        return contracts

    def describe_all(self, classes: Iterable[type]) -> List[TypeDescriptor]:
        """Descriptors for ``classes``, leaving out those that cannot be described."""
        descriptors: List[TypeDescriptor] = []
        for cls in classes:
            try:
                descriptors.append(self.describe(cls))
            except DescriptorError as e:
                logger.debug("Skipping type", type=cls.__qualname__, reason=e.message)
        return descriptors

    def parameter(self, typevar: TypeVar) -> TypeParameter:
        bound = typevar.__bound__
        parameter = TypeParameter(
            typevar.__name__,
            bound=self.argument(bound) if isinstance(bound, type) else None,
            constraints=tuple(
                self.argument(c) for c in typevar.__constraints__ if isinstance(c, type)
            ),
        )
        self._typevars.setdefault(parameter, typevar)
        return parameter

    def argument(self, value: Any) -> TypeArgument:
        """Descriptor form of a type argument."""
        if isinstance(value, TypeVar):
            return self.parameter(value)
        if value is None:
            value = type(None)

        origin = get_origin(value)
        if origin is not None:
            if not isinstance(origin, type):
                raise DescriptorError(f"Unsupported type argument {value!r}")
            identity = TypeIdentity(
                origin.__module__,
                origin.__qualname__,
                tuple(self.argument(a) for a in get_args(value)),
            )
            self._runtime.setdefault(identity.definition, origin)
        elif isinstance(value, type):
            identity = identify(value)
        else:
            raise DescriptorError(f"Unsupported type argument {value!r}")

        self._runtime.setdefault(identity, value)
        return identity

    # -------------------------------------------------------------------------
    # Discovery
    # -------------------------------------------------------------------------

    def scan(
        self,
        targets: Sequence[ScanTarget],
        include_private: bool = False,
        recursive: bool = True,
    ) -> List[TypeDescriptor]:
        """Describe every class exported by the scan targets."""
        classes = discover_types(targets, include_private=include_private, recursive=recursive)
        candidates = self.describe_all(classes)
        logger.info(
            "Scanned types",
            targets=len(targets),
            classes=len(classes),
            candidates=len(candidates),
        )
        return candidates

    # -------------------------------------------------------------------------
    # Descriptors -> live types
    # -------------------------------------------------------------------------

    def realize(self, value: Union[TypeArgument, ContractTemplate, ContractInstantiation]) -> Any:
        """Runtime object for a template, instantiation or type identity."""
        if isinstance(value, ContractTemplate):
            return self._lookup(value.identity)
        if isinstance(value, ContractInstantiation):
            generic = self._lookup(value.template.identity)
            return generic[tuple(self.realize(a) for a in value.type_arguments)]
        if isinstance(value, TypeParameter):
            typevar = self._typevars.get(value)
            if typevar is None:
                raise DescriptorError(f"Unknown type parameter {value}")
            return typevar

        cached = self._runtime.get(value)
        if cached is not None:
            return cached
        if not value.arguments:
            return self._lookup(value)
        realized = self._lookup(value.definition)[tuple(self.realize(a) for a in value.arguments)]
        self._runtime[value] = realized
        return realized

    def _lookup(self, identity: TypeIdentity) -> Any:
        try:
            return self._runtime[identity]
        except KeyError:
            raise DescriptorError(
                f"No runtime type known for {identity.qualified_name}",
                type_name=identity.qualified_name,
            ) from None

    def close(
        self,
        candidate: TypeDescriptor,
        contract: ContractInstantiation,
    ) -> Result[TypeDescriptor]:
        """
        Close an open generic class over a contract's type arguments.

        Arguments are checked against the class's own TypeVar bounds and
        constraints before subscripting.
        """
        try:
            generic = self._lookup(candidate.identity)
            arguments = tuple(self.realize(a) for a in contract.type_arguments)
            typevars = generic.__parameters__
            if len(typevars) != len(arguments):
                raise ClosingError(
                    f"{candidate} takes {len(typevars)} type arguments, got {len(arguments)}"
                )
            for typevar, argument in zip(typevars, arguments):
                _check_typevar(typevar, argument)
            closed = generic[arguments]
        except (DescriptorError, ClosingError, TypeError) as e:
            return Result.from_exception(
                ClosingError(str(e), implementation=str(candidate), contract=str(contract), cause=e)
            )

        mapping = dict(zip(candidate.parameters, contract.type_arguments))
        descriptor = close_descriptor(candidate, mapping)
        self._runtime.setdefault(descriptor.identity, closed)
        return Result.success(descriptor)


def _check_typevar(typevar: TypeVar, argument: Any) -> None:
    runtime_argument = get_origin(argument) or argument
    constraints = typevar.__constraints__
    if constraints:
        if not any(runtime_argument is c or argument == c for c in constraints):
            allowed = ", ".join(repr(c) for c in constraints)
            raise ClosingError(
                f"Generic argument {argument!r} for TypeVar '{typevar.__name__}' must be one of: {allowed}"
            )
        return
    bound = typevar.__bound__
    if isinstance(bound, type):
        if not isinstance(runtime_argument, type) or not issubclass(runtime_argument, bound):
            raise ClosingError(
                f"Generic argument {argument!r} for TypeVar '{typevar.__name__}' must satisfy bound {bound!r}"
            )


def discover_types(
    targets: Sequence[ScanTarget],
    include_private: bool = False,
    recursive: bool = True,
) -> List[type]:
    """
    Classes defined in the scan targets.

    Targets are modules, dotted module names, or marker types whose
    defining module is scanned. Packages are walked when ``recursive``.
    Names starting with an underscore are left out unless
    ``include_private``.

    Raises:
        ScanError: If a target cannot be imported or is of an unsupported kind
    """
    modules: Dict[str, ModuleType] = {}
    for target in targets:
        module = _resolve_module(target)
        modules.setdefault(module.__name__, module)
        if recursive and hasattr(module, "__path__"):
            for info in pkgutil.walk_packages(module.__path__, module.__name__ + "."):
                modules.setdefault(info.name, _import(info.name))

    classes: List[type] = []
    seen: set = set()
    for module in modules.values():
        for name, obj in inspect.getmembers(module, inspect.isclass):
            if obj.__module__ != module.__name__ or obj in seen:
                continue
            if not include_private and name.startswith("_"):
                continue
            seen.add(obj)
            classes.append(obj)
    return classes


def _resolve_module(target: ScanTarget) -> ModuleType:
    if isinstance(target, ModuleType):
        return target
    if isinstance(target, str):
        return _import(target)
    if isinstance(target, type):
        module = sys.modules.get(target.__module__)
        if module is None:
            return _import(target.__module__)
        return module
    raise ScanError(f"Cannot scan {target!r}: expected a module, module name or type", target=target)


def _import(name: str) -> ModuleType:
    try:
        return importlib.import_module(name)
    except ImportError as e:
        raise ScanError(f"Cannot import module '{name}'", target=name, cause=e) from e
