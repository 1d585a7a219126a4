"""
Tests for the contract matcher.
"""
from scanning.descriptors import ROOT_IDENTITY, ContractKind, TypeDescriptor, build_table
from scanning.matching import ContractMatcher
from tests.scanning.builders import (
    HANDLER,
    NOTIFICATION_HANDLER,
    PING,
    PINGED,
    PONG,
    describe,
    ident,
    inst,
    param,
    template,
)


# =============================================================================
# INTERFACE-STYLE TEMPLATES
# =============================================================================

class TestInterfaceContracts:
    """Contracts declared directly on the candidate."""

    def test_declared_contract_is_found(self):
        handler = describe("PingHandler", inst(HANDLER, PING, PONG))
        matcher = ContractMatcher()

        assert matcher.find_closing_contracts(handler, HANDLER) == [inst(HANDLER, PING, PONG)]

    def test_every_instantiation_of_the_template_is_yielded(self):
        pang = ident("Pang")
        handler = describe(
            "MultiHandler",
            inst(HANDLER, PING, PONG),
            inst(NOTIFICATION_HANDLER, PINGED),
            inst(HANDLER, pang, PONG),
        )

        found = ContractMatcher().find_closing_contracts(handler, HANDLER)

        assert found == [inst(HANDLER, PING, PONG), inst(HANDLER, pang, PONG)]

    def test_other_template_yields_nothing(self):
        handler = describe("PingedHandler", inst(NOTIFICATION_HANDLER, PINGED))
        assert ContractMatcher().find_closing_contracts(handler, HANDLER) == []

    def test_malformed_instantiation_is_no_match(self):
        handler = describe("Broken", inst(HANDLER, PING))
        assert ContractMatcher().find_closing_contracts(handler, HANDLER) == []

    def test_root_type_is_skipped(self):
        root = TypeDescriptor(ROOT_IDENTITY, is_concrete=True, declared_contracts=(inst(HANDLER, PING, PONG),))
        assert ContractMatcher().find_closing_contracts(root, HANDLER) == []

    def test_matching_is_idempotent(self):
        base = describe("Base", inst(HANDLER, ident("Pang"), PONG), concrete=False)
        handler = describe("PingHandler", inst(HANDLER, PING, PONG), base=base.identity)
        matcher = ContractMatcher(build_table([base, handler]))

        first = matcher.find_closing_contracts(handler, HANDLER)
        second = matcher.find_closing_contracts(handler, HANDLER)

        assert first == second
        assert len(first) == 2


# =============================================================================
# INHERITANCE
# =============================================================================

class TestInheritedContracts:
    """Contracts reached through the base-type chain."""

    def test_own_contracts_before_ancestors(self):
        pang = ident("Pang")
        base = describe("Base", inst(HANDLER, pang, PONG), concrete=False)
        handler = describe("PingHandler", inst(HANDLER, PING, PONG), base=base.identity)
        matcher = ContractMatcher(build_table([base, handler]))

        assert matcher.find_closing_contracts(handler, HANDLER) == [
            inst(HANDLER, PING, PONG),
            inst(HANDLER, pang, PONG),
        ]

    def test_duplicates_are_kept(self):
        base = describe("Base", inst(HANDLER, PING, PONG), concrete=False)
        handler = describe("PingHandler", inst(HANDLER, PING, PONG), base=base.identity)
        matcher = ContractMatcher(build_table([base]))

        assert len(matcher.find_closing_contracts(handler, HANDLER)) == 2

    def test_generic_base_arguments_are_substituted(self):
        t = param("T")
        base = describe("HandlerBase", inst(HANDLER, t, PONG), parameters=[t], concrete=False)
        handler = describe("PingHandler", base=base.identity, base_arguments=[PING])
        matcher = ContractMatcher(build_table([base]))

        assert matcher.find_closing_contracts(handler, HANDLER) == [inst(HANDLER, PING, PONG)]

    def test_substitution_flows_through_two_levels(self):
        t, u = param("T"), param("U")
        root_base = describe("RootBase", inst(HANDLER, u, PONG), parameters=[u], concrete=False)
        middle = describe(
            "Middle",
            parameters=[t],
            concrete=False,
            base=root_base.identity,
            base_arguments=[t],
        )
        handler = describe("PingHandler", base=middle.identity, base_arguments=[PING])
        matcher = ContractMatcher(build_table([root_base, middle]))

        assert matcher.find_closing_contracts(handler, HANDLER) == [inst(HANDLER, PING, PONG)]

    def test_wrong_base_argument_count_ends_walk(self):
        t = param("T")
        base = describe("HandlerBase", inst(HANDLER, t, PONG), parameters=[t], concrete=False)
        handler = describe(
            "PingHandler",
            inst(NOTIFICATION_HANDLER, PINGED),
            base=base.identity,
            base_arguments=[PING, PONG],
        )
        matcher = ContractMatcher(build_table([base]))

        assert matcher.find_closing_contracts(handler, HANDLER) == []
        assert matcher.find_closing_contracts(handler, NOTIFICATION_HANDLER) == [
            inst(NOTIFICATION_HANDLER, PINGED)
        ]

    def test_base_missing_from_table_ends_walk(self):
        handler = describe("PingHandler", base=ident("Unknown"))
        assert ContractMatcher().find_closing_contracts(handler, HANDLER) == []

    def test_cyclic_table_terminates(self):
        a = describe("A", inst(HANDLER, PING, PONG), base=ident("B"))
        b = describe("B", base=ident("A"))
        matcher = ContractMatcher(build_table([a, b]))

        assert matcher.find_closing_contracts(a, HANDLER) == [inst(HANDLER, PING, PONG)]


# =============================================================================
# BASE-CLASS-STYLE TEMPLATES
# =============================================================================

class TestBaseClassContracts:
    """Templates implemented by inheriting from a generic base class."""

    def test_generic_base_closes_template(self):
        base_template = template("HandlerBase", 2, ContractKind.BASE_CLASS)
        handler = describe(
            "PingHandler",
            base=base_template.identity,
            base_arguments=[PING, PONG],
        )

        found = ContractMatcher().find_closing_contracts(handler, base_template)

        assert found == [inst(base_template, PING, PONG)]

    def test_declared_interfaces_are_ignored(self):
        base_template = template("IRequestHandler", 2, ContractKind.BASE_CLASS)
        handler = describe("PingHandler", inst(HANDLER, PING, PONG))

        assert ContractMatcher().find_closing_contracts(handler, base_template) == []

    def test_found_on_ancestor(self):
        base_template = template("HandlerBase", 2, ContractKind.BASE_CLASS)
        middle = describe(
            "PingHandlerBase",
            concrete=False,
            base=base_template.identity,
            base_arguments=[PING, PONG],
        )
        handler = describe("PingHandler", base=middle.identity)
        matcher = ContractMatcher(build_table([middle]))

        assert matcher.find_closing_contracts(handler, base_template) == [
            inst(base_template, PING, PONG)
        ]


# =============================================================================
# CONVENIENCE CHECKS
# =============================================================================

class TestMatcherChecks:
    """Tests for implements, can_be_cast_to and is_assignable."""

    def test_implements_any_arguments(self):
        t = param("T")
        generic = describe("GenericHandler", inst(HANDLER, t, PONG), parameters=[t])
        matcher = ContractMatcher()

        assert matcher.implements(generic, HANDLER)
        assert not matcher.implements(generic, NOTIFICATION_HANDLER)

    def test_can_be_cast_to_exact_contract_only(self):
        handler = describe("PingHandler", inst(HANDLER, PING, PONG))
        matcher = ContractMatcher()

        assert matcher.can_be_cast_to(handler, inst(HANDLER, PING, PONG))
        assert not matcher.can_be_cast_to(handler, inst(HANDLER, PONG, PING))

    def test_is_assignable_through_base_chain(self):
        message = describe("Message")
        ping = describe("Ping", base=message.identity)
        matcher = ContractMatcher(build_table([message, ping]))

        assert matcher.is_assignable(ping.identity, message.identity)
        assert not matcher.is_assignable(message.identity, ping.identity)

    def test_is_assignable_through_declared_contract(self):
        request_template = template("IRequest", 1)
        ping = describe("Ping", inst(request_template, PONG))
        matcher = ContractMatcher(build_table([ping]))

        assert matcher.is_assignable(ping.identity, request_template.identity)

    def test_unknown_type_is_only_assignable_to_itself(self):
        matcher = ContractMatcher()
        assert matcher.is_assignable(PING, PING)
        assert not matcher.is_assignable(PING, PONG)
