"""
Property-Based Tests for Registration Invariants

Tests matching idempotence, binding uniqueness, collector completeness and
closing safety over generated candidate sets.
"""
from hypothesis import given, settings

from scanning.descriptors import ContractInstantiation, build_table
from scanning.matching import ContractMatcher
from scanning.registration import RecordingRegistry, RegistrationEngine
from tests.property.strategies import (
    COLLECTOR_TEMPLATES,
    CONTRACT_TEMPLATES,
    TEMPLATES,
    candidate_set_strategy,
)


def run_pass(candidates):
    engine = RegistrationEngine(RecordingRegistry())
    return engine.register(candidates, CONTRACT_TEMPLATES, COLLECTOR_TEMPLATES)


class TestMatchingInvariants:
    """Property-based tests for the contract matcher."""

    @given(candidate_set_strategy())
    @settings(max_examples=200)
    def test_matching_is_idempotent(self, candidates):
        """Matching the same candidate twice gives the same sequence."""
        matcher = ContractMatcher(build_table(candidates))

        for candidate in candidates:
            for template in TEMPLATES:
                first = matcher.find_closing_contracts(candidate, template)
                assert matcher.find_closing_contracts(candidate, template) == first

    @given(candidate_set_strategy())
    @settings(max_examples=200)
    def test_found_contracts_use_the_template(self, candidates):
        matcher = ContractMatcher(build_table(candidates))

        for candidate in candidates:
            for template in TEMPLATES:
                for contract in matcher.find_closing_contracts(candidate, template):
                    assert contract.template == template
                    assert contract.is_well_formed


class TestPassInvariants:
    """Property-based tests for a whole registration pass."""

    @given(candidate_set_strategy())
    @settings(max_examples=200)
    def test_no_duplicate_bindings(self, candidates):
        bindings = run_pass(candidates)
        pairs = [(b.contract, b.implementation) for b in bindings]

        assert len(pairs) == len(set(pairs))

    @given(candidate_set_strategy())
    @settings(max_examples=200)
    def test_passes_are_repeatable(self, candidates):
        assert set(run_pass(candidates)) == set(run_pass(candidates))

    @given(candidate_set_strategy())
    @settings(max_examples=200)
    def test_registry_sees_every_binding(self, candidates):
        registry = RecordingRegistry()
        bindings = RegistrationEngine(registry).register(
            candidates, CONTRACT_TEMPLATES, COLLECTOR_TEMPLATES
        )

        assert registry.bindings == bindings

    @given(candidate_set_strategy())
    @settings(max_examples=200)
    def test_implementations_come_from_concrete_candidates(self, candidates):
        concrete = {c.identity for c in candidates if c.is_concrete}

        for binding in run_pass(candidates):
            assert binding.implementation.definition in concrete

    @given(candidate_set_strategy())
    @settings(max_examples=200)
    def test_collector_completeness(self, candidates):
        """Every concrete implementation of a collector template is bound exactly once."""
        matcher = ContractMatcher(build_table(candidates))
        bindings = run_pass(candidates)

        for template in COLLECTOR_TEMPLATES:
            expected = [
                c.identity
                for c in candidates
                if c.is_concrete and matcher.implements(c, template)
            ]
            bound = [b.implementation for b in bindings if b.contract == template]
            assert bound == expected

    @given(candidate_set_strategy())
    @settings(max_examples=200)
    def test_closing_safety(self, candidates):
        """Closed generics are bound only to closed contracts of matching arity."""
        by_identity = {c.identity: c for c in candidates}

        for binding in run_pass(candidates):
            if binding.is_collector:
                continue
            assert isinstance(binding.contract, ContractInstantiation)
            assert binding.contract.template in CONTRACT_TEMPLATES

            if binding.implementation.arguments:
                source = by_identity[binding.implementation.definition]
                assert source.is_open_generic
                assert not binding.contract.is_open
                assert len(binding.implementation.arguments) == len(source.parameters)
                assert len(source.parameters) == len(binding.contract.type_arguments)
