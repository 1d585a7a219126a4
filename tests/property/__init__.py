"""
Mediator DI - Property-Based Testing Suite

Hypothesis checks of the registration pass invariants over generated
descriptor sets.
"""
