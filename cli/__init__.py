"""
Mediator DI - Command Line Interface

Inspect what a handler scan would register.
"""
from cli.main import app, main

__all__ = ["app", "main"]
