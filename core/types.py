"""
Mediator DI - Shared Types

Service lifetimes and the explicit ``Result`` type. ``Result`` is used
where failing is an ordinary outcome, such as closing an open generic
handler whose type parameter bound rejects the argument.

Usage:
    from core.types import Result, ServiceLifetime

    result = closer(candidate, contract)
    if result.is_success:
        registry.bind(contract, result.value.identity, ServiceLifetime.TRANSIENT)
"""
from __future__ import annotations

from enum import Enum
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")
R = TypeVar("R")


class ServiceLifetime(Enum):
    """How long a container keeps a resolved instance."""

    SINGLETON = "singleton"  # One instance per container
    SCOPED = "scoped"        # One instance per scope
    TRANSIENT = "transient"  # New instance on every resolution


class Result(Generic[T]):
    """
    A value, or the reason there is none.

    A failed result keeps the exception that caused it, if any, so
    ``unwrap`` re-raises the original error.
    """

    def __init__(
        self,
        value: Optional[T] = None,
        error: Optional[str] = None,
        exception: Optional[Exception] = None,
    ):
        self._value = value
        self._error = error
        self._exception = exception

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: str) -> "Result[T]":
        return cls(error=error)

    @classmethod
    def from_exception(cls, exception: Exception) -> "Result[T]":
        return cls(error=str(exception), exception=exception)

    @property
    def is_success(self) -> bool:
        return self._error is None and self._exception is None

    @property
    def is_failure(self) -> bool:
        return not self.is_success

    @property
    def value(self) -> T:
        if self.is_failure:
            raise ValueError(f"Cannot get value from failed result: {self._error}")
        return self._value  # type: ignore

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def exception(self) -> Optional[Exception]:
        return self._exception

    def unwrap(self) -> T:
        """The value; raises the recorded exception on failure."""
        if self._exception is not None:
            raise self._exception
        if self._error is not None:
            raise ValueError(self._error)
        return self._value  # type: ignore

    def unwrap_or(self, default: T) -> T:
        return default if self.is_failure else self._value  # type: ignore

    def map(self, fn: Callable[[T], R]) -> "Result[R]":
        """Apply ``fn`` to a successful value; failures pass through."""
        if self.is_failure:
            return Result(error=self._error, exception=self._exception)
        return Result(value=fn(self._value))  # type: ignore

    def __repr__(self) -> str:
        if self.is_success:
            return f"Result.success({self._value!r})"
        return f"Result.failure({self._error!r})"
