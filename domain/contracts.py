"""
Mediator DI - Request and Notification Contracts

The generic contracts handlers implement. Each handler interface is a
contract template: scanning binds every implementation of, say,
``IRequestHandler[Ping, Pong]`` under that closed key.

Requests:
    - Requests declare their response through ``IRequest[TResponse]``
    - ``IRequest[None]`` marks a request without a response
    - Each request is handled by a single handler, sync, async or
      cancellable-async

Notifications:
    - Notifications are broadcast to every registered handler

Processors:
    - Pre/post processors are collected: all of them are registered
      against the bare processor contract

Usage:
    @dataclass
    class Pong:
        message: str

    @dataclass
    class Ping(IRequest[Pong]):
        message: str

    class PingHandler(IAsyncRequestHandler[Ping, Pong]):
        async def handle(self, request: Ping) -> Pong:
            return Pong(request.message)
"""
from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Generic, TypeVar


TResponse = TypeVar("TResponse")


class IRequest(ABC, Generic[TResponse]):
    """Marker base for requests routed to a single handler."""


class INotification(ABC):
    """Marker base for notifications broadcast to many handlers."""


TRequest = TypeVar("TRequest", bound=IRequest)
TNotification = TypeVar("TNotification", bound=INotification)


class CancellationToken:
    """
    Cooperative cancellation signal passed to cancellable handlers.

    Handlers poll ``is_cancellation_requested`` or call
    ``raise_if_cancellation_requested`` at safe points.
    """

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def is_cancellation_requested(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def raise_if_cancellation_requested(self) -> None:
        if self._cancelled:
            raise asyncio.CancelledError("Operation was cancelled")

    @classmethod
    def none(cls) -> "CancellationToken":
        """A token that is never cancelled by its issuer."""
        return cls()


# =============================================================================
# REQUEST HANDLERS
# =============================================================================


class IRequestHandler(ABC, Generic[TRequest, TResponse]):
    """Synchronous handler for a request with a response."""

    @abstractmethod
    def handle(self, request: TRequest) -> TResponse:
        pass


class IVoidRequestHandler(ABC, Generic[TRequest]):
    """Synchronous handler for a request without a response."""

    @abstractmethod
    def handle(self, request: TRequest) -> None:
        pass


class IAsyncRequestHandler(ABC, Generic[TRequest, TResponse]):
    """Asynchronous handler for a request with a response."""

    @abstractmethod
    async def handle(self, request: TRequest) -> TResponse:
        pass


class IAsyncVoidRequestHandler(ABC, Generic[TRequest]):
    """Asynchronous handler for a request without a response."""

    @abstractmethod
    async def handle(self, request: TRequest) -> None:
        pass


class ICancellableAsyncRequestHandler(ABC, Generic[TRequest, TResponse]):
    """Asynchronous, cancellable handler for a request with a response."""

    @abstractmethod
    async def handle(
        self,
        request: TRequest,
        cancellation_token: CancellationToken,
    ) -> TResponse:
        pass


class ICancellableAsyncVoidRequestHandler(ABC, Generic[TRequest]):
    """Asynchronous, cancellable handler for a request without a response."""

    @abstractmethod
    async def handle(
        self,
        request: TRequest,
        cancellation_token: CancellationToken,
    ) -> None:
        pass


# =============================================================================
# NOTIFICATION HANDLERS
# =============================================================================


class INotificationHandler(ABC, Generic[TNotification]):
    """Synchronous notification handler."""

    @abstractmethod
    def handle(self, notification: TNotification) -> None:
        pass


class IAsyncNotificationHandler(ABC, Generic[TNotification]):
    """Asynchronous notification handler."""

    @abstractmethod
    async def handle(self, notification: TNotification) -> None:
        pass


class ICancellableAsyncNotificationHandler(ABC, Generic[TNotification]):
    """Asynchronous, cancellable notification handler."""

    @abstractmethod
    async def handle(
        self,
        notification: TNotification,
        cancellation_token: CancellationToken,
    ) -> None:
        pass


# =============================================================================
# PROCESSORS
# =============================================================================


class IRequestPreProcessor(ABC, Generic[TRequest]):
    """Runs before the handler of a request."""

    @abstractmethod
    async def process(self, request: TRequest) -> None:
        pass


class IRequestPostProcessor(ABC, Generic[TRequest, TResponse]):
    """Runs after the handler of a request, with its response."""

    @abstractmethod
    async def process(self, request: TRequest, response: TResponse) -> None:
        pass
