"""
Mediator DI - Mediator

Routes requests to their single handler and broadcasts notifications to
every handler, resolving handlers through the instance factories the
container provides. The mediator only looks handlers up by their closed
contract, e.g. ``IRequestHandler[Ping, Pong]``; which implementations are
bound to that key is decided by scanning.

Usage:
    with container.create_scope() as scope:
        mediator = scope.resolve(IMediator)
        pong = await mediator.send(Ping("hello"))
        await mediator.publish(Pinged())
"""
from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import (
    Any,
    Callable,
    List,
    NewType,
    Optional,
    Tuple,
    Type,
    get_args,
    get_origin,
)

from core.errors import HandlerNotFoundError
from domain.contracts import (
    CancellationToken,
    IAsyncNotificationHandler,
    IAsyncRequestHandler,
    IAsyncVoidRequestHandler,
    ICancellableAsyncNotificationHandler,
    ICancellableAsyncRequestHandler,
    ICancellableAsyncVoidRequestHandler,
    INotification,
    INotificationHandler,
    IRequest,
    IRequestHandler,
    IVoidRequestHandler,
)
from observability.logging import get_logger
from observability.tracing import start_dispatch_span


logger = get_logger(__name__)

# Resolves the single (most recent) implementation of a service, or None
SingleInstanceFactory = NewType("SingleInstanceFactory", Callable[[Any], Optional[Any]])
# Resolves every implementation of a service, in registration order
MultiInstanceFactory = NewType("MultiInstanceFactory", Callable[[Any], List[Any]])

_NO_RESPONSE = (None, type(None))


class IMediator(ABC):
    """Sends requests and publishes notifications."""

    @abstractmethod
    async def send(
        self,
        request: IRequest[Any],
        cancellation_token: Optional[CancellationToken] = None,
    ) -> Any:
        pass

    @abstractmethod
    async def publish(
        self,
        notification: INotification,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> None:
        pass


class Mediator(IMediator):
    """
    Default mediator over container-provided instance factories.

    Request handlers are tried in the order sync, async, cancellable
    async; the first one registered handles the request.
    """

    def __init__(
        self,
        single_instance_factory: SingleInstanceFactory,
        multi_instance_factory: MultiInstanceFactory,
    ) -> None:
        self._single_instance_factory = single_instance_factory
        self._multi_instance_factory = multi_instance_factory

    async def send(
        self,
        request: IRequest[Any],
        cancellation_token: Optional[CancellationToken] = None,
    ) -> Any:
        """
        Send a request to its handler.

        Raises:
            HandlerNotFoundError: If no handler is registered for the request type
        """
        request_type = type(request)
        with start_dispatch_span("send", request_type):
            return await self._send(request, request_type, cancellation_token or CancellationToken.none())

    async def _send(
        self,
        request: IRequest[Any],
        request_type: Type[Any],
        token: CancellationToken,
    ) -> Any:
        has_response, response_type = response_type_of(request_type)

        if has_response:
            sync_key = IRequestHandler[request_type, response_type]
            async_key = IAsyncRequestHandler[request_type, response_type]
            cancellable_key = ICancellableAsyncRequestHandler[request_type, response_type]
        else:
            sync_key = IVoidRequestHandler[request_type]
            async_key = IAsyncVoidRequestHandler[request_type]
            cancellable_key = ICancellableAsyncVoidRequestHandler[request_type]

        handler = self._single_instance_factory(sync_key)
        if handler is not None:
            logger.debug("Dispatching request", request=request_type.__name__, kind="sync")
            return handler.handle(request)

        handler = self._single_instance_factory(async_key)
        if handler is not None:
            logger.debug("Dispatching request", request=request_type.__name__, kind="async")
            return await handler.handle(request)

        handler = self._single_instance_factory(cancellable_key)
        if handler is not None:
            logger.debug("Dispatching request", request=request_type.__name__, kind="cancellable")
            token.raise_if_cancellation_requested()
            return await handler.handle(request, token)

        raise HandlerNotFoundError(request_type)

    async def publish(
        self,
        notification: INotification,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> None:
        """
        Publish a notification to every registered handler.

        Synchronous handlers run first, in registration order; asynchronous
        handlers then run concurrently. Handler exceptions propagate.
        """
        notification_type = type(notification)
        with start_dispatch_span("publish", notification_type):
            await self._publish(notification, notification_type, cancellation_token or CancellationToken.none())

    async def _publish(
        self,
        notification: INotification,
        notification_type: Type[Any],
        token: CancellationToken,
    ) -> None:
        sync_handlers = self._multi_instance_factory(INotificationHandler[notification_type])
        async_handlers = self._multi_instance_factory(IAsyncNotificationHandler[notification_type])
        cancellable_handlers = self._multi_instance_factory(
            ICancellableAsyncNotificationHandler[notification_type]
        )

        handler_count = len(sync_handlers) + len(async_handlers) + len(cancellable_handlers)
        if not handler_count:
            logger.debug("No handlers for notification", notification=notification_type.__name__)
            return

        for handler in sync_handlers:
            handler.handle(notification)

        token.raise_if_cancellation_requested()
        await asyncio.gather(
            *(handler.handle(notification) for handler in async_handlers),
            *(handler.handle(notification, token) for handler in cancellable_handlers),
        )
        logger.debug(
            "Notification published",
            notification=notification_type.__name__,
            handlers=handler_count,
        )


def response_type_of(request_type: Type[Any]) -> Tuple[bool, Any]:
    """
    The response type a request class declares through ``IRequest[...]``.

    Returns ``(False, None)`` for requests declared as ``IRequest[None]`` or
    with a bare ``IRequest`` base.
    """
    for klass in request_type.__mro__:
        for base in klass.__dict__.get("__orig_bases__", ()):
            if get_origin(base) is IRequest:
                (response_type,) = get_args(base)
                if response_type in _NO_RESPONSE:
                    return False, None
                return True, response_type
    return False, None
