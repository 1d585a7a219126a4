"""
Mediator DI - Domain Layer

The contracts handlers implement and the mediator that dispatches to
them.

Usage:
    from domain import IRequest, IRequestHandler, IMediator
"""
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
    IRequestPostProcessor,
    IRequestPreProcessor,
    IVoidRequestHandler,
)
from domain.mediator import (
    IMediator,
    Mediator,
    MultiInstanceFactory,
    SingleInstanceFactory,
    response_type_of,
)

__all__ = [
    # Requests and notifications
    "IRequest",
    "INotification",
    "CancellationToken",
    # Handlers
    "IRequestHandler",
    "IVoidRequestHandler",
    "IAsyncRequestHandler",
    "IAsyncVoidRequestHandler",
    "ICancellableAsyncRequestHandler",
    "ICancellableAsyncVoidRequestHandler",
    "INotificationHandler",
    "IAsyncNotificationHandler",
    "ICancellableAsyncNotificationHandler",
    # Processors
    "IRequestPreProcessor",
    "IRequestPostProcessor",
    # Mediator
    "IMediator",
    "Mediator",
    "SingleInstanceFactory",
    "MultiInstanceFactory",
    "response_type_of",
]
