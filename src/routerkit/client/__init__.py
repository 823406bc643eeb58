"""HTTP client layer for routerkit.

Classes:
    :class:`Transport` / :class:`HttpxTransport` -- send one
    :class:`httpx.Request`, mapping network failures to routerkit errors.
    :class:`APIService` -- one unsigned attempt: build, observe, send,
    classify, decode.
    :class:`EventObserver` -- lifecycle notifications
    (:class:`LoggingEventObserver`, :class:`ObserverGroup`).

The signing and retry policy lives in :mod:`routerkit.client.executor`,
imported directly because it depends on :mod:`routerkit.auth`.

Example::

    from routerkit.client import APIService, HttpxTransport

    service = APIService(HttpxTransport(), base_url="https://api.example.com")
    status = await service.execute(APIRouter("/status"))
"""

from routerkit.client.events import EventObserver, LoggingEventObserver, ObserverGroup
from routerkit.client.service import APIService
from routerkit.client.transport import HttpxTransport, Transport

__all__ = [
    "APIService",
    "EventObserver",
    "HttpxTransport",
    "LoggingEventObserver",
    "ObserverGroup",
    "Transport",
]
