"""Request lifecycle notifications.

An :class:`EventObserver` is told about every attempt the executor makes,
every decoded body, and every session that ended because the server kept
answering 401. Observers run inline: an exception raised by an observer
propagates to the caller of the request.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

import httpx

from routerkit.output import redact_headers


class EventObserver:
    """Base observer; every hook is a no-op so subclasses override only what they need."""

    def on_request_sent(self, request: httpx.Request) -> None:
        pass

    def on_response_received(self, request: httpx.Request, response: httpx.Response) -> None:
        pass

    def on_response_decoded(self, value: Any) -> None:
        pass

    def on_unauthorized_session_ended(self, router: Any) -> None:
        """Called after the session was logged out following an unrecoverable 401.

        Args:
            router: The :class:`~routerkit.router.APIRouter` whose request failed.
        """


class ObserverGroup(EventObserver):
    """Fans every event out to several observers, in order."""

    def __init__(self, *observers: EventObserver) -> None:
        self.observers = list(observers)

    def on_request_sent(self, request: httpx.Request) -> None:
        for observer in self.observers:
            observer.on_request_sent(request)

    def on_response_received(self, request: httpx.Request, response: httpx.Response) -> None:
        for observer in self.observers:
            observer.on_response_received(request, response)

    def on_response_decoded(self, value: Any) -> None:
        for observer in self.observers:
            observer.on_response_decoded(value)

    def on_unauthorized_session_ended(self, router: Any) -> None:
        for observer in self.observers:
            observer.on_unauthorized_session_ended(router)


class LoggingEventObserver(EventObserver):
    """Logs each attempt at DEBUG with credentials masked.

    Args:
        logger: Destination logger; defaults to this module's logger.
        emit: Optional callable receiving each formatted line as well, used by
            the CLI to mirror attempts to ``--verbose`` output.
    """

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        emit: Optional[Callable[[str], None]] = None,
    ) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self._emit = emit

    def _log(self, level: int, message: str) -> None:
        self._logger.log(level, message)
        if self._emit is not None:
            self._emit(message)

    def on_request_sent(self, request: httpx.Request) -> None:
        self._log(
            logging.DEBUG,
            f"> {request.method} {request.url} headers={redact_headers(request.headers)}",
        )

    def on_response_received(self, request: httpx.Request, response: httpx.Response) -> None:
        self._log(
            logging.DEBUG,
            f"< {response.status_code} {request.method} {request.url} "
            f"({len(response.content)} bytes)",
        )

    def on_unauthorized_session_ended(self, router: Any) -> None:
        self._log(
            logging.WARNING,
            f"Session ended: {router.method.value} {router.path} stayed unauthorized",
        )
