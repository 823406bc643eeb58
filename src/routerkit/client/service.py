"""Single-attempt request execution.

:class:`APIService` owns everything about one trip to the server that does
not involve tokens: building the request from a router, reporting it to
the observer, sending it, classifying the status and decoding the body.
The :class:`~routerkit.client.executor.RequestExecutor` adds signing and
the retry policy on top; the
:class:`~routerkit.auth.refresher.RouterTokenRefresher` uses the service
directly so a refresh is always exactly one attempt.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from routerkit.client.events import EventObserver
from routerkit.client.response import raise_for_status
from routerkit.client.transport import Transport
from routerkit.router import APIRouter


class APIService:
    """Builds, sends and decodes one request at a time.

    Args:
        transport: Where requests are sent.
        base_url: Host used for routers without their own ``hostname``.
        observer: Receives lifecycle events; a no-op observer when omitted.
        default_headers: Headers added to every request, below the router's own.
    """

    def __init__(
        self,
        transport: Transport,
        base_url: Optional[str] = None,
        observer: Optional[EventObserver] = None,
        default_headers: Optional[dict[str, str]] = None,
    ) -> None:
        self.transport = transport
        self.base_url = base_url
        self.observer = observer or EventObserver()
        self.default_headers = dict(default_headers or {})

    def build_request(self, router: APIRouter) -> httpx.Request:
        return router.build_request(self.base_url, self.default_headers)

    async def send(self, request: httpx.Request) -> httpx.Response:
        """Send one request and check its status.

        Returns:
            The successful (2xx/3xx) response.

        Raises:
            InvalidResponseError: For any other status.
            TransportError: When the transport fails.
        """
        self.observer.on_request_sent(request)
        response = await self.transport.send(request)
        self.observer.on_response_received(request, response)
        raise_for_status(response)
        return response

    def decode(self, router: APIRouter, response: httpx.Response) -> Any:
        value = router.decode(response.content)
        self.observer.on_response_decoded(value)
        return value

    async def execute(self, router: APIRouter) -> Any:
        """Build, send and decode *router* without signing or retrying."""
        response = await self.send(self.build_request(router))
        return self.decode(router, response)
