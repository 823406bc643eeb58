"""Raw request/response transport.

The executor only needs one operation from the network layer: send an
:class:`httpx.Request`, get an :class:`httpx.Response` back with its body
read, or fail with a :class:`~routerkit.exceptions.TransportError`.
Keeping that behind :class:`Transport` lets tests substitute scripted
responses without touching the retry policy.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

import httpx

from routerkit.exceptions import TransportError, TransportTimeoutError
from routerkit.models import RequestConfig


class Transport(ABC):
    """Abstract request sender."""

    @abstractmethod
    async def send(self, request: httpx.Request) -> httpx.Response:
        """Send *request* and return the response with its body loaded.

        Raises:
            TransportTimeoutError: The request timed out.
            TransportError: Any other network-level failure.
        """

    async def aclose(self) -> None:
        """Release any underlying resources. No-op by default."""


class HttpxTransport(Transport):
    """:class:`Transport` backed by an :class:`httpx.AsyncClient`.

    Args:
        client: The client to send through. When omitted one is created from
            *config* and closed by :meth:`aclose`; a client passed in is left
            for the caller to close.
        config: Timeout, TLS verification and redirect settings for the
            client created here.

    Example::

        transport = HttpxTransport(httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        response = await transport.send(httpx.Request("GET", "https://api.example.com/ping"))
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        config: Optional[RequestConfig] = None,
    ) -> None:
        self._owns_client = client is None
        if client is None:
            config = config or RequestConfig()
            client = httpx.AsyncClient(
                timeout=config.timeout,
                verify=config.verify_ssl,
                follow_redirects=config.follow_redirects,
            )
        self._client = client

    async def send(self, request: httpx.Request) -> httpx.Response:
        try:
            response = await self._client.send(request)
            await response.aread()
        except httpx.TimeoutException as exc:
            raise TransportTimeoutError(
                f"{request.method} {request.url} timed out: {exc}"
            ) from exc
        except httpx.TransportError as exc:
            raise TransportError(f"{request.method} {request.url} failed: {exc}") from exc
        return response

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
