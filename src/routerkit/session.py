"""High-level session facade wiring the request pipeline from a profile.

:class:`Session` assembles the pieces in dependency order::

    HttpxTransport -> APIService -> RouterTokenRefresher -> TokenProvider
                   -> RequestSigner -> RequestExecutor

and is used as an async context manager so the underlying
:class:`httpx.AsyncClient` is always closed.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Optional

import httpx

from routerkit.auth.provider import TokenProvider
from routerkit.auth.refresher import RouterTokenRefresher, TokenRefresher
from routerkit.auth.signer import RequestSigner
from routerkit.auth.token_store import FileTokenStore, TokenStore
from routerkit.client.events import EventObserver
from routerkit.client.executor import RequestExecutor
from routerkit.client.service import APIService
from routerkit.client.transport import HttpxTransport, Transport
from routerkit.models import AuthorizationRequirement, Profile, Token
from routerkit.router import APIRouter


class Session:
    """One authenticated conversation with the API a profile points at.

    Args:
        profile: Base URL, refresh endpoint and request settings.
        store: Token storage; defaults to the profile's
            :class:`~routerkit.auth.token_store.FileTokenStore`.
        transport: Request sender; defaults to an :class:`HttpxTransport`
            configured from ``profile.request``.
        observer: Lifecycle event receiver.
        refresher: Overrides the refresh strategy built from ``profile.refresh``.
        clock: Source of the current time.

    Example::

        async with Session(load_profile("prod")) as session:
            me = await session.execute(APIRouter("/me", auth=AuthorizationRequirement.ACCESS_TOKEN))
    """

    def __init__(
        self,
        profile: Profile,
        store: Optional[TokenStore] = None,
        transport: Optional[Transport] = None,
        observer: Optional[EventObserver] = None,
        refresher: Optional[TokenRefresher] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.profile = profile
        self.transport = transport or HttpxTransport(config=profile.request)
        self.service = APIService(
            self.transport,
            base_url=profile.base_url,
            observer=observer,
            default_headers=profile.default_headers,
        )
        self.refresher = refresher or RouterTokenRefresher.from_config(
            self.service, profile.refresh, clock=clock
        )
        self.tokens = TokenProvider(
            store if store is not None else FileTokenStore(profile.name),
            self.refresher,
            clock=clock,
        )
        self.signer = RequestSigner(self.tokens)
        self.executor = RequestExecutor(self.service, self.signer, self.tokens)

    async def __aenter__(self) -> Session:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.transport.aclose()

    # ------------------------------------------------------------------ #
    # Session state
    # ------------------------------------------------------------------ #

    def login(self, token: Token) -> None:
        self.tokens.set_token(token)

    def logout(self) -> None:
        self.tokens.logout()

    @property
    def is_logged_in(self) -> bool:
        return self.tokens.is_logged_in

    # ------------------------------------------------------------------ #
    # Requests
    # ------------------------------------------------------------------ #

    async def execute(
        self, router: APIRouter, auth: Optional[AuthorizationRequirement] = None
    ) -> Any:
        return await self.executor.execute(router, auth)

    async def execute_with_headers(
        self, router: APIRouter, auth: Optional[AuthorizationRequirement] = None
    ) -> tuple[Any, Any]:
        return await self.executor.execute_with_headers(router, auth)

    async def execute_headers(
        self, router: APIRouter, auth: Optional[AuthorizationRequirement] = None
    ) -> Any:
        return await self.executor.execute_headers(router, auth)

    async def execute_void(
        self, router: APIRouter, auth: Optional[AuthorizationRequirement] = None
    ) -> None:
        await self.executor.execute_void(router, auth)

    async def fetch(
        self, router: APIRouter, auth: Optional[AuthorizationRequirement] = None
    ) -> httpx.Response:
        return await self.executor.fetch(router, auth)

    async def signed_request(
        self, router: APIRouter, auth: Optional[AuthorizationRequirement] = None
    ) -> httpx.Request:
        """Build and sign *router* without sending it (used for ``--curl``)."""
        requirement = auth if auth is not None else router.auth
        return await self.signer.sign(self.service.build_request(router), requirement)
