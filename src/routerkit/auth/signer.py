"""Attach credentials to outgoing requests.

:class:`RequestSigner` maps an
:class:`~routerkit.models.AuthorizationRequirement` onto an
``Authorization: Bearer <token>`` header, fetching the credential from the
:class:`~routerkit.auth.provider.TokenProvider`. Failures from the provider
propagate unchanged.
"""

from __future__ import annotations

import httpx

from routerkit.auth.provider import TokenProvider
from routerkit.models import AuthorizationRequirement
from routerkit.router import with_bearer_token


class RequestSigner:
    """Signs requests with the session's bearer credential.

    Args:
        provider: Source of access and refresh credentials.
    """

    def __init__(self, provider: TokenProvider) -> None:
        self._provider = provider

    async def sign(
        self,
        request: httpx.Request,
        requirement: AuthorizationRequirement,
    ) -> httpx.Request:
        """Return *request* carrying the credential *requirement* asks for.

        ``NONE`` leaves the request untouched. ``ACCESS_TOKEN`` may refresh
        an expiring token first; ``REFRESH_TOKEN`` never does.
        """
        if requirement is AuthorizationRequirement.NONE:
            return request
        if requirement is AuthorizationRequirement.ACCESS_TOKEN:
            token = await self._provider.get_access_token()
        else:
            token = await self._provider.get_refresh_token()
        return with_bearer_token(request, token)

    async def sign_after_unauthorized(
        self,
        request: httpx.Request,
        requirement: AuthorizationRequirement,
    ) -> httpx.Request:
        """Force a token refresh, then sign *request* with the result.

        Used after the server rejected the previous attempt with 401.
        """
        if requirement is AuthorizationRequirement.NONE:
            return request
        access = await self._provider.get_access_token(force_refresh=True)
        if requirement is AuthorizationRequirement.ACCESS_TOKEN:
            return with_bearer_token(request, access)
        return await self.sign(request, requirement)
