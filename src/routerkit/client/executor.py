"""Signed request execution with a bounded retry policy.

:class:`RequestExecutor` drives one logical request through at most two
attempts:

1. Build the request from the router, sign it, send it.
2. On a timeout or a status outside 200-499, re-sign (without forcing a
   refresh) and send once more. Whatever the second attempt produces is
   final.
3. On a 401 for a signed request, force a token refresh, re-sign and send
   once more. If anything on that path fails the session is logged out,
   the observer is told, and
   :class:`~routerkit.exceptions.UnauthorizedSessionError` is raised.

The category of the first failure picks the retry; a retry never triggers
another retry of a different kind. A refresh that fails while signing the
first attempt also ends the session.

Only the session the request started with is ever ended. If the user logged
in again or logged out while the request was in flight, the failure is
raised as-is and the current session is left alone.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from routerkit.auth.provider import TokenProvider
from routerkit.auth.signer import RequestSigner
from routerkit.client.service import APIService
from routerkit.exceptions import (
    AuthorizationFailedError,
    InvalidResponseError,
    RouterkitError,
    TransportTimeoutError,
    UnauthorizedSessionError,
)
from routerkit.models import AuthorizationRequirement
from routerkit.router import APIRouter

logger = logging.getLogger(__name__)


class RequestExecutor:
    """Runs routers through signing, sending, retrying and decoding.

    Args:
        service: Single-attempt sender and decoder.
        signer: Attaches credentials to each attempt.
        provider: The session, logged out when it can no longer be refreshed.

    Example::

        executor = RequestExecutor(service, RequestSigner(provider), provider)
        user = await executor.execute(GetUser())
    """

    def __init__(
        self,
        service: APIService,
        signer: RequestSigner,
        provider: TokenProvider,
    ) -> None:
        self.service = service
        self._signer = signer
        self._provider = provider

    # ------------------------------------------------------------------ #
    # Public entry points
    # ------------------------------------------------------------------ #

    async def execute(
        self,
        router: APIRouter,
        auth: Optional[AuthorizationRequirement] = None,
    ) -> Any:
        """Send *router* and return its decoded body.

        Args:
            router: The endpoint to call.
            auth: Overrides ``router.auth`` for this call.

        Raises:
            InvalidResponseError: Non-retryable status, or a retried one
                that failed again.
            UnauthorizedSessionError: The session could not be re-authorized.
            AuthorizationFailedError: The token could not be refreshed.
            NotLoggedInError: The request needs a token and there is none.
            TransportError: The network failed.
            DecodeError: The body did not match ``router.response_model``.
        """
        response = await self.fetch(router, auth)
        return self.service.decode(router, response)

    async def execute_with_headers(
        self,
        router: APIRouter,
        auth: Optional[AuthorizationRequirement] = None,
    ) -> tuple[Any, Any]:
        """Like :meth:`execute`, also returning headers decoded by ``router.header_model``."""
        response = await self.fetch(router, auth)
        return self.service.decode(router, response), router.decode_headers(response.headers)

    async def execute_headers(
        self,
        router: APIRouter,
        auth: Optional[AuthorizationRequirement] = None,
    ) -> Any:
        """Send *router* and return only its decoded headers."""
        response = await self.fetch(router, auth)
        return router.decode_headers(response.headers)

    async def execute_void(
        self,
        router: APIRouter,
        auth: Optional[AuthorizationRequirement] = None,
    ) -> None:
        """Send *router*, ignoring the body of a successful response."""
        await self.fetch(router, auth)

    async def fetch(
        self,
        router: APIRouter,
        auth: Optional[AuthorizationRequirement] = None,
    ) -> httpx.Response:
        """Send *router* under the retry policy and return the successful response."""
        requirement = auth if auth is not None else router.auth
        epoch = self._provider.epoch
        request = await self._sign(router, requirement, epoch)
        try:
            return await self.service.send(request)
        except TransportTimeoutError as exc:
            logger.info("%s %s timed out, retrying once", request.method, request.url)
            return await self._retry_transient(router, requirement, epoch, exc)
        except InvalidResponseError as exc:
            if exc.is_transient:
                logger.info(
                    "%s %s returned %d, retrying once",
                    request.method,
                    request.url,
                    exc.status_code,
                )
                return await self._retry_transient(router, requirement, epoch, exc)
            if exc.is_unauthorized and requirement is not AuthorizationRequirement.NONE:
                logger.info(
                    "%s %s was unauthorized, refreshing token and retrying once",
                    request.method,
                    request.url,
                )
                return await self._retry_unauthorized(router, requirement, epoch)
            raise

    # ------------------------------------------------------------------ #
    # Retry paths
    # ------------------------------------------------------------------ #

    async def _sign(
        self,
        router: APIRouter,
        requirement: AuthorizationRequirement,
        epoch: int,
    ) -> httpx.Request:
        request = self.service.build_request(router)
        try:
            return await self._signer.sign(request, requirement)
        except AuthorizationFailedError:
            self._end_session(router, epoch)
            raise

    async def _retry_transient(
        self,
        router: APIRouter,
        requirement: AuthorizationRequirement,
        epoch: int,
        first_failure: RouterkitError,
    ) -> httpx.Response:
        request = await self._sign(router, requirement, epoch)
        response = await self.service.send(request)
        logger.debug("Retry after %s succeeded", type(first_failure).__name__)
        return response

    async def _retry_unauthorized(
        self,
        router: APIRouter,
        requirement: AuthorizationRequirement,
        epoch: int,
    ) -> httpx.Response:
        try:
            request = await self._signer.sign_after_unauthorized(
                self.service.build_request(router), requirement
            )
            return await self.service.send(request)
        except RouterkitError as exc:
            if not self._end_session(router, epoch):
                raise
            raise UnauthorizedSessionError(exc) from exc

    def _end_session(self, router: APIRouter, epoch: int) -> bool:
        """Log out the session seen at *epoch*; False if it was already replaced."""
        if not self._provider.logout_if_current(epoch):
            logger.info(
                "Authorization failure on %s %s belongs to a session that has since changed",
                router.method.value,
                router.path,
            )
            return False
        logger.warning(
            "Ending session after authorization failure on %s %s",
            router.method.value,
            router.path,
        )
        self.service.observer.on_unauthorized_session_ended(router)
        return True
