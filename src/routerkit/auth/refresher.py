"""Token refresh strategies.

A :class:`TokenRefresher` answers two questions for the
:class:`~routerkit.auth.provider.TokenProvider`: does this token need
refreshing yet, and what is its replacement. The provider guarantees that
:meth:`TokenRefresher.refresh` is never running twice at once for the same
session, so implementations need no locking of their own.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Callable, Optional

from routerkit.client.service import APIService
from routerkit.models import (
    DEFAULT_REFRESH_LOOKAHEAD,
    HTTPMethod,
    RefreshConfig,
    Token,
    TokenResponse,
    utcnow,
)
from routerkit.router import RefreshTokenRouter

logger = logging.getLogger(__name__)


class TokenRefresher(ABC):
    """Decides when a token is stale and exchanges it for a new one.

    Args:
        lookahead: Tokens expiring within this window count as stale.
    """

    def __init__(self, lookahead: timedelta = DEFAULT_REFRESH_LOOKAHEAD) -> None:
        self.lookahead = lookahead

    def needs_refresh(self, token: Token, now: datetime) -> bool:
        """True when *token* expires before ``now + lookahead``."""
        return token.needs_refresh(now, self.lookahead)

    @abstractmethod
    async def refresh(self, token: Token) -> Token:
        """Exchange *token* for a fresh one.

        Args:
            token: The current token. Callers guarantee it carries a refresh
                credential.

        Returns:
            The replacement token.

        Raises:
            Exception: Any failure; the provider wraps it in
                :class:`~routerkit.exceptions.AuthorizationFailedError`.
        """


class RouterTokenRefresher(TokenRefresher):
    """Refreshes by calling a refresh endpoint with the refresh credential as bearer.

    The endpoint is expected to answer with a body accepted by
    :class:`~routerkit.models.TokenResponse`. A response without a new
    refresh credential keeps the previous one.

    Args:
        service: Single-attempt service used to reach the endpoint.
        path: Path of the refresh endpoint.
        method: HTTP method of the refresh endpoint.
        lookahead: See :class:`TokenRefresher`.
        clock: Source of the current time, used to turn ``expires_in`` into
            an absolute expiry.
    """

    def __init__(
        self,
        service: APIService,
        path: str = "/auth/refresh",
        method: HTTPMethod = HTTPMethod.POST,
        lookahead: timedelta = DEFAULT_REFRESH_LOOKAHEAD,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        super().__init__(lookahead)
        self._service = service
        self._path = path
        self._method = method
        self._clock = clock or utcnow

    @classmethod
    def from_config(
        cls,
        service: APIService,
        config: RefreshConfig,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> "RouterTokenRefresher":
        return cls(
            service,
            path=config.path,
            method=config.method,
            lookahead=timedelta(seconds=config.lookahead_seconds),
            clock=clock,
        )

    async def refresh(self, token: Token) -> Token:
        router = RefreshTokenRouter.for_token(token, self._path, self._method)
        logger.debug("Refreshing token via %s %s", router.method.value, router.path)
        body: TokenResponse = await self._service.execute(router)
        return body.to_token(self._clock(), previous=token)
