"""Session token provider with single-flight refresh.

:class:`TokenProvider` is the only writer of a
:class:`~routerkit.auth.token_store.TokenStore`. It hands out the current
access credential, refreshing it first when it is about to expire or when
the caller has just seen a 401, and guarantees that at most one refresh is
in flight per provider no matter how many requests ask at once.

Concurrency model
-----------------
The provider belongs to a single asyncio event loop. The section that
reads the stored token and decides to start a refresh contains no
``await``, so no other task can interleave with it; the refresh itself
runs as one :class:`asyncio.Task` that every concurrent caller awaits.
Callers await it through :func:`asyncio.shield`, so cancelling one
request never cancels the refresh the others are waiting on.

A session epoch is bumped on every :meth:`TokenProvider.logout` and
:meth:`TokenProvider.set_token`. A refresh that finishes after the epoch
moved on is discarded: its token is not written and its waiters get
:class:`~routerkit.exceptions.NotLoggedInError`.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

from routerkit.auth.refresher import TokenRefresher
from routerkit.auth.token_store import TokenStore
from routerkit.exceptions import (
    AuthorizationFailedError,
    NotLoggedInError,
    TokenNotRefreshableError,
)
from routerkit.models import Token, utcnow

logger = logging.getLogger(__name__)


class TokenProvider:
    """Hands out access credentials and coordinates refreshes.

    Args:
        store: Holds the session token.
        refresher: Decides staleness and performs the refresh call.
        clock: Returns the current time as an aware UTC datetime.

    Example::

        provider = TokenProvider(MemoryTokenStore(token), refresher)
        access = await provider.get_access_token()
    """

    def __init__(
        self,
        store: TokenStore,
        refresher: TokenRefresher,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._store = store
        self._refresher = refresher
        self._clock = clock or utcnow
        self._refreshing: Optional[asyncio.Task[Token]] = None
        self._epoch = 0

    @property
    def store(self) -> TokenStore:
        return self._store

    @property
    def token(self) -> Optional[Token]:
        """The stored token, or ``None`` when logged out."""
        return self._store.read()

    @property
    def is_logged_in(self) -> bool:
        return self._store.is_logged_in

    @property
    def is_refreshing(self) -> bool:
        return self._refreshing is not None

    @property
    def epoch(self) -> int:
        """Session generation; changes on every :meth:`logout` and :meth:`set_token`."""
        return self._epoch

    # ------------------------------------------------------------------ #
    # Credentials
    # ------------------------------------------------------------------ #

    async def get_access_token(self, force_refresh: bool = False) -> str:
        """Return a usable access credential, refreshing first if needed.

        If a refresh is already in flight, waits for it and returns its
        result instead of starting another.

        Args:
            force_refresh: Refresh even if the token has not expired, e.g.
                after the server rejected it with 401.

        Raises:
            NotLoggedInError: No token is stored, or the session ended while
                the refresh was running.
            TokenNotRefreshableError: A refresh is needed but the token has
                no refresh credential.
            AuthorizationFailedError: The refresh call failed.
        """
        token = await self._current(force_refresh)
        return token.access_token

    async def get_refresh_token(self) -> str:
        """Return the stored refresh credential. Never triggers a refresh.

        Raises:
            NotLoggedInError: No token is stored.
            TokenNotRefreshableError: The token has no refresh credential.
        """
        token = self._store.read()
        if token is None:
            raise NotLoggedInError()
        if not token.refresh_token:
            raise TokenNotRefreshableError()
        return token.refresh_token

    async def refresh(self) -> Token:
        """Force a refresh (or join the one in flight) and return the new token."""
        return await self._current(force_refresh=True)

    # ------------------------------------------------------------------ #
    # Session lifecycle
    # ------------------------------------------------------------------ #

    def set_token(self, token: Token) -> None:
        """Log in with *token*, superseding any refresh still in flight."""
        self._epoch += 1
        self._refreshing = None
        self._store.write(token)

    def logout(self) -> None:
        """Clear the session.

        A refresh already running is not cancelled; its result is dropped
        when it completes.
        """
        self._epoch += 1
        if self._refreshing is not None:
            logger.debug("Logging out with a refresh in flight; its result will be discarded")
        self._refreshing = None
        self._store.clear()
        logger.info("Session logged out")

    def logout_if_current(self, epoch: int) -> bool:
        """Log out only if the session is still the one seen at *epoch*.

        Returns:
            True if this call ended the session, False if it had already
            been replaced or ended.
        """
        if epoch != self._epoch:
            logger.debug("Session changed since epoch %d; not logging out", epoch)
            return False
        self.logout()
        return True

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    async def _current(self, force_refresh: bool) -> Token:
        # No await until the task is published: this block is atomic.
        task = self._refreshing
        if task is None:
            token = self._store.read()
            if token is None:
                raise NotLoggedInError()
            if not force_refresh and not self._refresher.needs_refresh(token, self._clock()):
                return token
            if not token.can_refresh:
                raise TokenNotRefreshableError()
            task = self._start_refresh(token)
        return await asyncio.shield(task)

    def _start_refresh(self, token: Token) -> asyncio.Task[Token]:
        task = asyncio.get_running_loop().create_task(self._run_refresh(token, self._epoch))
        task.add_done_callback(_consume_exception)
        self._refreshing = task
        logger.debug("Token refresh started")
        return task

    async def _run_refresh(self, token: Token, epoch: int) -> Token:
        try:
            try:
                new_token = await self._refresher.refresh(token)
            except Exception as exc:
                logger.warning("Token refresh failed: %s", exc)
                raise AuthorizationFailedError(exc) from exc
            if epoch != self._epoch:
                logger.info("Discarding refreshed token: the session ended during the refresh")
                raise NotLoggedInError("Session ended while the token was being refreshed")
            self._store.write(new_token)
            logger.debug("Token refresh finished")
            return new_token
        finally:
            if self._refreshing is asyncio.current_task():
                self._refreshing = None


def _consume_exception(task: asyncio.Task[Token]) -> None:
    # Every waiter may have been cancelled; mark the failure as retrieved.
    if not task.cancelled():
        task.exception()
