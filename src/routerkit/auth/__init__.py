"""Session authentication for routerkit.

- :class:`TokenStore` -- holds the current :class:`~routerkit.models.Token`
  (:class:`MemoryTokenStore`, :class:`FileTokenStore`).
- :class:`TokenRefresher` -- decides staleness and exchanges a token for a
  new one (:class:`RouterTokenRefresher` calls a refresh endpoint).
- :class:`TokenProvider` -- hands out access credentials with at most one
  refresh in flight.
- :class:`RequestSigner` -- attaches the bearer credential a request needs.

Typical usage::

    from routerkit.auth import MemoryTokenStore, RequestSigner, TokenProvider

    provider = TokenProvider(MemoryTokenStore(token), refresher)
    signed = await RequestSigner(provider).sign(request, AuthorizationRequirement.ACCESS_TOKEN)
"""

from routerkit.auth.token_store import FileTokenStore, MemoryTokenStore, TokenStore
from routerkit.auth.refresher import RouterTokenRefresher, TokenRefresher
from routerkit.auth.provider import TokenProvider
from routerkit.auth.signer import RequestSigner

__all__ = [
    "FileTokenStore",
    "MemoryTokenStore",
    "RequestSigner",
    "RouterTokenRefresher",
    "TokenProvider",
    "TokenRefresher",
    "TokenStore",
]
