"""routerkit -- typed HTTP client with declarative routers and bearer-token sessions.

An :class:`~routerkit.router.APIRouter` describes an endpoint; a
:class:`~routerkit.client.executor.RequestExecutor` builds, signs, sends
and decodes it, refreshing the session token when it is about to expire
or when the server answers 401, and retrying each request at most once.

Typical usage::

    from routerkit import APIRouter, AuthorizationRequirement, Session

    async with Session(profile) as session:
        me = await session.execute(
            APIRouter("/me", auth=AuthorizationRequirement.ACCESS_TOKEN)
        )

Modules:
    router: Endpoint descriptions and request building.
    auth: Token storage, refresh coordination and request signing.
    client: Transport, single-attempt service and the retry policy.
    session: Facade wiring the pipeline from a profile.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration and profile management.
    exceptions: Exception hierarchy with exit-code mapping.
    app: Typer CLI entry point.
"""

__version__ = "0.1.0"

from routerkit.auth import (  # noqa: E402
    FileTokenStore,
    MemoryTokenStore,
    RequestSigner,
    RouterTokenRefresher,
    TokenProvider,
    TokenRefresher,
    TokenStore,
)
from routerkit.client import (  # noqa: E402
    APIService,
    EventObserver,
    HttpxTransport,
    LoggingEventObserver,
    Transport,
)
from routerkit.client.executor import RequestExecutor  # noqa: E402
from routerkit.exceptions import (  # noqa: E402
    AuthError,
    AuthorizationFailedError,
    DecodeError,
    InvalidResponseError,
    InvalidResponseKind,
    NotLoggedInError,
    RouterError,
    RouterkitError,
    TokenNotRefreshableError,
    TransportError,
    TransportTimeoutError,
    UnauthorizedSessionError,
)
from routerkit.models import (  # noqa: E402
    AuthorizationRequirement,
    ContentType,
    HTTPMethod,
    Profile,
    Token,
    TokenResponse,
)
from routerkit.router import APIRouter, RefreshTokenRouter  # noqa: E402
from routerkit.session import Session  # noqa: E402

__all__ = [
    "APIRouter",
    "APIService",
    "AuthError",
    "AuthorizationFailedError",
    "AuthorizationRequirement",
    "ContentType",
    "DecodeError",
    "EventObserver",
    "FileTokenStore",
    "HTTPMethod",
    "HttpxTransport",
    "InvalidResponseError",
    "InvalidResponseKind",
    "LoggingEventObserver",
    "MemoryTokenStore",
    "NotLoggedInError",
    "Profile",
    "RefreshTokenRouter",
    "RequestExecutor",
    "RequestSigner",
    "RouterError",
    "RouterTokenRefresher",
    "RouterkitError",
    "Session",
    "Token",
    "TokenNotRefreshableError",
    "TokenProvider",
    "TokenRefresher",
    "TokenResponse",
    "TokenStore",
    "Transport",
    "TransportError",
    "TransportTimeoutError",
    "UnauthorizedSessionError",
]
