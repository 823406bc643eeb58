"""Exception hierarchy for routerkit.

All exceptions inherit from :class:`RouterkitError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`routerkit.exit_codes`.
The top-level error handler in :func:`routerkit.app.main` catches
``RouterkitError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    RouterkitError (exit 1)
    +-- InvalidUsageError           (exit 2)
    +-- ConfigError                 (exit 1)
    +-- RouterError                 (exit 2)
    +-- AuthError                   (exit 3)
    |   +-- NotLoggedInError
    |   +-- TokenNotRefreshableError
    |   +-- AuthorizationFailedError
    |   +-- UnauthorizedSessionError
    +-- InvalidResponseError        (exit 3/4/5 depending on kind)
    +-- TransportError              (exit 6)
    |   +-- TransportTimeoutError
    +-- DecodeError                 (exit 7)
"""

from __future__ import annotations

import enum
from typing import Optional

from routerkit.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_DECODE_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)


class RouterkitError(Exception):
    """Base exception for all routerkit errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`routerkit.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(RouterkitError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(RouterkitError):
    """Raised for configuration problems (missing profiles, invalid JSON, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE


class RouterError(RouterkitError):
    """Raised when a router cannot be turned into a request (no hostname, malformed URL, unencodable body)."""

    exit_code = EXIT_INVALID_USAGE


# --- Authentication ---


class AuthError(RouterkitError):
    """Base class for session and token failures."""

    exit_code = EXIT_AUTH_FAILURE


class NotLoggedInError(AuthError):
    """Raised when a token is required but the store holds none."""

    def __init__(self, message: str = "Not logged in"):
        super().__init__(message)


class TokenNotRefreshableError(AuthError):
    """Raised when a refresh is needed but the token carries no refresh credential."""

    def __init__(self, message: str = "Token has no refresh credential and cannot be refreshed"):
        super().__init__(message)


class AuthorizationFailedError(AuthError):
    """Raised when a token refresh failed.

    Every caller waiting on the same refresh receives an instance wrapping
    the same underlying failure.

    Attributes:
        cause: The exception raised by the :class:`~routerkit.auth.refresher.TokenRefresher`.
    """

    def __init__(self, cause: BaseException, message: str | None = None):
        super().__init__(message or f"Token refresh failed: {cause}")
        self.cause = cause


class UnauthorizedSessionError(AuthError):
    """Raised when a request stayed unauthorized after a forced refresh.

    The session has already been logged out by the time this propagates.

    Attributes:
        cause: The failure observed on the unauthorized retry path.
    """

    def __init__(self, cause: BaseException, message: str | None = None):
        super().__init__(message or f"Session is no longer authorized: {cause}")
        self.cause = cause


# --- Responses ---


class InvalidResponseKind(str, enum.Enum):
    """Classification of a non-success HTTP status."""

    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    ACCESS_DENIED = "access_denied"
    NOT_FOUND = "not_found"
    INTERNAL_ERROR = "internal_error"
    INVALID_RESPONSE_CODE = "invalid_response_code"


_KIND_EXIT_CODES = {
    InvalidResponseKind.UNAUTHORIZED: EXIT_AUTH_FAILURE,
    InvalidResponseKind.ACCESS_DENIED: EXIT_AUTH_FAILURE,
    InvalidResponseKind.NOT_FOUND: EXIT_NOT_FOUND,
}


class InvalidResponseError(RouterkitError):
    """Raised when the server answered with a status the caller cannot use.

    Attributes:
        kind: The :class:`InvalidResponseKind` derived from the status.
        status_code: The HTTP status code.
        body: The raw response body, kept for diagnostics.
    """

    def __init__(
        self,
        kind: InvalidResponseKind,
        status_code: int,
        body: bytes = b"",
        message: Optional[str] = None,
    ):
        super().__init__(
            message or f"HTTP {status_code} ({kind.value})",
            exit_code=_KIND_EXIT_CODES.get(kind, EXIT_SERVER_ERROR),
        )
        self.kind = kind
        self.status_code = status_code
        self.body = body

    @property
    def is_transient(self) -> bool:
        """True for statuses outside 200-499, which are retried once."""
        return self.kind is InvalidResponseKind.INVALID_RESPONSE_CODE

    @property
    def is_unauthorized(self) -> bool:
        return self.kind is InvalidResponseKind.UNAUTHORIZED


# --- Transport ---


class TransportError(RouterkitError):
    """Raised on network-level failures (DNS resolution, connection refused, protocol errors)."""

    exit_code = EXIT_CONNECTION_ERROR


class TransportTimeoutError(TransportError):
    """Raised when the transport gave up waiting for the server. Retried once."""


class DecodeError(RouterkitError):
    """Raised when a response body or headers do not match the expected model."""

    exit_code = EXIT_DECODE_ERROR
