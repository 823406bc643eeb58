"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~routerkit.exceptions.RouterkitError` subclass.
Shell wrappers can inspect the exit code of the ``routerkit`` command to
tell an expired session apart from an unreachable host without parsing
stderr.

Example::

    $ routerkit request GET /me
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- the session could not be refreshed
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""Authentication or authorisation failed, or the session ended."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The remote API rejected the request or answered with an unexpected status."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_DECODE_ERROR = 7
"""A response body or header set could not be decoded into the expected model."""
