"""Render an :class:`httpx.Request` as a ``curl`` command line.

Used by ``routerkit request --curl`` to show exactly what would be sent,
signature included, so a request can be replayed outside the library.
"""

from __future__ import annotations

import shlex

import httpx

_SKIPPED_HEADERS = {"host", "content-length"}


def to_curl(request: httpx.Request, pretty: bool = False) -> str:
    """Return a shell-quoted ``curl`` invocation equivalent to *request*.

    Args:
        request: The request to render. Its body must already be in memory.
        pretty: Put each option on its own continuation line.

    Returns:
        The command as a single string.
    """
    parts = ["curl"]
    if request.method != "GET":
        parts.append(f"-X {request.method}")
    for name, value in request.headers.items():
        if name.lower() in _SKIPPED_HEADERS:
            continue
        parts.append(f"-H {shlex.quote(f'{name}: {value}')}")
    body = request.read()
    if body:
        parts.append(f"-d {shlex.quote(body.decode('utf-8', errors='replace'))}")
    parts.append(shlex.quote(str(request.url)))
    separator = " \\\n\t" if pretty else " "
    return separator.join(parts)
