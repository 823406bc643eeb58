"""Response classification and display.

:func:`classify_status` maps an HTTP status onto the
:class:`~routerkit.exceptions.InvalidResponseKind` the retry policy acts on:

=============  ======================  ==========================
Status         Kind                    Policy
=============  ======================  ==========================
2xx, 3xx       (success)               decode
400            ``BAD_REQUEST``         surface
401            ``UNAUTHORIZED``        force refresh, retry once
403            ``ACCESS_DENIED``       surface
404            ``NOT_FOUND``           surface
other 4xx      ``INTERNAL_ERROR``      surface
< 200, >= 500  ``INVALID_RESPONSE_CODE``  re-sign, retry once
=============  ======================  ==========================

:func:`format_api_response` bridges a finished response to the
:mod:`routerkit.output` system for the CLI.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from routerkit.exceptions import InvalidResponseError, InvalidResponseKind
from routerkit.output import get_output

_CLIENT_ERROR_KINDS = {
    400: InvalidResponseKind.BAD_REQUEST,
    401: InvalidResponseKind.UNAUTHORIZED,
    403: InvalidResponseKind.ACCESS_DENIED,
    404: InvalidResponseKind.NOT_FOUND,
}


def classify_status(status_code: int) -> Optional[InvalidResponseKind]:
    """Return the failure kind for *status_code*, or ``None`` for success."""
    if status_code < 200 or status_code > 499:
        return InvalidResponseKind.INVALID_RESPONSE_CODE
    if status_code < 400:
        return None
    return _CLIENT_ERROR_KINDS.get(status_code, InvalidResponseKind.INTERNAL_ERROR)


def _error_detail(response: httpx.Response) -> str:
    """Pull a short human-readable message out of an error body."""
    try:
        detail = response.json()
    except ValueError:
        return response.text[:200] if response.text else ""
    if isinstance(detail, dict):
        return str(
            detail.get("message") or detail.get("error") or detail.get("detail") or ""
        )
    return str(detail)


def raise_for_status(response: httpx.Response) -> None:
    """Raise :class:`~routerkit.exceptions.InvalidResponseError` unless the status is a success.

    The response body must already have been read.
    """
    kind = classify_status(response.status_code)
    if kind is None:
        return
    msg = _error_detail(response)
    prefix = f"HTTP {response.status_code}"
    raise InvalidResponseError(
        kind,
        response.status_code,
        body=response.content,
        message=f"{prefix}: {msg}" if msg else prefix,
    )


def format_api_response(response: httpx.Response) -> None:
    """Print a response through the global output system.

    Writes the status line (e.g. ``HTTP 200 OK``) to stderr via
    :meth:`~routerkit.output.OutputManager.info` and renders the body to
    stdout via :meth:`~routerkit.output.OutputManager.format_response`.
    """
    output = get_output()
    output.info(f"HTTP {response.status_code} {response.reason_phrase or ''}")
    data = extract_response_data(response)
    if data is not None:
        output.format_response(data)


def extract_response_data(response: httpx.Response) -> Any:
    """Return the body as JSON when possible, else as text, or ``None`` when empty."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text
