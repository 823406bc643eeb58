"""Request command -- send one request through the signed pipeline.

``routerkit request METHOD PATH`` builds an ad-hoc
:class:`~routerkit.router.APIRouter`, runs it through the active profile's
:class:`~routerkit.session.Session` (signing, refresh, bounded retry) and
prints the response body. ``--curl`` prints the signed request instead of
sending it.

Example::

    routerkit request GET /users --query page=2
    routerkit request POST /users --data '{"name": "Ada"}'
    routerkit request GET /health --auth none --curl
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Optional

import typer

from routerkit.commands import build_observer, require_profile
from routerkit.output import error, print_data


def _parse_pairs(values: Optional[list[str]], sep: str, what: str) -> dict[str, str]:
    pairs: dict[str, str] = {}
    for raw in values or []:
        key, found, value = raw.partition(sep)
        if not found or not key.strip():
            raise typer.BadParameter(f"Expected {what}, got {raw!r}")
        pairs[key.strip()] = value.strip()
    return pairs


def _parse_body(data: Optional[str]) -> Any:  # noqa: ANN401
    """Parse *data* as JSON if possible, returning the raw string on failure."""
    if data is None:
        return None
    try:
        return json.loads(data)
    except json.JSONDecodeError:
        return data


def request_command(
    ctx: typer.Context,
    method: str = typer.Argument(help="HTTP method, e.g. GET or POST."),
    path: str = typer.Argument(help="Path relative to the profile's base URL."),
    auth: str = typer.Option(
        "access", "--auth", help="Credential to attach: none, access, refresh."
    ),
    query: Optional[list[str]] = typer.Option(
        None, "--query", help="Query parameter key=value (repeatable)."
    ),
    header: Optional[list[str]] = typer.Option(
        None, "--header", "-H", help="Header 'Name: value' (repeatable)."
    ),
    data: Optional[str] = typer.Option(None, "--data", "-d", help="Request body (JSON or text)."),
    curl: bool = typer.Option(False, "--curl", help="Print the signed request as cURL, don't send."),
) -> None:
    """Send a request to the active profile's API.

    Raises:
        typer.Exit: Code 2 for bad arguments, otherwise the failing
            error's exit code.
    """
    from routerkit.client.response import format_api_response
    from routerkit.curl import to_curl
    from routerkit.exceptions import RouterkitError
    from routerkit.models import AuthorizationRequirement, ContentType, HTTPMethod
    from routerkit.router import APIRouter
    from routerkit.session import Session

    try:
        http_method = HTTPMethod(method.upper())
        requirement = AuthorizationRequirement(auth.lower())
    except ValueError as exc:
        error(str(exc))
        raise typer.Exit(code=2) from None

    profile = require_profile(ctx)
    body = _parse_body(data)
    router = APIRouter(
        path=path,
        method=http_method,
        auth=requirement,
        headers=_parse_pairs(header, ":", "'Name: value'"),
        query=_parse_pairs(query, "=", "key=value"),
        body=body,
        content_type=ContentType.TEXT if isinstance(body, str) else ContentType.JSON,
    )

    async def _run():  # noqa: ANN202
        async with Session(profile, observer=build_observer(ctx)) as session:
            if curl:
                return await session.signed_request(router)
            return await session.fetch(router)

    try:
        result = asyncio.run(_run())
    except RouterkitError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    if curl:
        print_data(to_curl(result, pretty=True))
    else:
        format_api_response(result)
