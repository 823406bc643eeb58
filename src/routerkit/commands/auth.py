"""Auth commands -- manage the session token of the active profile.

Provides the ``routerkit auth`` sub-command group. Tokens are kept in the
profile's :class:`~routerkit.auth.token_store.FileTokenStore`; credentials
are read from the usual sources (``env:VAR``, ``file:/path``, ``prompt``,
``value:TEXT``) rather than from the command line.

Typical workflow::

    routerkit auth login --access env:API_TOKEN --refresh env:API_REFRESH --expires-in 3600
    routerkit auth status
    routerkit auth refresh
    routerkit auth logout
"""

from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import Optional

import typer

from routerkit.commands import build_observer, require_profile
from routerkit.output import error, get_output, info, success, suggest


auth_app = typer.Typer(no_args_is_help=True)


@auth_app.command("login")
def auth_login(
    ctx: typer.Context,
    access: str = typer.Option(
        "prompt", "--access", "-a", help="Access credential source: env:VAR, file:/path, prompt, value:TEXT."
    ),
    refresh: Optional[str] = typer.Option(
        None, "--refresh", "-r", help="Refresh credential source (same formats)."
    ),
    expires_in: Optional[int] = typer.Option(
        None, "--expires-in", help="Access credential lifetime in seconds."
    ),
) -> None:
    """Store a session token for the active profile.

    Raises:
        typer.Exit: With code 2 if a credential source cannot be resolved.
    """
    from routerkit.auth.token_store import FileTokenStore
    from routerkit.config import resolve_credential
    from routerkit.exceptions import ConfigError
    from routerkit.models import Token, utcnow

    profile = require_profile(ctx)
    try:
        access_token = resolve_credential(access)
        refresh_token = resolve_credential(refresh) if refresh else None
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=2) from None

    expires_at = utcnow() + timedelta(seconds=expires_in) if expires_in is not None else None
    FileTokenStore(profile.name).write(
        Token(access_token=access_token, refresh_token=refresh_token, expires_at=expires_at)
    )
    success(f'Logged in to "{profile.name}".')
    if refresh_token is None:
        info("No refresh credential stored; the session ends when the token expires.")


@auth_app.command("status")
def auth_status(ctx: typer.Context) -> None:
    """Show the session state of the active profile."""
    from routerkit.auth.token_store import FileTokenStore
    from routerkit.models import utcnow

    profile = require_profile(ctx)
    token = FileTokenStore(profile.name).read()
    if token is None:
        info(f'Not logged in to "{profile.name}".')
        suggest("Log in: routerkit auth login --access env:API_TOKEN")
        return

    now = utcnow()
    lookahead = timedelta(seconds=profile.refresh.lookahead_seconds)
    remaining = token.expires_in(now)
    rows = [
        ["Profile", profile.name],
        ["Access Token", _preview(token.access_token)],
        ["Refreshable", "yes" if token.can_refresh else "no"],
        ["Expires At", token.expires_at.isoformat() if token.expires_at else "never"],
        ["Expires In", f"{int(remaining.total_seconds())}s" if remaining is not None else "-"],
        ["Needs Refresh", "yes" if token.needs_refresh(now, lookahead) else "no"],
    ]
    get_output().print_table(["Field", "Value"], rows, title="Session")


@auth_app.command("refresh")
def auth_refresh(ctx: typer.Context) -> None:
    """Refresh the session token now through the profile's refresh endpoint.

    Raises:
        typer.Exit: With the error's exit code if the refresh fails.
    """
    from routerkit.exceptions import RouterkitError
    from routerkit.session import Session

    profile = require_profile(ctx)

    async def _run():  # noqa: ANN202
        async with Session(profile, observer=build_observer(ctx)) as session:
            return await session.tokens.refresh()

    try:
        token = asyncio.run(_run())
    except RouterkitError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    expiry = token.expires_at.isoformat() if token.expires_at else "never"
    success(f'Token refreshed for "{profile.name}" (expires {expiry}).')


@auth_app.command("logout")
def auth_logout(ctx: typer.Context) -> None:
    """Clear the session token of the active profile."""
    from routerkit.auth.token_store import FileTokenStore

    profile = require_profile(ctx)
    store = FileTokenStore(profile.name)
    if not store.is_logged_in:
        info(f'Not logged in to "{profile.name}".')
        return
    store.clear()
    success(f'Logged out of "{profile.name}".')


def _preview(secret: str) -> str:
    return secret[:8] + "..." if len(secret) > 8 else secret
