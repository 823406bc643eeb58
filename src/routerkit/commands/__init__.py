"""Built-in CLI sub-commands for routerkit.

* :mod:`~routerkit.commands.config` -- create, inspect and select profiles.
* :mod:`~routerkit.commands.auth` -- store, inspect, refresh and clear the
  session token of a profile.
* :mod:`~routerkit.commands.request` -- send one request through the
  signed, retrying pipeline.

Multi-command groups export a :class:`typer.Typer` sub-application; single
commands export a plain callback registered on the root app.
"""

from __future__ import annotations

from typing import Optional

import typer

from routerkit.models import Profile
from routerkit.output import error, suggest


def require_profile(ctx: typer.Context) -> Profile:
    """Resolve the active profile from ``--profile``/``--base-url`` and config.

    Raises:
        typer.Exit: With code 2 if no profile can be resolved or loaded.
    """
    from routerkit.config import resolve_config
    from routerkit.exceptions import ConfigError

    obj = ctx.obj or {}
    cli_profile: Optional[str] = obj.get("profile")
    cli_base_url: Optional[str] = obj.get("base_url")
    try:
        _, profile = resolve_config(cli_profile=cli_profile, cli_base_url=cli_base_url)
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=2) from None
    if profile is None:
        error("No active profile.")
        suggest("Create one: routerkit config add NAME --base-url https://api.example.com")
        raise typer.Exit(code=2)
    return profile


def build_observer(ctx: typer.Context):  # noqa: ANN201
    """Return an observer mirroring each attempt to ``--verbose`` output, or ``None``."""
    from routerkit.client.events import LoggingEventObserver
    from routerkit.output import debug

    obj = ctx.obj or {}
    if not obj.get("verbose"):
        return None
    return LoggingEventObserver(emit=debug)
