"""Config commands -- manage API profiles.

Provides the ``routerkit config`` sub-command group. A profile names one
API host plus its refresh endpoint; the session token for it is managed
separately with ``routerkit auth``.

Typical workflow::

    routerkit config add prod --base-url https://api.example.com --default
    routerkit config list
    routerkit config show prod
"""

from __future__ import annotations

from typing import Optional

import typer

from routerkit.output import error, format_response, get_output, info, success, suggest


config_app = typer.Typer(no_args_is_help=True)


def _parse_header(raw: str) -> tuple[str, str]:
    name, sep, value = raw.partition(":")
    if not sep or not name.strip():
        raise typer.BadParameter(f"Expected 'Name: value', got {raw!r}")
    return name.strip(), value.strip()


@config_app.command("add")
def config_add(
    name: str = typer.Argument(help="Profile name."),
    base_url: str = typer.Option(..., "--base-url", "-u", help="Scheme and host of the API."),
    refresh_path: str = typer.Option(
        "/auth/refresh", "--refresh-path", help="Path of the token refresh endpoint."
    ),
    refresh_method: str = typer.Option(
        "POST", "--refresh-method", help="HTTP method of the refresh endpoint."
    ),
    lookahead: int = typer.Option(
        300, "--lookahead", help="Refresh tokens expiring within this many seconds."
    ),
    timeout: float = typer.Option(30, "--timeout", help="Request timeout in seconds."),
    no_verify_ssl: bool = typer.Option(
        False, "--no-verify-ssl", help="Skip TLS certificate verification."
    ),
    header: Optional[list[str]] = typer.Option(
        None, "--header", "-H", help="Default header 'Name: value' (repeatable)."
    ),
    make_default: bool = typer.Option(
        False, "--default", help="Make this the default profile."
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing profile."),
) -> None:
    """Create a profile.

    Raises:
        typer.Exit: With code 2 if the profile exists (without ``--force``)
            or the options do not validate.

    Example::

        routerkit config add prod --base-url https://api.example.com -H "X-Client: cli"
    """
    from pydantic import ValidationError

    from routerkit.config import load_global_config, profile_exists, save_global_config, save_profile
    from routerkit.models import Profile

    if profile_exists(name) and not force:
        error(f'Profile "{name}" already exists.')
        suggest("Use --force to overwrite it.")
        raise typer.Exit(code=2)

    try:
        profile = Profile.model_validate(
            {
                "name": name,
                "base_url": base_url,
                "refresh": {
                    "path": refresh_path,
                    "method": refresh_method.upper(),
                    "lookahead_seconds": lookahead,
                },
                "request": {"timeout": timeout, "verify_ssl": not no_verify_ssl},
                "default_headers": dict(_parse_header(h) for h in header or []),
            }
        )
    except ValidationError as exc:
        error(f"Invalid profile: {exc}")
        raise typer.Exit(code=2) from None

    save_profile(profile)
    success(f'Profile "{name}" saved.')
    if make_default:
        config = load_global_config()
        config.default_profile = name
        save_global_config(config)
        info(f'"{name}" is now the default profile.')
    suggest(f"Log in: routerkit --profile {name} auth login --access env:API_TOKEN")


@config_app.command("list")
def config_list() -> None:
    """List profiles, marking the default one."""
    from routerkit.config import list_profiles, load_global_config, load_profile

    names = list_profiles()
    if not names:
        info("No profiles configured.")
        return
    default = load_global_config().default_profile
    rows = []
    for profile_name in names:
        profile = load_profile(profile_name)
        rows.append([profile_name, profile.base_url, "*" if profile_name == default else ""])
    get_output().print_table(["Name", "Base URL", "Default"], rows, title="Profiles")


@config_app.command("show")
def config_show(
    name: str = typer.Argument(help="Profile name."),
) -> None:
    """Show a profile's settings."""
    from routerkit.config import load_profile
    from routerkit.exceptions import ConfigError

    try:
        profile = load_profile(name)
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=2) from None
    format_response(profile.model_dump(mode="json"))


@config_app.command("remove")
def config_remove(
    name: str = typer.Argument(help="Profile name."),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Delete a profile and its stored session token."""
    from routerkit.auth.token_store import FileTokenStore
    from routerkit.config import delete_profile, load_global_config, profile_exists, save_global_config

    if not profile_exists(name):
        error(f'Profile "{name}" not found.')
        raise typer.Exit(code=2)
    if not force and not typer.confirm(f'Remove profile "{name}"?'):
        info("Cancelled.")
        raise typer.Exit()

    delete_profile(name)
    FileTokenStore(name).clear()
    config = load_global_config()
    if config.default_profile == name:
        config.default_profile = None
        save_global_config(config)
    success(f'Profile "{name}" removed.')


@config_app.command("use")
def config_use(
    name: str = typer.Argument(help="Profile name."),
) -> None:
    """Make *name* the default profile."""
    from routerkit.config import load_global_config, profile_exists, save_global_config

    if not profile_exists(name):
        error(f'Profile "{name}" not found.')
        raise typer.Exit(code=2)
    config = load_global_config()
    config.default_profile = name
    save_global_config(config)
    success(f'Default profile set to "{name}".')
