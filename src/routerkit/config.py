"""Where routerkit keeps its files, and how a profile is chosen.

Layout on Linux/BSD (XDG)::

    $XDG_CONFIG_HOME/routerkit/config.json          GlobalConfig
    $XDG_CONFIG_HOME/routerkit/profiles/<name>.json Profile
    $XDG_DATA_HOME/routerkit/tokens/<name>.json     session token (0600)
    $XDG_DATA_HOME/routerkit/logs/                  crash logs

macOS and Windows use ``~/.routerkit/`` for config and
``~/.routerkit/data/`` for data. Every write goes through
:func:`atomic_write`.
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from routerkit.exceptions import ConfigError
from routerkit.models import GlobalConfig, Profile

ENV_PROFILE = "ROUTERKIT_PROFILE"
ENV_BASE_URL = "ROUTERKIT_BASE_URL"

_APP_DIR = "routerkit"
_PROJECT_FILE = "routerkit.json"

_M = TypeVar("_M", bound=BaseModel)


# --- Directories ---


def _is_xdg_platform() -> bool:
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(xdg_var: str, xdg_default: str, fallback: str) -> Path:
    """Return (and create) an application directory.

    Args:
        xdg_var: XDG variable consulted on XDG platforms.
        xdg_default: Home-relative default when *xdg_var* is unset.
        fallback: Home-relative directory used on other platforms.
    """
    if _is_xdg_platform():
        root = os.environ.get(xdg_var) or str(Path.home() / xdg_default)
        path = Path(root) / _APP_DIR
    else:
        path = Path.home() / fallback
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    return _app_dir("XDG_CONFIG_HOME", ".config", f".{_APP_DIR}")


def get_data_dir() -> Path:
    """Directory for session tokens and crash logs."""
    return _app_dir("XDG_DATA_HOME", ".local/share", f".{_APP_DIR}/data")


def get_profiles_dir() -> Path:
    path = get_config_dir() / "profiles"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_tokens_dir() -> Path:
    path = get_data_dir() / "tokens"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Files ---


def atomic_write(path: Path, data: str, mode: Optional[int] = None) -> None:
    """Replace *path* with *data* without ever exposing a partial file.

    The text goes to a temp file next to *path*, which is then renamed over
    it. With *mode* set the temp file is chmod-ed before anything is
    written, so a secret is never readable with looser permissions.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = tempfile.NamedTemporaryFile(
        "w",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
        encoding="utf-8",
    )
    try:
        with tmp:
            if mode is not None:
                os.chmod(tmp.name, mode)
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp.name, path)
    except BaseException:
        try:
            os.unlink(tmp.name)
        except OSError:
            pass
        raise


def _read_model(path: Path, model: type[_M], what: str) -> _M:
    try:
        return model.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise ConfigError(f"Invalid {what} at {path}: {exc}") from exc


def _write_model(path: Path, value: BaseModel) -> None:
    atomic_write(path, json.dumps(value.model_dump(mode="json"), indent=2) + "\n")


# --- Global config ---


def _global_config_path() -> Path:
    return get_config_dir() / "config.json"


def load_global_config() -> GlobalConfig:
    """Load ``config.json``, or defaults when it does not exist.

    Raises:
        ConfigError: The file is not valid JSON or does not validate.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    return _read_model(path, GlobalConfig, "global config")


def save_global_config(config: GlobalConfig) -> None:
    _write_model(_global_config_path(), config)


# --- Profiles ---


def _profile_path(name: str) -> Path:
    return get_profiles_dir() / f"{name}.json"


def list_profiles() -> list[str]:
    return sorted(p.stem for p in get_profiles_dir().glob("*.json") if p.is_file())


def profile_exists(name: str) -> bool:
    return _profile_path(name).is_file()


def load_profile(name: str) -> Profile:
    """Load profile *name*.

    Raises:
        ConfigError: The profile does not exist or does not validate.
    """
    path = _profile_path(name)
    if not path.is_file():
        raise ConfigError(f"Profile '{name}' not found at {path}")
    return _read_model(path, Profile, f"profile '{name}'")


def save_profile(profile: Profile) -> None:
    _write_model(_profile_path(profile.name), profile)


def delete_profile(name: str) -> None:
    path = _profile_path(name)
    if not path.is_file():
        raise ConfigError(f"Profile '{name}' not found at {path}")
    path.unlink()


def load_project_config() -> Optional[dict[str, Any]]:
    """Read ``./routerkit.json``, which may pin ``default_profile`` for a repository."""
    path = Path.cwd() / _PROJECT_FILE
    if not path.is_file():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc


# --- Resolution ---


def _active_profile_name(cli_profile: Optional[str], global_cfg: GlobalConfig) -> Optional[str]:
    if cli_profile is not None:
        return cli_profile
    if os.environ.get(ENV_PROFILE):
        return os.environ[ENV_PROFILE]
    project = load_project_config() or {}
    if project.get("default_profile"):
        return project["default_profile"]
    if global_cfg.default_profile:
        return global_cfg.default_profile
    if global_cfg.auto_select_single_profile:
        names = list_profiles()
        if len(names) == 1:
            return names[0]
    return None


def resolve_config(
    cli_profile: Optional[str] = None,
    cli_base_url: Optional[str] = None,
    cli_format: Optional[str] = None,
) -> tuple[GlobalConfig, Optional[Profile]]:
    """Pick the active profile and apply overrides.

    The profile name comes from the first of: ``--profile``,
    ``$ROUTERKIT_PROFILE``, ``./routerkit.json``, the global default, or the
    only profile on disk. The base URL may then be replaced by
    ``--base-url`` or ``$ROUTERKIT_BASE_URL`` (in that order).

    Returns:
        ``(global_config, profile)``; the profile is ``None`` when no name
        could be resolved.

    Raises:
        ConfigError: The resolved profile cannot be loaded.
    """
    global_cfg = load_global_config()
    if cli_format is not None:
        global_cfg.output.format = cli_format

    name = _active_profile_name(cli_profile, global_cfg)
    if name is None:
        return global_cfg, None

    profile = load_profile(name)
    base_url = cli_base_url or os.environ.get(ENV_BASE_URL)
    if base_url:
        profile.base_url = base_url
    return global_cfg, profile


# --- Credentials ---


def resolve_credential(source: str) -> str:
    """Read a secret from ``env:VAR``, ``file:PATH``, ``prompt`` or ``value:TEXT``.

    Raises:
        ConfigError: The source is unknown or yields nothing.
    """
    kind, _, arg = source.partition(":")
    if kind == "env" and arg:
        if arg not in os.environ:
            raise ConfigError(f"Environment variable '{arg}' is not set (source: {source})")
        return os.environ[arg]
    if kind == "file" and arg:
        path = Path(arg).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path}")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc
    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError("Cannot prompt for a credential: stdin is not a TTY")
        return getpass.getpass("Credential: ")
    if kind == "value":
        if not arg:
            raise ConfigError("Empty literal credential (source: value:)")
        return arg
    raise ConfigError(f"Unknown credential source: {source}")
