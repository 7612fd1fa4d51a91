"""Resolution of the Zowe home directory and the folders beneath it.

The home directory is taken from, in order: an explicit override, the
``<PREFIX>_CLI_HOME`` environment variable, then ``~/.zowe``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

DEFAULT_ENV_PREFIX = "ZOWE"
DEFAULT_HOME_NAME = ".zowe"


def default_home() -> Path:
    """Home used when nothing else has configured one."""

    return Path.home() / DEFAULT_HOME_NAME


def home_env_variable(env_prefix: str = DEFAULT_ENV_PREFIX) -> str:
    return f"{env_prefix}_CLI_HOME"


def get_zowe_dir(
    override: str | os.PathLike[str] | None = None,
    *,
    env_prefix: str = DEFAULT_ENV_PREFIX,
    environ: Mapping[str, str] | None = None,
) -> Path:
    """Return the Zowe home directory without creating it."""

    if override:
        return Path(override).expanduser()
    env = os.environ if environ is None else environ
    value = env.get(home_env_variable(env_prefix))
    if value:
        return Path(value).expanduser()
    return default_home()


def get_profiles_dir(home: Path) -> Path:
    """Profile root: ``<home>/profiles``."""

    return home / "profiles"


def get_settings_file(home: Path) -> Path:
    """Imperative settings: ``<home>/settings/imperative.json``."""

    return home / "settings" / "imperative.json"


__all__ = [
    "DEFAULT_ENV_PREFIX",
    "DEFAULT_HOME_NAME",
    "default_home",
    "get_profiles_dir",
    "get_settings_file",
    "get_zowe_dir",
    "home_env_variable",
]
