"""Client configuration and imperative settings-file loading helpers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import tomllib

from pydantic import BaseModel, ConfigDict, Field

from .paths import DEFAULT_ENV_PREFIX, get_zowe_dir

CONFIG_FILE = Path.home() / ".config" / "zoweprofiles" / "config.toml"

DEFAULT_CREDENTIAL_SERVICE = "Zowe-Plugin"
CREDENTIAL_DISPLAY_NAME = "Zowe Explorer"

CREDENTIAL_MANAGER_KEYS = ("CredentialManager", "credential-manager")


class AppConfig(BaseModel):
    """Shape of the client configuration file."""

    credential_key: str | None = None
    zowe_home: str | None = None
    env_prefix: str = DEFAULT_ENV_PREFIX

    @property
    def credential_service(self) -> str:
        """Service namespace used when storing secrets in the OS credential store."""

        return self.credential_key or DEFAULT_CREDENTIAL_SERVICE

    def home_dir(self) -> Path:
        return get_zowe_dir(self.zowe_home, env_prefix=self.env_prefix)

    def with_credential_key(self, key: str | None) -> AppConfig:
        """Return a copy with the credential service namespace updated."""

        return self.model_copy(update={"credential_key": key})


class ImperativeSettings(BaseModel):
    """Subset of ``settings/imperative.json`` consulted for secure storage."""

    model_config = ConfigDict(extra="allow")

    overrides: dict[str, Any] = Field(default_factory=dict)

    def credential_manager(self) -> str | None:
        """Name of the overriding credential manager, if one is configured."""

        for key in CREDENTIAL_MANAGER_KEYS:
            value = self.overrides.get(key)
            if isinstance(value, str) and value:
                return value
        return None


def load_config() -> AppConfig:
    """Load configuration from disk; fall back to defaults if missing."""

    try:
        data = _read_config_file()
    except FileNotFoundError:
        return AppConfig()
    except (tomllib.TOMLDecodeError, OSError):
        return AppConfig()
    return AppConfig(**data)


def save_config(config: AppConfig) -> None:
    """Persist configuration to disk."""

    CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    lines: list[str] = [f"env_prefix = {_toml_string(config.env_prefix)}"]
    if config.credential_key:
        lines.append(f"credential_key = {_toml_string(config.credential_key)}")
    if config.zowe_home:
        lines.append(f"zowe_home = {_toml_string(config.zowe_home)}")
    CONFIG_FILE.write_text("\n".join(lines) + "\n")


def load_imperative_settings(path: Path) -> ImperativeSettings | None:
    """Parse the imperative settings file; ``None`` when it does not exist.

    Decoding and validation errors propagate to the caller.
    """

    if not path.exists():
        return None
    raw = json.loads(path.read_text(encoding="utf-8"))
    return ImperativeSettings.model_validate(raw)


def _toml_string(value: str) -> str:
    # JSON string escapes are a subset of TOML basic-string escapes.
    return json.dumps(value)


def _read_config_file() -> dict[str, object]:
    with CONFIG_FILE.open("rb") as handle:
        raw = tomllib.load(handle)
    data: dict[str, object] = {}
    if isinstance(raw, dict):
        for key in ("credential_key", "zowe_home", "env_prefix"):
            value = raw.get(key)
            if isinstance(value, str) and value:
                data[key] = value
    return data


__all__ = [
    "AppConfig",
    "CONFIG_FILE",
    "CREDENTIAL_DISPLAY_NAME",
    "CREDENTIAL_MANAGER_KEYS",
    "DEFAULT_CREDENTIAL_SERVICE",
    "ImperativeSettings",
    "load_config",
    "load_imperative_settings",
    "save_config",
]
