"""Shared fixtures that lay out Zowe profile trees on disk."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import pytest
import yaml
from keyring.errors import PasswordDeleteError

from zoweprofiles.credentials import CredentialManagerFactory

ZOSMF_PROPERTIES: dict[str, Any] = {
    "host": {"type": "string", "optionDefinition": {"name": "host"}},
    "port": {"type": "number", "optionDefinition": {"name": "port"}},
    "user": {"type": "string", "secure": True},
    "password": {"type": "string", "secure": True},
    "rejectUnauthorized": {"type": "boolean"},
}

BASE_PROPERTIES: dict[str, Any] = {
    "host": {"type": "string"},
    "user": {"type": "string", "secure": True},
}


class ProfileTree:
    """Writes meta and profile YAML documents below ``<home>/profiles``."""

    def __init__(self, home: Path) -> None:
        self.home = home
        self.root = home / "profiles"
        self.root.mkdir(parents=True, exist_ok=True)

    def add_type(
        self,
        profile_type: str,
        properties: Mapping[str, Any] | None = None,
        *,
        default: str | None = None,
    ) -> None:
        type_dir = self.root / profile_type
        type_dir.mkdir(parents=True, exist_ok=True)
        meta = {
            "defaultProfile": default,
            "configuration": {
                "type": profile_type,
                "schema": {
                    "type": "object",
                    "title": f"{profile_type} profile",
                    "properties": dict(properties or {"host": {"type": "string"}}),
                },
            },
        }
        (type_dir / f"{profile_type}_meta.yaml").write_text(yaml.safe_dump(meta, sort_keys=False))

    def add_profile(self, profile_type: str, name: str, **attributes: Any) -> None:
        path = self.root / profile_type / f"{name}.yaml"
        path.write_text(yaml.safe_dump(attributes, sort_keys=False))

    def read_profile(self, profile_type: str, name: str) -> dict[str, Any]:
        return yaml.safe_load((self.root / profile_type / f"{name}.yaml").read_text())

    def read_meta(self, profile_type: str) -> dict[str, Any]:
        return yaml.safe_load((self.root / profile_type / f"{profile_type}_meta.yaml").read_text())

    def write_settings(self, content: str) -> None:
        settings = self.home / "settings" / "imperative.json"
        settings.parent.mkdir(parents=True, exist_ok=True)
        settings.write_text(content)


class MemoryKeyring:
    """In-memory stand-in for the ``keyring`` module API."""

    def __init__(self) -> None:
        self.passwords: dict[tuple[str, str], str] = {}

    def get_password(self, service: str, account: str) -> str | None:
        return self.passwords.get((service, account))

    def set_password(self, service: str, account: str, secret: str) -> None:
        self.passwords[(service, account)] = secret

    def delete_password(self, service: str, account: str) -> None:
        if (service, account) not in self.passwords:
            raise PasswordDeleteError("not found")
        del self.passwords[(service, account)]


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def tree(tmp_path: Path) -> ProfileTree:
    return ProfileTree(tmp_path / ".zowe")


@pytest.fixture
def credentials() -> CredentialManagerFactory:
    return CredentialManagerFactory()


@pytest.fixture
def memory_keyring() -> MemoryKeyring:
    return MemoryKeyring()
