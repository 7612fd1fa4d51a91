"""On-disk profile manager for a single profile type.

Profiles live under a root directory with one folder per type::

    <root>/<type>/<type>_meta.yaml   # defaultProfile + configuration (schema)
    <root>/<type>/<name>.yaml        # profile attributes

Schema properties flagged ``secure: true`` are kept in the installed credential
manager when there is one; the YAML file then holds a ``managed by ...`` marker.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from .credentials import CREDENTIAL_MANAGER_FACTORY, CredentialManager, CredentialManagerFactory
from .errors import (
    NoDefaultProfileError,
    ProfileError,
    ProfileExistsError,
    ProfileManagerError,
    ProfileNotFoundError,
)
from .models import LoadedProfile, ProfileType, ProfileTypeConfiguration

LOG = logging.getLogger(__name__)

META_SUFFIX = "_meta"
PROFILE_EXTENSION = ".yaml"
SECURE_MARKER_PREFIX = "managed by "


@dataclass(frozen=True, slots=True)
class SaveResult:
    """Outcome of persisting a profile."""

    profile: Mapping[str, Any]
    path: Path
    overwritten: bool
    message: str


class ProfileManager:
    """Loads and persists profiles of one type below a profile root."""

    def __init__(
        self,
        *,
        profile_root_directory: str | Path,
        type: ProfileType,
        credentials: CredentialManagerFactory = CREDENTIAL_MANAGER_FACTORY,
    ) -> None:
        self._root = Path(profile_root_directory)
        self._type = type
        self._credentials = credentials
        if not self._root.is_dir():
            raise ProfileManagerError(f"Profile root directory '{self._root}' does not exist.")
        self._configurations = self._read_configurations()
        if not any(config.type == type for config in self._configurations):
            raise ProfileManagerError(f'Profile type "{type}" is not configured in {self._root}.')

    @property
    def type(self) -> ProfileType:
        return self._type

    @property
    def profile_root_directory(self) -> Path:
        return self._root

    @property
    def configurations(self) -> tuple[ProfileTypeConfiguration, ...]:
        """Configurations of every type found under the root, ordered by type name."""

        return self._configurations

    async def load_all(self, *, type_only: bool = False) -> list[LoadedProfile]:
        """Load every profile under the root (only this type if ``type_only``).

        Unreadable profiles of other types are logged and skipped; those of this
        manager's own type raise.
        """

        types = [self._type] if type_only else [config.type for config in self._configurations]
        profiles: list[LoadedProfile] = []
        for profile_type in types:
            for name in await asyncio.to_thread(self._list_names, profile_type):
                try:
                    profiles.append(await self._load_profile(profile_type, name))
                except ProfileError as exc:
                    if profile_type == self._type:
                        raise
                    LOG.warning(
                        "Skipping unreadable profile: %s",
                        exc,
                        extra={"profile_name": name, "profile_type": profile_type},
                    )
        return profiles

    async def load(self, *, name: str | None = None, load_default: bool = False) -> LoadedProfile:
        """Load a profile of this type by name, or the type's default."""

        if load_default:
            name = await asyncio.to_thread(self._read_default_name, self._type)
            if not name:
                raise NoDefaultProfileError(self._type)
        if not name:
            raise ProfileError("A profile name or load_default=True is required.")
        return await self._load_profile(self._type, name)

    async def list_names(self) -> list[str]:
        return await asyncio.to_thread(self._list_names, self._type)

    async def save(
        self,
        *,
        profile: Mapping[str, Any],
        name: str,
        type: ProfileType | None = None,
        overwrite: bool = False,
        update_default: bool = False,
    ) -> SaveResult:
        """Write ``profile`` to disk, moving secure fields to the credential manager."""

        profile_type = type or self._type
        self._check_type(profile_type)
        path = self._profile_path(profile_type, name)
        existed = await asyncio.to_thread(path.exists)
        if existed and not overwrite:
            raise ProfileExistsError(f'Profile "{name}" of type "{profile_type}" already exists.')

        document = dict(profile)
        manager = self._credentials.manager
        if manager is not None:
            for prop in self._secure_properties(profile_type):
                value = document.get(prop)
                if value is None:
                    continue
                await manager.save(_account(profile_type, name, prop), str(value))
                document[prop] = f"{SECURE_MARKER_PREFIX}{manager.display_name}"

        await asyncio.to_thread(self._write_yaml, path, document)
        if update_default:
            await asyncio.to_thread(self._write_default_name, profile_type, name)
        LOG.debug("Saved profile", extra={"profile_name": name, "profile_type": profile_type})
        verb = "overwritten" if existed else "created"
        return SaveResult(
            profile=dict(profile),
            path=path,
            overwritten=existed,
            message=f'Profile "{name}" of type "{profile_type}" {verb}.',
        )

    async def delete(
        self,
        *,
        name: str,
        type: ProfileType | None = None,
        profile: LoadedProfile | None = None,
    ) -> None:
        """Remove a profile, its stored secrets, and its default marker."""

        profile_type = type or (profile.type if profile is not None else self._type)
        self._check_type(profile_type)
        path = self._profile_path(profile_type, name)
        if not await asyncio.to_thread(path.exists):
            raise ProfileNotFoundError(f'Profile "{name}" of type "{profile_type}" does not exist.')
        manager = self._credentials.manager
        if manager is not None:
            for prop in self._secure_properties(profile_type):
                await manager.delete(_account(profile_type, name, prop))
        await asyncio.to_thread(path.unlink)
        if await asyncio.to_thread(self._read_default_name, profile_type) == name:
            await asyncio.to_thread(self._write_default_name, profile_type, None)
        LOG.debug("Deleted profile", extra={"profile_name": name, "profile_type": profile_type})

    async def set_default(self, name: str) -> None:
        """Mark an existing profile as this type's default."""

        path = self._profile_path(self._type, name)
        if not await asyncio.to_thread(path.exists):
            raise ProfileNotFoundError(f'Profile "{name}" of type "{self._type}" does not exist.')
        await asyncio.to_thread(self._write_default_name, self._type, name)

    async def _load_profile(self, profile_type: ProfileType, name: str) -> LoadedProfile:
        path = self._profile_path(profile_type, name)
        try:
            document = await asyncio.to_thread(self._read_yaml, path)
        except FileNotFoundError as exc:
            raise ProfileNotFoundError(
                f'Profile "{name}" of type "{profile_type}" does not exist.'
            ) from exc
        except (OSError, yaml.YAMLError) as exc:
            raise ProfileError(f'Unable to read profile "{name}" of type "{profile_type}": {exc}') from exc
        resolved = await self._resolve_secure_fields(profile_type, name, document)
        return LoadedProfile(
            name=name,
            type=profile_type,
            profile=resolved,
            message=f'Profile "{name}" of type "{profile_type}" loaded successfully.',
        )

    async def _resolve_secure_fields(
        self, profile_type: ProfileType, name: str, document: dict[str, Any]
    ) -> dict[str, Any]:
        secure = [
            prop
            for prop in self._secure_properties(profile_type)
            if isinstance(document.get(prop), str) and document[prop].startswith(SECURE_MARKER_PREFIX)
        ]
        if not secure:
            return document
        manager: CredentialManager | None = self._credentials.manager
        if manager is None:
            raise ProfileError(
                f'Profile "{name}" of type "{profile_type}" stores secure fields '
                "but no credential manager is initialized."
            )
        for prop in secure:
            document[prop] = await manager.load(_account(profile_type, name, prop))
        return document

    def _secure_properties(self, profile_type: ProfileType) -> tuple[str, ...]:
        for config in self._configurations:
            if config.type == profile_type:
                return config.secure_properties()
        return ()

    def _check_type(self, profile_type: ProfileType) -> None:
        if not any(config.type == profile_type for config in self._configurations):
            raise ProfileManagerError(f'Profile type "{profile_type}" is not configured.')

    def _read_configurations(self) -> tuple[ProfileTypeConfiguration, ...]:
        configurations: list[ProfileTypeConfiguration] = []
        for type_dir in sorted(p for p in self._root.iterdir() if p.is_dir()):
            meta_path = self._meta_path(type_dir.name)
            if not meta_path.is_file():
                continue
            try:
                meta = self._read_yaml(meta_path)
            except (OSError, yaml.YAMLError) as exc:
                if type_dir.name == self._type:
                    raise ProfileManagerError(f"Unable to read profile meta file '{meta_path}': {exc}") from exc
                LOG.warning(
                    "Skipping unreadable profile meta file: %s",
                    exc,
                    extra={"profile_type": type_dir.name, "meta_file": str(meta_path)},
                )
                continue
            configuration = meta.get("configuration")
            if not isinstance(configuration, Mapping):
                continue
            schema = configuration.get("schema")
            configurations.append(
                ProfileTypeConfiguration(
                    type=str(configuration.get("type", type_dir.name)),
                    schema=dict(schema) if isinstance(schema, Mapping) else {},
                )
            )
        return tuple(configurations)

    def _list_names(self, profile_type: ProfileType) -> list[str]:
        type_dir = self._root / profile_type
        if not type_dir.is_dir():
            return []
        return sorted(
            path.stem
            for path in type_dir.glob(f"*{PROFILE_EXTENSION}")
            if path.is_file() and path.stem != f"{profile_type}{META_SUFFIX}"
        )

    def _read_default_name(self, profile_type: ProfileType) -> str | None:
        meta_path = self._meta_path(profile_type)
        if not meta_path.is_file():
            return None
        value = self._read_yaml(meta_path).get("defaultProfile")
        return str(value) if value else None

    def _write_default_name(self, profile_type: ProfileType, name: str | None) -> None:
        meta_path = self._meta_path(profile_type)
        meta = self._read_yaml(meta_path) if meta_path.is_file() else {}
        meta["defaultProfile"] = name
        self._write_yaml(meta_path, meta)

    def _meta_path(self, profile_type: ProfileType) -> Path:
        return self._root / profile_type / f"{profile_type}{META_SUFFIX}{PROFILE_EXTENSION}"

    def _profile_path(self, profile_type: ProfileType, name: str) -> Path:
        if not name or "/" in name or "\\" in name or name.startswith("."):
            raise ProfileError(f"Invalid profile name: '{name}'.")
        return self._root / profile_type / f"{name}{PROFILE_EXTENSION}"

    @staticmethod
    def _read_yaml(path: Path) -> dict[str, Any]:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
        return dict(data) if isinstance(data, Mapping) else {}

    @staticmethod
    def _write_yaml(path: Path, data: Mapping[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.safe_dump(dict(data), sort_keys=False), encoding="utf-8")


def _account(profile_type: ProfileType, name: str, prop: str) -> str:
    return f"{profile_type}_{name}_{prop}"


__all__ = ["ProfileManager", "SaveResult", "SECURE_MARKER_PREFIX"]
