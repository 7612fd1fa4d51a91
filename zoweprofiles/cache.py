"""In-memory cache of connection profiles across all registered profile types."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Mapping

from .config import AppConfig
from .credentials import (
    CREDENTIAL_MANAGER_FACTORY,
    CredentialManagerFactory,
    SecurityModuleProvider,
)
from .errors import NoDefaultProfileError, ProfileError, ProfileManagerError, ProfileNotFoundError
from .managers import ProfileManager
from .models import (
    BASE_PROFILE_TYPE,
    DEFAULT_PROFILE_TYPE,
    LoadedProfile,
    LoadOutcome,
    ProfileType,
    ProfileValidation,
    RefreshOutcome,
    TypeRefreshOutcome,
    UrlValidation,
    ValidationSetting,
)
from .paths import get_profiles_dir
from .registry import ApiRegister
from .secure import SecureStorageActivator
from .url import validate_and_parse_url

LOG = logging.getLogger(__name__)

ManagerFactory = Callable[..., ProfileManager]


class ProfilesCache:
    """Loads every profile once per refresh and serves lookups from memory.

    ``refresh`` is the only mutator of the indices. Profile managers are built
    lazily, one per type, and reused for the lifetime of the cache.
    """

    def __init__(
        self,
        log: logging.Logger = LOG,
        *,
        config: AppConfig | None = None,
        home: Path | None = None,
        manager_factory: ManagerFactory = ProfileManager,
        credentials: CredentialManagerFactory = CREDENTIAL_MANAGER_FACTORY,
        security_provider: SecurityModuleProvider | None = None,
    ) -> None:
        self.log = log
        self._config = config or AppConfig()
        self._home = home
        self._manager_factory = manager_factory
        self._credentials = credentials
        self._security_provider = security_provider
        self.profiles_for_validation: list[ProfileValidation] = []
        self.profiles_validation_setting: list[ValidationSetting] = []
        self.all_profiles: list[LoadedProfile] = []
        self._all_types: list[ProfileType] = []
        self._profiles_by_type: dict[ProfileType, list[LoadedProfile]] = {}
        self._default_profile_by_type: dict[ProfileType, LoadedProfile] = {}
        self._profile_manager_by_type: dict[ProfileType, ProfileManager] = {}

    def get_zowe_dir(self) -> Path:
        """Home directory holding ``profiles/`` and ``settings/``."""

        if self._home is not None:
            return self._home
        return self._config.home_dir()

    def load_named_profile(self, name: str, type: ProfileType | None = None) -> LoadedProfile:
        """Return the first cached profile called ``name`` (of ``type`` if given)."""

        for profile in self.all_profiles:
            if profile.name == name and (type is None or profile.type == type):
                return profile
        raise ProfileNotFoundError(f"Could not find profile named: {name}.")

    def get_default_profile(self, type: ProfileType = DEFAULT_PROFILE_TYPE) -> LoadedProfile | None:
        return self._default_profile_by_type.get(type)

    def get_profiles(self, type: ProfileType = DEFAULT_PROFILE_TYPE) -> list[LoadedProfile] | None:
        return self._profiles_by_type.get(type)

    def get_all_types(self) -> list[ProfileType]:
        """Profile types captured from the first manager seen during refresh."""

        return list(self._all_types)

    def clear_all_types(self) -> None:
        """Forget captured profile types so the next refresh captures them again."""

        self._all_types.clear()

    def get_base_profile(self) -> LoadedProfile | None:
        base_profile: LoadedProfile | None = None
        for profile in self.all_profiles:
            if profile.type == BASE_PROFILE_TYPE:
                base_profile = profile
        return base_profile

    async def refresh(self, api_register: ApiRegister | None = None) -> RefreshOutcome:
        """Rebuild every index from disk.

        Failures are logged and recorded in the returned outcome; none propagate.
        """

        outcome = RefreshOutcome()
        all_profiles: list[LoadedProfile] = []
        profiles_by_type: dict[ProfileType, list[LoadedProfile]] = {}
        default_by_type: dict[ProfileType, LoadedProfile] = {}

        base_manager = self.get_cli_profile_manager(BASE_PROFILE_TYPE)
        if base_manager is not None:
            outcome.base = await self._load_default(base_manager, BASE_PROFILE_TYPE)
            if outcome.base.ok and outcome.base.value is not None:
                all_profiles.append(outcome.base.value)

        for profile_type in self._registered_types(api_register):
            manager = self.get_cli_profile_manager(profile_type)
            if manager is None:
                outcome.skipped_types.append(profile_type)
                continue
            if not self._all_types:
                self._all_types.extend(config.type for config in manager.configurations)

            listing = await self._load_profiles_for_type(manager, profile_type)
            if listing.ok and listing.value:
                all_profiles.extend(listing.value)
                profiles_by_type[profile_type] = list(listing.value)

            default = await self._load_default(manager, profile_type)
            if default.ok and default.value is not None:
                default_by_type[profile_type] = default.value
            outcome.types.append(TypeRefreshOutcome(profile_type, listing, default))

        self.all_profiles = all_profiles
        self._profiles_by_type = profiles_by_type
        self._default_profile_by_type = default_by_type
        self.profiles_for_validation.clear()
        self.log.debug(
            "Refreshed profile cache",
            extra={"profile_count": len(all_profiles), "skipped_types": list(outcome.skipped_types)},
        )
        return outcome

    def validate_and_parse_url(self, new_url: str) -> UrlValidation:
        return validate_and_parse_url(new_url)

    def get_schema(self, profile_type: ProfileType) -> dict[str, Any]:
        """Property schema declared for ``profile_type``; empty if unknown."""

        manager = self.get_cli_profile_manager(profile_type)
        if manager is None:
            return {}
        schema: dict[str, Any] = {}
        for config in manager.configurations:
            if config.type == profile_type:
                schema = dict(config.properties)
        return schema

    async def get_names_for_type(self, type: ProfileType) -> list[str]:
        """Names of profiles of ``type`` read straight from disk."""

        manager = self.get_cli_profile_manager(type)
        if manager is None:
            return []
        profiles = await manager.load_all(type_only=True)
        return [profile.name for profile in profiles if profile.type == type]

    async def direct_load(self, type: ProfileType, name: str) -> LoadedProfile | None:
        """Load a profile from disk without consulting or updating the cache."""

        manager = self.get_cli_profile_manager(type)
        if manager is None:
            return None
        try:
            return await manager.load(name=name)
        except ProfileNotFoundError:
            raise
        except ProfileError as exc:
            self.log.error("Unable to load profile: %s", exc, extra={"profile_type": type, "profile_name": name})
            return None

    def get_cli_profile_manager(self, type: ProfileType) -> ProfileManager | None:
        """Manager for ``type``, built on first use; ``None`` if it cannot be built."""

        manager = self._profile_manager_by_type.get(type)
        if manager is not None:
            return manager
        try:
            manager = self._manager_factory(
                profile_root_directory=get_profiles_dir(self.get_zowe_dir()),
                type=type,
                credentials=self._credentials,
            )
        except Exception as exc:
            self.log.debug("Unable to create profile manager: %s", exc, extra={"profile_type": type})
            return None
        self._profile_manager_by_type[type] = manager
        return manager

    def is_secure_credential_plugin_active(self) -> bool:
        return self._secure_storage().is_secure_credential_plugin_active()

    async def activate_keyring_apis(self, initialized: bool, is_restricted_host: bool) -> bool:
        """Install the keyring credential manager when secure storage is configured."""

        return await self._secure_storage().activate(initialized, is_restricted_host)

    async def save_profile(
        self,
        profile_info: Mapping[str, Any],
        profile_name: str,
        profile_type: ProfileType,
    ) -> Mapping[str, Any]:
        """Write a profile, overwriting any existing one. Call ``refresh`` afterwards."""

        manager = self._require_manager(profile_type)
        result = await manager.save(
            profile=profile_info,
            name=profile_name,
            type=profile_type,
            overwrite=True,
        )
        return result.profile

    async def delete_profile_on_disk(self, profile: LoadedProfile) -> None:
        """Delete a profile file. Call ``refresh`` afterwards."""

        manager = self._require_manager(profile.type)
        await manager.delete(profile=profile, name=profile.name, type=profile.type)

    def _require_manager(self, profile_type: ProfileType) -> ProfileManager:
        manager = self.get_cli_profile_manager(profile_type)
        if manager is None:
            raise ProfileManagerError(f'No profile manager available for type "{profile_type}".')
        return manager

    def _secure_storage(self) -> SecureStorageActivator:
        return SecureStorageActivator(
            self.get_zowe_dir(),
            config=self._config,
            provider=self._security_provider,
            factory=self._credentials,
            log=self.log,
        )

    def _registered_types(self, api_register: ApiRegister | None) -> list[ProfileType]:
        if api_register is None:
            return []
        try:
            return list(api_register.registered_api_types())
        except Exception as exc:
            self.log.error("Unable to list registered profile types: %s", exc)
            return []

    async def _load_profiles_for_type(
        self, manager: ProfileManager, profile_type: ProfileType
    ) -> LoadOutcome[tuple[LoadedProfile, ...]]:
        try:
            profiles = await manager.load_all(type_only=True)
        except Exception as exc:
            self.log.error("Unable to load profiles: %s", exc, extra={"profile_type": profile_type})
            return LoadOutcome.failed(exc)
        return LoadOutcome.loaded(tuple(profile for profile in profiles if profile.type == profile_type))

    async def _load_default(self, manager: ProfileManager, profile_type: ProfileType) -> LoadOutcome[LoadedProfile]:
        try:
            profile = await manager.load(load_default=True)
        except NoDefaultProfileError as exc:
            if profile_type != BASE_PROFILE_TYPE:
                self.log.debug("No default profile set", extra={"profile_type": profile_type})
            return LoadOutcome.absent(exc)
        except Exception as exc:
            self.log.error("Unable to load default profile: %s", exc, extra={"profile_type": profile_type})
            return LoadOutcome.failed(exc)
        return LoadOutcome.loaded(profile)


__all__ = ["ProfilesCache"]
