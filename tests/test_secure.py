"""Tests for secure credential storage activation."""

from __future__ import annotations

import logging
from typing import Any

import pytest
from keyring.backends import fail

from zoweprofiles import ApiTypeRegistry, ProfilesCache
from zoweprofiles.config import AppConfig
from zoweprofiles.credentials import (
    CredentialManagerFactory,
    KeyringCredentialManager,
    KeyringModuleProvider,
)
from zoweprofiles.errors import CredentialManagerError
from zoweprofiles.secure import SecureStorageActivator

from .conftest import ZOSMF_PROPERTIES, MemoryKeyring, ProfileTree

SECURE_SETTINGS = '{"overrides": {"CredentialManager": "@zowe/secure-credential-store-for-zowe-cli"}}'


class _Provider:
    def __init__(self, module: Any | None) -> None:
        self.module = module
        self.calls: list[tuple[str, bool]] = []

    def get_module(self, name: str, restricted_host: bool) -> Any | None:
        self.calls.append((name, restricted_host))
        return self.module


def _activator(
    tree: ProfileTree,
    credentials: CredentialManagerFactory,
    provider: _Provider,
    config: AppConfig | None = None,
) -> SecureStorageActivator:
    return SecureStorageActivator(tree.home, config=config, provider=provider, factory=credentials)


@pytest.mark.parametrize(
    ("content", "expected"),
    [
        (SECURE_SETTINGS, True),
        ('{"overrides": {"credential-manager": "keyring"}}', True),
        ('{"overrides": {"CredentialManager": false, "credential-manager": ""}}', False),
        ('{"overrides": {}}', False),
    ],
)
def test_secure_plugin_detection(
    tree: ProfileTree, credentials: CredentialManagerFactory, content: str, expected: bool
) -> None:
    tree.write_settings(content)

    assert _activator(tree, credentials, _Provider(None)).is_secure_credential_plugin_active() is expected


def test_missing_settings_file_is_inactive(tree: ProfileTree, credentials: CredentialManagerFactory) -> None:
    assert _activator(tree, credentials, _Provider(None)).is_secure_credential_plugin_active() is False


def test_malformed_settings_are_logged_and_inactive(
    tree: ProfileTree, credentials: CredentialManagerFactory, caplog: pytest.LogCaptureFixture
) -> None:
    tree.write_settings("{not json")

    with caplog.at_level(logging.ERROR):
        active = _activator(tree, credentials, _Provider(None)).is_secure_credential_plugin_active()

    assert active is False
    assert any("imperative settings" in record.getMessage() for record in caplog.records)


@pytest.mark.anyio
async def test_activate_installs_keyring_manager(
    tree: ProfileTree, credentials: CredentialManagerFactory, memory_keyring: MemoryKeyring
) -> None:
    tree.write_settings(SECURE_SETTINGS)
    provider = _Provider(memory_keyring)

    installed = await _activator(tree, credentials, provider).activate(False, False)

    assert installed is True
    assert provider.calls == [("keyring", False)]
    assert isinstance(credentials.manager, KeyringCredentialManager)
    assert credentials.manager.service == "Zowe-Plugin"
    assert credentials.manager.display_name == "Zowe Explorer"


@pytest.mark.anyio
async def test_activate_uses_configured_service(
    tree: ProfileTree, credentials: CredentialManagerFactory, memory_keyring: MemoryKeyring
) -> None:
    tree.write_settings(SECURE_SETTINGS)

    await _activator(tree, credentials, _Provider(memory_keyring), AppConfig(credential_key="Team")).activate(
        False, False
    )

    assert credentials.manager is not None
    assert credentials.manager.service == "Team"


@pytest.mark.anyio
async def test_activate_is_noop_when_already_initialized(
    tree: ProfileTree, credentials: CredentialManagerFactory, memory_keyring: MemoryKeyring
) -> None:
    tree.write_settings(SECURE_SETTINGS)
    activator = _activator(tree, credentials, _Provider(memory_keyring))

    assert await activator.activate(False, False) is True
    first = credentials.manager
    assert await activator.activate(True, False) is False
    assert await activator.activate(True, False) is False

    assert credentials.manager is first


@pytest.mark.anyio
async def test_activate_skips_when_inactive_or_unavailable(
    tree: ProfileTree, credentials: CredentialManagerFactory, memory_keyring: MemoryKeyring
) -> None:
    inactive_provider = _Provider(memory_keyring)
    assert await _activator(tree, credentials, inactive_provider).activate(False, False) is False
    assert inactive_provider.calls == []

    tree.write_settings(SECURE_SETTINGS)
    assert await _activator(tree, credentials, _Provider(None)).activate(False, True) is False
    assert credentials.initialized is False


def test_factory_initializes_once(credentials: CredentialManagerFactory, memory_keyring: MemoryKeyring) -> None:
    credentials.initialize(service="Zowe-Plugin", display_name="Zowe Explorer", backend=memory_keyring)

    with pytest.raises(CredentialManagerError):
        credentials.initialize(service="Other", display_name="Other", backend=memory_keyring)

    credentials.reset()
    assert credentials.initialized is False


@pytest.mark.anyio
async def test_keyring_manager_round_trip(memory_keyring: MemoryKeyring) -> None:
    manager = KeyringCredentialManager("Zowe-Plugin", "Zowe Explorer", memory_keyring)

    await manager.save("zosmf_lpar1_password", "secret")
    assert await manager.load("zosmf_lpar1_password") == "secret"
    await manager.delete("zosmf_lpar1_password")
    await manager.delete("zosmf_lpar1_password")
    assert await manager.load("zosmf_lpar1_password") is None


class _KeyringModule:
    def __init__(self, backend: Any) -> None:
        self._backend = backend

    def get_keyring(self) -> Any:
        return self._backend


def test_keyring_provider_selection() -> None:
    usable = _KeyringModule(object())
    broken = _KeyringModule(fail.Keyring())

    assert KeyringModuleProvider(module=usable).get_module("keyring", False) is usable
    assert KeyringModuleProvider(module=usable).get_module("keytar", False) is None
    assert KeyringModuleProvider(module=usable).get_module("keyring", True) is None
    assert KeyringModuleProvider(module=usable, allow_restricted=True).get_module("keyring", True) is usable
    assert KeyringModuleProvider(module=broken).get_module("keyring", False) is None


@pytest.mark.anyio
async def test_cache_activation_precedes_secure_profile_load(
    tree: ProfileTree, credentials: CredentialManagerFactory, memory_keyring: MemoryKeyring
) -> None:
    tree.write_settings(SECURE_SETTINGS)
    tree.add_type("zosmf", ZOSMF_PROPERTIES, default="lpar1")
    tree.add_profile("zosmf", "lpar1", host="lpar1.example.com", password="managed by Zowe Explorer")
    memory_keyring.set_password("Zowe-Plugin", "zosmf_lpar1_password", "secret")
    cache = ProfilesCache(home=tree.home, credentials=credentials, security_provider=_Provider(memory_keyring))

    assert cache.is_secure_credential_plugin_active() is True
    await cache.activate_keyring_apis(credentials.initialized, False)
    await cache.refresh(ApiTypeRegistry(["zosmf"]))

    assert cache.get_default_profile().get("password") == "secret"
    assert cache.load_named_profile("lpar1").get("password") == "secret"


@pytest.mark.anyio
async def test_activate_does_not_touch_provider_when_initialized(
    tree: ProfileTree, credentials: CredentialManagerFactory, memory_keyring: MemoryKeyring
) -> None:
    tree.write_settings(SECURE_SETTINGS)
    provider = _Provider(memory_keyring)

    assert await _activator(tree, credentials, provider).activate(True, False) is False

    assert provider.calls == []
    assert credentials.initialized is False
