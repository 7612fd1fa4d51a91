"""Credential manager contract and its keyring-backed implementation."""

from __future__ import annotations

import asyncio
import logging
from types import ModuleType
from typing import Any, Protocol, runtime_checkable

import keyring
from keyring.backends import fail
from keyring.errors import KeyringError, PasswordDeleteError

from .errors import CredentialManagerError

LOG = logging.getLogger(__name__)

KEYRING_MODULE = "keyring"


@runtime_checkable
class CredentialManager(Protocol):
    """Stores secure profile fields outside the profile files."""

    service: str
    display_name: str

    async def load(self, account: str) -> str | None:
        """Return the secret stored for ``account`` or ``None``."""

    async def save(self, account: str, secret: str) -> None:
        """Store ``secret`` for ``account``, replacing any previous value."""

    async def delete(self, account: str) -> None:
        """Remove the secret for ``account``; missing entries are ignored."""


class KeyringCredentialManager:
    """Credential manager that delegates to an OS store through ``keyring``."""

    def __init__(self, service: str, display_name: str, backend: Any = keyring) -> None:
        self.service = service
        self.display_name = display_name
        self._backend = backend

    async def load(self, account: str) -> str | None:
        try:
            return await asyncio.to_thread(self._backend.get_password, self.service, account)
        except KeyringError as exc:
            raise CredentialManagerError(f"Unable to load credentials for '{account}': {exc}") from exc

    async def save(self, account: str, secret: str) -> None:
        try:
            await asyncio.to_thread(self._backend.set_password, self.service, account, secret)
        except KeyringError as exc:
            raise CredentialManagerError(f"Unable to save credentials for '{account}': {exc}") from exc

    async def delete(self, account: str) -> None:
        try:
            await asyncio.to_thread(self._backend.delete_password, self.service, account)
        except PasswordDeleteError:
            LOG.debug("No stored credential to delete", extra={"account": account})
        except KeyringError as exc:
            raise CredentialManagerError(f"Unable to delete credentials for '{account}': {exc}") from exc


class CredentialManagerFactory:
    """Holds the single credential manager installed for the process.

    ``initialize`` may run once; later calls raise until ``reset`` is used.
    """

    def __init__(self) -> None:
        self._manager: CredentialManager | None = None

    @property
    def initialized(self) -> bool:
        return self._manager is not None

    @property
    def manager(self) -> CredentialManager | None:
        return self._manager

    def initialize(
        self,
        *,
        service: str,
        display_name: str,
        manager: type[KeyringCredentialManager] = KeyringCredentialManager,
        backend: Any = keyring,
    ) -> CredentialManager:
        if self._manager is not None:
            raise CredentialManagerError("A credential manager has already been initialized.")
        self._manager = manager(service, display_name, backend)
        LOG.info(
            "Initialized credential manager",
            extra={"service": service, "display_name": display_name},
        )
        return self._manager

    def reset(self) -> None:
        """Drop the installed manager (testing helper)."""

        self._manager = None


class SecurityModuleProvider(Protocol):
    """Supplies a secret-storage backend module for the current host."""

    def get_module(self, name: str, restricted_host: bool) -> Any | None: ...


class KeyringModuleProvider:
    """Returns the ``keyring`` module when a usable OS backend is present.

    Restricted (browser-like) hosts have no OS store access and get ``None``
    unless ``allow_restricted`` is set.
    """

    def __init__(self, *, allow_restricted: bool = False, module: ModuleType = keyring) -> None:
        self._allow_restricted = allow_restricted
        self._module = module

    def get_module(self, name: str, restricted_host: bool) -> ModuleType | None:
        if name != KEYRING_MODULE:
            LOG.debug("Unknown security module requested", extra={"module": name})
            return None
        if restricted_host and not self._allow_restricted:
            return None
        backend = self._module.get_keyring()
        if isinstance(backend, fail.Keyring):
            LOG.debug("No usable keyring backend available")
            return None
        return self._module


CREDENTIAL_MANAGER_FACTORY = CredentialManagerFactory()


__all__ = [
    "CREDENTIAL_MANAGER_FACTORY",
    "CredentialManager",
    "CredentialManagerFactory",
    "KEYRING_MODULE",
    "KeyringCredentialManager",
    "KeyringModuleProvider",
    "SecurityModuleProvider",
]
