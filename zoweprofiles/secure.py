"""Secure credential storage activation."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from .config import CREDENTIAL_DISPLAY_NAME, AppConfig, load_imperative_settings
from .credentials import (
    CREDENTIAL_MANAGER_FACTORY,
    KEYRING_MODULE,
    CredentialManagerFactory,
    KeyringCredentialManager,
    KeyringModuleProvider,
    SecurityModuleProvider,
)
from .paths import get_settings_file

LOG = logging.getLogger(__name__)


class SecureStorageActivator:
    """Installs the keyring credential manager when imperative settings ask for it."""

    def __init__(
        self,
        home: Path,
        *,
        config: AppConfig | None = None,
        provider: SecurityModuleProvider | None = None,
        factory: CredentialManagerFactory = CREDENTIAL_MANAGER_FACTORY,
        log: logging.Logger = LOG,
    ) -> None:
        self._home = home
        self._config = config or AppConfig()
        self._provider = provider or KeyringModuleProvider()
        self._factory = factory
        self._log = log

    @property
    def settings_file(self) -> Path:
        return get_settings_file(self._home)

    def is_secure_credential_plugin_active(self) -> bool:
        """Whether ``imperative.json`` names an overriding credential manager.

        Unreadable or malformed settings count as inactive.
        """

        try:
            settings = load_imperative_settings(self.settings_file)
        except (OSError, ValueError, ValidationError) as exc:
            self._log.error(
                "Unable to read imperative settings: %s",
                exc,
                extra={"settings_file": str(self.settings_file)},
            )
            return False
        if settings is None:
            return False
        return settings.credential_manager() is not None

    async def activate(self, initialized: bool, is_restricted_host: bool) -> bool:
        """Install the credential manager if secure storage is active.

        Returns ``True`` only when this call installed a backend.
        """

        if initialized or not self.is_secure_credential_plugin_active():
            return False
        backend = self._provider.get_module(KEYRING_MODULE, is_restricted_host)
        if backend is None:
            self._log.debug(
                "Secure storage configured but no backend available",
                extra={"restricted_host": is_restricted_host},
            )
            return False
        self._factory.initialize(
            service=self._config.credential_service,
            display_name=CREDENTIAL_DISPLAY_NAME,
            manager=KeyringCredentialManager,
            backend=backend,
        )
        return True


__all__ = ["SecureStorageActivator"]
