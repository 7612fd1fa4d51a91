"""Connection profile discovery, caching and secure credential wiring for Zowe clients."""

from __future__ import annotations

__version__ = "0.1.0"

from .cache import ProfilesCache
from .errors import (
    CredentialManagerError,
    NoDefaultProfileError,
    ProfileError,
    ProfileExistsError,
    ProfileManagerError,
    ProfileNotFoundError,
)
from .models import (
    BASE_PROFILE_TYPE,
    CONTEXT_PREFIX,
    DEFAULT_PORT,
    DEFAULT_PROFILE_TYPE,
    LoadedProfile,
    LoadOutcome,
    OutcomeStatus,
    ProfileTypeConfiguration,
    ProfileValidation,
    RefreshOutcome,
    UrlValidation,
    ValidationSetting,
    ValidProfileState,
)
from .registry import ApiRegister, ApiTypeRegistry
from .url import validate_and_parse_url

__all__ = [
    "ApiRegister",
    "ApiTypeRegistry",
    "BASE_PROFILE_TYPE",
    "CONTEXT_PREFIX",
    "CredentialManagerError",
    "DEFAULT_PORT",
    "DEFAULT_PROFILE_TYPE",
    "LoadOutcome",
    "LoadedProfile",
    "NoDefaultProfileError",
    "OutcomeStatus",
    "ProfileError",
    "ProfileExistsError",
    "ProfileManagerError",
    "ProfileNotFoundError",
    "ProfileTypeConfiguration",
    "ProfileValidation",
    "ProfilesCache",
    "RefreshOutcome",
    "UrlValidation",
    "ValidProfileState",
    "ValidationSetting",
    "__version__",
    "validate_and_parse_url",
]
