"""Error types raised by profile managers and the profile cache."""

from __future__ import annotations


class ProfileError(RuntimeError):
    """Base error for profile loading and persistence failures."""


class ProfileNotFoundError(ProfileError, LookupError):
    """Raised when a named profile does not exist."""


class NoDefaultProfileError(ProfileError):
    """Raised when a profile type has no default profile configured."""

    def __init__(self, profile_type: str) -> None:
        super().__init__(f'No default profile set for type "{profile_type}".')
        self.profile_type = profile_type


class ProfileExistsError(ProfileError):
    """Raised when saving would overwrite a profile without permission."""


class ProfileManagerError(ProfileError):
    """Raised when a profile manager cannot be constructed for a type."""


class CredentialManagerError(RuntimeError):
    """Raised when the credential manager is misused or its backend fails."""


__all__ = [
    "CredentialManagerError",
    "NoDefaultProfileError",
    "ProfileError",
    "ProfileExistsError",
    "ProfileManagerError",
    "ProfileNotFoundError",
]
