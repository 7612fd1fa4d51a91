"""Registry of profile types contributed by service APIs."""

from __future__ import annotations

from typing import Iterable, Protocol, Sequence

from .models import DEFAULT_PROFILE_TYPE, ProfileType


class ApiRegister(Protocol):
    """Source of the profile types that are active at refresh time."""

    def registered_api_types(self) -> Sequence[ProfileType]: ...


class ApiTypeRegistry:
    """Collects profile types in registration order."""

    def __init__(self, types: Iterable[ProfileType] = ()) -> None:
        self._types: dict[ProfileType, None] = {}
        self.register_many(types)

    @classmethod
    def default(cls) -> ApiTypeRegistry:
        """Registry with only the z/OSMF profile type."""

        return cls((DEFAULT_PROFILE_TYPE,))

    def register(self, profile_type: ProfileType) -> None:
        """Register a profile type; re-registering keeps the original position."""

        if not profile_type:
            raise ValueError("Profile type must be a non-empty string")
        self._types.setdefault(profile_type, None)

    def register_many(self, types: Iterable[ProfileType]) -> None:
        for profile_type in types:
            self.register(profile_type)

    def registered_api_types(self) -> list[ProfileType]:
        return list(self._types)


__all__ = ["ApiRegister", "ApiTypeRegistry"]
