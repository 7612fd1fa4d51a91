"""Shared dataclasses used across the profile manager and cache modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Generic, Mapping, TypeVar

CONTEXT_PREFIX = "_"
DEFAULT_PORT = 443
BASE_PROFILE_TYPE = "base"
DEFAULT_PROFILE_TYPE = "zosmf"

ProfileType = str
SchemaProperties = Mapping[str, Mapping[str, Any]]

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class LoadedProfile:
    """Snapshot of a profile as read from disk by its type's manager."""

    name: str
    type: ProfileType
    profile: Mapping[str, Any] = field(default_factory=dict)
    message: str = ""

    @property
    def key(self) -> tuple[str, ProfileType]:
        return self.name, self.type

    def get(self, attribute: str, default: Any = None) -> Any:
        """Return a single profile attribute (host, port, user, ...)."""

        return self.profile.get(attribute, default)


@dataclass(frozen=True, slots=True)
class ProfileTypeConfiguration:
    """Declared schema for a profile type, as stored in the type's meta file."""

    type: ProfileType
    schema: Mapping[str, Any] = field(default_factory=dict)

    @property
    def properties(self) -> SchemaProperties:
        properties = self.schema.get("properties")
        if isinstance(properties, Mapping):
            return properties
        return {}

    def secure_properties(self) -> tuple[str, ...]:
        """Names of properties flagged for secure credential storage."""

        return tuple(
            name
            for name, descriptor in self.properties.items()
            if isinstance(descriptor, Mapping) and descriptor.get("secure") is True
        )


class ValidProfileState(IntEnum):
    """Outcome of validating a profile against its service."""

    UNVERIFIED = 1
    VALID = 0
    INVALID = -1


@dataclass(slots=True)
class ProfileValidation:
    """Validation status recorded for a profile name."""

    status: str
    name: str


@dataclass(slots=True)
class ValidationSetting:
    """Whether validation is enabled for a profile name."""

    name: str
    setting: bool


@dataclass(frozen=True, slots=True)
class UrlValidation:
    """Result of parsing a user-supplied host URL."""

    valid: bool = False
    protocol: str | None = None
    host: str | None = None
    port: int | None = None


class OutcomeStatus(str, Enum):
    """Classification of a single load performed during refresh."""

    LOADED = "loaded"
    ABSENT = "absent"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class LoadOutcome(Generic[T]):
    """Success value, expected absence, or a logged unexpected failure."""

    status: OutcomeStatus
    value: T | None = None
    error: BaseException | None = None

    @classmethod
    def loaded(cls, value: T) -> LoadOutcome[T]:
        return cls(OutcomeStatus.LOADED, value=value)

    @classmethod
    def absent(cls, error: BaseException | None = None) -> LoadOutcome[T]:
        return cls(OutcomeStatus.ABSENT, error=error)

    @classmethod
    def failed(cls, error: BaseException) -> LoadOutcome[T]:
        return cls(OutcomeStatus.FAILED, error=error)

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.LOADED


@dataclass(slots=True)
class TypeRefreshOutcome:
    """Per-type results collected while refreshing the cache."""

    type: ProfileType
    profiles: LoadOutcome[tuple[LoadedProfile, ...]]
    default: LoadOutcome[LoadedProfile]


@dataclass(slots=True)
class RefreshOutcome:
    """Aggregate record of one refresh cycle."""

    base: LoadOutcome[LoadedProfile] = field(default_factory=LoadOutcome.absent)
    types: list[TypeRefreshOutcome] = field(default_factory=list)
    skipped_types: list[ProfileType] = field(default_factory=list)

    @property
    def failures(self) -> list[BaseException]:
        """Unexpected errors that were logged and swallowed during refresh."""

        errors: list[BaseException] = []
        if self.base.status is OutcomeStatus.FAILED and self.base.error is not None:
            errors.append(self.base.error)
        for entry in self.types:
            for outcome in (entry.profiles, entry.default):
                if outcome.status is OutcomeStatus.FAILED and outcome.error is not None:
                    errors.append(outcome.error)
        return errors


__all__ = [
    "BASE_PROFILE_TYPE",
    "CONTEXT_PREFIX",
    "DEFAULT_PORT",
    "DEFAULT_PROFILE_TYPE",
    "LoadOutcome",
    "LoadedProfile",
    "OutcomeStatus",
    "ProfileType",
    "ProfileTypeConfiguration",
    "ProfileValidation",
    "RefreshOutcome",
    "SchemaProperties",
    "TypeRefreshOutcome",
    "UrlValidation",
    "ValidProfileState",
    "ValidationSetting",
]
