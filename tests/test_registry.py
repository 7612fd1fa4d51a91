"""Unit tests for the profile type registry."""

from __future__ import annotations

import pytest

from zoweprofiles import ApiTypeRegistry


def test_default_registry_contains_zosmf() -> None:
    assert ApiTypeRegistry.default().registered_api_types() == ["zosmf"]


def test_register_keeps_first_registration_order() -> None:
    registry = ApiTypeRegistry(["zosmf", "tso"])
    registry.register_many(["ssh", "zosmf"])

    assert registry.registered_api_types() == ["zosmf", "tso", "ssh"]


def test_register_rejects_empty_type() -> None:
    registry = ApiTypeRegistry()

    with pytest.raises(ValueError):
        registry.register("")
