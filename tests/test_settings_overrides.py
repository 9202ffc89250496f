from __future__ import annotations

import pytest

# Tests run against the real packaged defaults.yaml so the YAML and the models stay in sync.
from bloodmatch.config.settings import get_settings

from bloodmatch.config.overrides import apply_settings_overrides


def test_apply_settings_overrides_returns_same_object_when_none():
    settings = get_settings()

    out = apply_settings_overrides(settings, None)

    # Identity is intentional: no overrides means no rebuilt model.
    assert out is settings


def test_apply_settings_overrides_can_override_allowed_numeric_knobs():
    # The loader is cached; the shared object must not change.
    settings = get_settings()

    overrides = {"emergency": {"blood_banks": {"radius_km": 40}}}

    out = apply_settings_overrides(settings, overrides)

    assert out.emergency.blood_banks.radius_km == 40
    assert settings.emergency.blood_banks.radius_km != 40
    # Siblings of the overridden key keep their configured values.
    assert out.emergency.blood_banks.limit == settings.emergency.blood_banks.limit


def test_apply_settings_overrides_rejects_disallowed_keys_with_clear_path():
    settings = get_settings()

    # File paths are never overridable per request.
    overrides = {"directory": {"path": "/etc/passwd"}}

    with pytest.raises(ValueError, match=r"'directory'"):
        apply_settings_overrides(settings, overrides)


def test_apply_settings_overrides_rejects_unknown_nested_keys():
    settings = get_settings()

    with pytest.raises(ValueError, match=r"emergency\.ambulances"):
        apply_settings_overrides(settings, {"emergency": {"ambulances": {"radius_km": 3}}})


def test_apply_settings_overrides_rejects_wrong_value_shapes_for_restricted_subtrees():
    settings = get_settings()

    with pytest.raises(ValueError, match=r"settings_overrides key 'emergency' must be a mapping"):
        apply_settings_overrides(settings, {"emergency": 1})


def test_apply_settings_overrides_revalidates_ranges():
    settings = get_settings()

    # pydantic.ValidationError is a ValueError, so the API maps it to a 400 as well.
    with pytest.raises(ValueError):
        apply_settings_overrides(settings, {"matching": {"default_limit": 0}})


def test_packaged_defaults_match_documented_values():
    settings = get_settings()

    assert settings.emergency.blood_banks.radius_km == 25
    assert settings.emergency.incoming_requests.default_service_radius_km == 10
    assert settings.emergency.incoming_requests.limit == 10
    assert settings.directory.path.endswith("directory.json")
