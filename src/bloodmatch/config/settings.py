# src/bloodmatch/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/bloodmatch/config/defaults.yaml`, then optionally overridden by:
- environment variables (`BLOODMATCH_LOG_LEVEL`, `BLOODMATCH_DIRECTORY_PATH`)
- an external YAML file via `BLOODMATCH_CONFIG_PATH`

Design rule:
- Radii, limits and thresholds live in YAML, not hard-coded in the matching flows.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from bloodmatch.core.env import load_dotenv_if_present


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `bloodmatch.config`."""
    text = resources.files("bloodmatch.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "BloodMatch"
    log_level: str = "INFO"


class DirectorySettings(BaseModel):
    path: str = "data/catalogs/directory.json"


class MatchingSettings(BaseModel):
    default_radius_km: float = Field(50, gt=0)
    default_limit: int = Field(10, gt=0)


class BloodBankSearchSettings(BaseModel):
    radius_km: float = Field(25, gt=0)
    limit: int = Field(10, gt=0)
    expand_when_empty: bool = True
    # Half the Earth's circumference: every located bank qualifies.
    expanded_radius_km: float = Field(20_038, gt=0)
    prefer_in_stock: bool = True
    far_notice_km: float = Field(15, ge=0)


class IncomingRequestSettings(BaseModel):
    default_service_radius_km: float = Field(10, gt=0)
    limit: int = Field(10, gt=0)


class CriticalDonorSettings(BaseModel):
    radius_km: float = Field(10, gt=0)
    limit: int = Field(20, gt=0)


class EmergencySettings(BaseModel):
    blood_banks: BloodBankSearchSettings = Field(default_factory=BloodBankSearchSettings)
    incoming_requests: IncomingRequestSettings = Field(default_factory=IncomingRequestSettings)
    critical_donors: CriticalDonorSettings = Field(default_factory=CriticalDonorSettings)


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    directory: DirectorySettings = Field(default_factory=DirectorySettings)
    matching: MatchingSettings = Field(default_factory=MatchingSettings)
    emergency: EmergencySettings = Field(default_factory=EmergencySettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload."""
    load_dotenv_if_present()
    data = dict(data)

    log_level = os.getenv("BLOODMATCH_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    directory_path = os.getenv("BLOODMATCH_DIRECTORY_PATH")
    if directory_path:
        data.setdefault("directory", {})["path"] = directory_path

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("BLOODMATCH_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
