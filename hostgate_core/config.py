"""Settings management for hostgate-core.

Philosophy: simple, scope-aware YAML settings validated by pydantic.

Scope priority (most specific wins):
1. environment (HOSTGATE_UPDATE_DRIVER, HOSTGATE_LOG_LEVEL)
2. local (.hostgate/settings.local.yaml) - gitignored, machine-specific
3. project (.hostgate/settings.yaml) - committed, team-shared
4. global (~/.hostgate/settings.yaml) - user defaults
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from typing import Literal

import yaml
from pydantic import BaseModel
from pydantic import Field
from pydantic import ValidationError

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

ENV_UPDATE_DRIVER = "HOSTGATE_UPDATE_DRIVER"
ENV_LOG_LEVEL = "HOSTGATE_LOG_LEVEL"

DriverChoice = Literal["auto", "real", "simulated"]


class SimulationConfig(BaseModel):
    """Timings and version for the simulated update driver."""

    version: str = Field(default="2.0.0", min_length=1)
    check_delay: float = Field(default=1.0, ge=0)
    found_delay: float = Field(default=1.5, ge=0)
    progress_interval: float = Field(default=0.5, ge=0)
    progress_step: int = Field(default=10, ge=1, le=100)


class UpdateConfig(BaseModel):
    driver: DriverChoice = "auto"
    simulation: SimulationConfig = Field(default_factory=SimulationConfig)


class PermissionConfig(BaseModel):
    retained_decisions: int = Field(default=1024, ge=1)


class LoggingConfig(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"


class HostConfig(BaseModel):
    """Effective configuration for one host process."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    permissions: PermissionConfig = Field(default_factory=PermissionConfig)
    update: UpdateConfig = Field(default_factory=UpdateConfig)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> HostConfig:
        try:
            return cls.model_validate(dict(data or {}))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid hostgate settings: {e}") from e


@dataclass
class SettingsPaths:
    """Standard paths for settings files."""

    global_settings: Path
    project_settings: Path
    local_settings: Path

    @classmethod
    def default(cls) -> SettingsPaths:
        return cls(
            global_settings=Path.home() / ".hostgate" / "settings.yaml",
            project_settings=Path.cwd() / ".hostgate" / "settings.yaml",
            local_settings=Path.cwd() / ".hostgate" / "settings.local.yaml",
        )

    def ordered(self) -> list[Path]:
        """Least specific first."""
        return [self.global_settings, self.project_settings, self.local_settings]


def deep_merge(base: dict[str, Any], overlay: Mapping[str, Any]) -> dict[str, Any]:
    """Deep merge two dicts; overlay wins."""
    result = dict(base)
    for key, value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, Mapping):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            content = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Skipping unreadable settings file {path}: {e}")
        return {}
    if not isinstance(content, dict):
        logger.warning(f"Skipping settings file {path}: top level is not a mapping")
        return {}
    return content


def _env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if driver := environ.get(ENV_UPDATE_DRIVER):
        overrides["update"] = {"driver": driver.strip().lower()}
    if level := environ.get(ENV_LOG_LEVEL):
        overrides["logging"] = {"level": level.strip().upper()}
    return overrides


def load_settings(
    paths: SettingsPaths | None = None,
    environ: Mapping[str, str] | None = None,
) -> HostConfig:
    """Load and merge settings from all scopes, then validate.

    Raises:
        ConfigurationError: The merged settings do not validate.
    """
    paths = paths or SettingsPaths.default()
    environ = os.environ if environ is None else environ

    merged: dict[str, Any] = {}
    for path in paths.ordered():
        if path.exists():
            logger.debug(f"Loading settings from {path}")
            merged = deep_merge(merged, _read_yaml(path))
    merged = deep_merge(merged, _env_overrides(environ))

    return HostConfig.from_mapping(merged)


def dump_settings(config: HostConfig) -> str:
    """Render effective settings as YAML."""
    return yaml.safe_dump(config.model_dump(mode="json"), sort_keys=False)
