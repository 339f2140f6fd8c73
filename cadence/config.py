"""Vault configuration loading, validation, and caching for Cadence.

The configuration lives at <vault>/.cadence/config.yaml. A legacy
config.json in the same directory is read with the same YAML loader.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from cadence.errors import ConfigError, ConfigNotFoundError
from cadence.fileio import read_text, write_yaml_atomic
from cadence.models import VaultConfig


CONFIG_DIR = ".cadence"
CONFIG_FILES = ("config.yaml", "config.json")


def default_config_dict() -> dict[str, Any]:
    return {
        "version": 1,
        "timezone": "UTC",
        "paths": {
            "daily": "Journal/{year}/Daily/{month}/{date}.md",
            "weekly": "Journal/{year}/Weekly/W{week}.md",
            "monthly": "Journal/{year}/Monthly/{month}.md",
            "quarterly": "Journal/{year}/Quarterly/Q{quarter}.md",
            "yearly": "Journal/{year}/Year.md",
        },
        "sections": {
            "tasks": "## Tasks",
            "notes": "## Notes",
            "reflection": "## Reflection",
        },
        "tasks": {
            "rolloverEnabled": True,
            "scanDaysBack": 7,
            "staleAfterDays": 14,
        },
    }


def default_config() -> VaultConfig:
    return VaultConfig.from_dict(default_config_dict())


def config_path(vault_path: str | Path) -> Path | None:
    """Return the first existing config file in the vault, if any."""
    config_dir = Path(vault_path) / CONFIG_DIR
    for name in CONFIG_FILES:
        candidate = config_dir / name
        if candidate.is_file():
            return candidate
    return None


# ── Validation ────────────────────────────────────────────────


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_config(data: dict[str, Any]) -> list[str]:
    """Validate raw config data and return list of errors (empty if valid)."""
    errors = []

    paths = data.get("paths")
    if not isinstance(paths, dict):
        errors.append("paths must be a mapping")
    elif not isinstance(paths.get("daily"), str) or not paths["daily"].strip():
        errors.append("paths.daily must be a non-empty string")

    sections = data.get("sections")
    if not isinstance(sections, dict):
        errors.append("sections must be a mapping")
    elif not isinstance(sections.get("tasks"), str) or not sections["tasks"].strip():
        errors.append("sections.tasks must be a non-empty string")

    tasks = data.get("tasks")
    if not isinstance(tasks, dict):
        errors.append("tasks must be a mapping")
    else:
        for key in ("scanDaysBack", "staleAfterDays"):
            value = tasks.get(key)
            if not _is_int(value) or value < 0:
                errors.append(f"tasks.{key} must be a non-negative integer")
        if "rolloverEnabled" in tasks and not isinstance(tasks["rolloverEnabled"], bool):
            errors.append("tasks.rolloverEnabled must be a boolean")

    if "timezone" in data and not isinstance(data["timezone"], str):
        errors.append("timezone must be a string")

    return errors


# ── Loading ───────────────────────────────────────────────────


def load_config(vault_path: str | Path) -> VaultConfig:
    """Load and validate the vault configuration."""
    path = config_path(vault_path)
    if path is None:
        raise ConfigNotFoundError(str(vault_path))

    try:
        data = yaml.safe_load(read_text(path))
    except yaml.YAMLError as exc:
        raise ConfigError(
            f"Invalid YAML in configuration file: {path}",
            {"path": str(path)},
        ) from exc

    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping", {"path": str(path)})

    errors = validate_config(data)
    if errors:
        raise ConfigError(
            f"Invalid configuration: {'; '.join(errors)}",
            {"path": str(path), "validationErrors": errors},
        )
    return VaultConfig.from_dict(data)


def write_default_config(vault_path: str | Path, force: bool = False) -> Path:
    """Write the default config.yaml into the vault."""
    path = Path(vault_path) / CONFIG_DIR / CONFIG_FILES[0]
    if path.exists() and not force:
        raise ConfigError(
            f"Configuration file already exists at {path}. Use force to overwrite.",
            {"path": str(path)},
        )
    write_yaml_atomic(path, default_config_dict())
    return path


class ConfigCache:
    """Caller-owned cache of loaded vault configs.

    Pass the same cache into aggregate() and rollover() to load the
    config once; call clear() when the file may have changed.
    """

    def __init__(self) -> None:
        self._configs: dict[str, VaultConfig] = {}

    def get(self, vault_path: str | Path) -> VaultConfig:
        key = str(vault_path)
        if key not in self._configs:
            self._configs[key] = load_config(vault_path)
        return self._configs[key]

    def clear(self) -> None:
        self._configs.clear()

    def __contains__(self, vault_path: object) -> bool:
        return str(vault_path) in self._configs
