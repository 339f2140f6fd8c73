"""Vault root, timezone, and periodic note paths for Cadence."""

from __future__ import annotations

import os
from datetime import date, datetime, timedelta
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from loguru import logger

from cadence.errors import ConfigError, VaultNotFoundError
from cadence.models import NOTE_TYPES, VaultConfig


def vault_root(path: str | Path | None = None) -> Path:
    """Resolve the vault root: explicit path, then $CADENCE_VAULT, then cwd."""
    if path is None:
        path = os.environ.get("CADENCE_VAULT") or Path.cwd()
    root = Path(path).expanduser().resolve()
    if not root.is_dir():
        raise VaultNotFoundError(str(root))
    return root


def get_timezone(config: VaultConfig) -> ZoneInfo:
    try:
        return ZoneInfo(config.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone {!r} in vault config, using UTC", config.timezone)
        return ZoneInfo("UTC")


def today(config: VaultConfig) -> date:
    """Today's date in the vault's timezone."""
    return datetime.now(get_timezone(config)).date()


# ── Periods ───────────────────────────────────────────────────


def period_start(note_type: str, d: date) -> date:
    """First day of the period a note of this type covers."""
    if note_type == "daily":
        return d
    if note_type == "weekly":
        return d - timedelta(days=d.weekday())
    if note_type == "monthly":
        return d.replace(day=1)
    if note_type == "quarterly":
        return d.replace(month=(d.month - 1) // 3 * 3 + 1, day=1)
    if note_type == "yearly":
        return d.replace(month=1, day=1)
    raise ValueError(f"Unknown note type: {note_type}")


def period_dates(note_type: str, start: date, end: date) -> list[date]:
    """Distinct period starts overlapping [start, end], most recent first."""
    out: list[date] = []
    current = end
    while current >= start:
        p = period_start(note_type, current)
        if not out or out[-1] != p:
            out.append(p)
        current = p - timedelta(days=1)
    return out


# ── Path helpers ──────────────────────────────────────────────


def render_path_pattern(pattern: str, d: date) -> str:
    """Substitute {year} {month} {date} {week} {quarter} {day} in a pattern."""
    values = {
        "year": f"{d.year:04d}",
        "month": f"{d.month:02d}",
        "date": f"{d.day:02d}",
        "week": f"{d.isocalendar()[1]:02d}",
        "quarter": str((d.month - 1) // 3 + 1),
        "day": d.strftime("%A"),
    }
    result = pattern
    for name, value in values.items():
        result = result.replace("{" + name + "}", value)
    return result


def note_path(vault_path: str | Path, config: VaultConfig, note_type: str, d: date) -> str:
    """Absolute path of the periodic note of this type for date d."""
    if note_type not in NOTE_TYPES:
        raise ValueError(f"Unknown note type: {note_type}")
    pattern = config.paths.get(note_type)
    if not pattern:
        raise ConfigError(f"paths.{note_type} is not configured", {"field": f"paths.{note_type}"})
    return str(Path(vault_path) / render_path_pattern(pattern, d))
