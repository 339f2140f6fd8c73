"""Shared test fixtures for Cadence tests."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest
import yaml


CONFIG = {
    "version": 1,
    "timezone": "UTC",
    "paths": {
        "daily": "Journal/Daily/{year}-{month}-{date}.md",
        "weekly": "Journal/Weekly/{year}-W{week}.md",
        "monthly": "Journal/Monthly/{year}-{month}.md",
        "quarterly": "Journal/Quarterly/{year}-Q{quarter}.md",
        "yearly": "Journal/Yearly/{year}.md",
    },
    "sections": {"tasks": "## Tasks", "notes": "## Notes"},
    "tasks": {"rolloverEnabled": True, "scanDaysBack": 7, "staleAfterDays": 14},
}


@pytest.fixture
def vault(tmp_path: Path) -> Path:
    """Create a temporary vault with a .cadence/config.yaml."""
    root = tmp_path / "vault"
    (root / ".cadence").mkdir(parents=True)
    (root / ".cadence" / "config.yaml").write_text(
        yaml.dump(CONFIG, default_flow_style=False), encoding="utf-8"
    )
    return root


def daily_path(vault: Path, d: date) -> Path:
    return vault / "Journal" / "Daily" / f"{d.isoformat()}.md"


@pytest.fixture
def write_daily(vault: Path):
    """Write a daily note for a date and return its path."""

    def _write(d: date, content: str) -> Path:
        path = daily_path(vault, d)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content.encode("utf-8"))
        return path

    return _write
