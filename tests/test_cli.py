"""Tests for cadence/cli.py using click's CliRunner."""

import json
from datetime import datetime, timedelta, timezone

import pytest
from click.testing import CliRunner

from cadence.cli import main


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def today():
    return datetime.now(timezone.utc).date()


def test_init_writes_config(runner, tmp_path):
    result = runner.invoke(main, ["--vault", str(tmp_path), "init"])
    assert result.exit_code == 0
    assert (tmp_path / ".cadence" / "config.yaml").exists()

    again = runner.invoke(main, ["--vault", str(tmp_path), "init"])
    assert again.exit_code == 1
    assert "Invalid config" in again.output


def test_tasks_without_config_fails(runner, tmp_path):
    result = runner.invoke(main, ["--vault", str(tmp_path), "tasks"])
    assert result.exit_code == 1
    assert "Config not found" in result.output


def test_tasks_list_json(runner, vault, write_daily, today):
    write_daily(today, "## Tasks\n- [ ] Alpha !!! #work\n- [ ] Beta due:2000-01-01\n- [x] Gamma\n")
    result = runner.invoke(main, ["--vault", str(vault), "tasks", "--json"])
    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["filter"] == "open"
    assert payload["count"] == 2
    assert [t["text"] for t in payload["tasks"]] == ["Alpha", "Beta"]
    assert payload["tasks"][0]["sourcePath"] == f"Journal/Daily/{today.isoformat()}.md"
    assert payload["summary"]["overdue"] == 1
    assert payload["summary"]["byPriority"]["high"] == 1


def test_tasks_tag_filter(runner, vault, write_daily, today):
    write_daily(today, "- [ ] Alpha #Work\n- [ ] Beta #home\n")
    result = runner.invoke(main, ["--vault", str(vault), "tasks", "--tag", "work", "--flat"])
    assert result.exit_code == 0
    assert "Alpha" in result.output
    assert "Beta" not in result.output


def test_tasks_rejects_bad_days(runner, vault):
    result = runner.invoke(main, ["--vault", str(vault), "tasks", "--days", "0"])
    assert result.exit_code != 0


def test_add_and_toggle(runner, vault, today):
    result = runner.invoke(
        main, ["--vault", str(vault), "tasks", "add", "Buy milk", "--priority", "high", "--tag", "home"]
    )
    assert result.exit_code == 0, result.output
    note = vault / "Journal" / "Daily" / f"{today.isoformat()}.md"
    assert note.read_text(encoding="utf-8") == (
        f"## Tasks\n- [ ] Buy milk created:{today.isoformat()} priority:high #home\n"
    )

    toggled = runner.invoke(main, ["--vault", str(vault), "tasks", "toggle", str(note), "2"])
    assert toggled.exit_code == 0, toggled.output
    assert "- [x] Buy milk" in note.read_text(encoding="utf-8")


def test_toggle_not_a_task(runner, vault, write_daily, today):
    note = write_daily(today, "## Tasks\n")
    result = runner.invoke(main, ["--vault", str(vault), "tasks", "toggle", str(note), "1"])
    assert result.exit_code == 1
    assert "Not a task" in result.output


def test_rollover_dry_run_then_real(runner, vault, write_daily, today):
    write_daily(today - timedelta(days=1), "- [ ] Carry me\n")
    target = vault / "Journal" / "Daily" / f"{today.isoformat()}.md"

    dry = runner.invoke(main, ["--vault", str(vault), "tasks", "rollover", "--dry-run"])
    assert dry.exit_code == 0, dry.output
    assert "DRY RUN" in dry.output
    assert not target.exists()

    real = runner.invoke(main, ["--vault", str(vault), "tasks", "rollover"])
    assert real.exit_code == 0, real.output
    assert "Rolled over 1 task(s)" in real.output
    assert "age:1" in target.read_text(encoding="utf-8")

    again = runner.invoke(main, ["--vault", str(vault), "tasks", "rollover"])
    assert "No tasks to roll over." in again.output
    assert "Skipped 1 task(s)" in again.output
