"""Roll incomplete tasks from earlier daily notes into a target day.

The pipeline:
1. Resolve the target date and its daily note path
2. Collect open tasks from the previous N days, most recent first
3. Build the dedup barrier from task texts already in the target note
4. Skip duplicates, keeping the first candidate of each text
5. Bump age by one and stamp created (source date) when missing
6. Insert the survivors under the tasks section in one write

Re-running on the same day is a no-op: every candidate hits the barrier.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, timedelta
from pathlib import Path

from loguru import logger

from cadence.aggregator import collect_tasks
from cadence.checkbox import parse_tasks
from cadence.config import ConfigCache
from cadence.fileio import LocalFileSystem
from cadence.models import (
    KEEP,
    MetadataUpdates,
    RolloverResult,
    Set,
    SkippedTask,
    TaskWithSource,
    VaultConfig,
)
from cadence.modifier import apply_updates, insert_under_section
from cadence.workspace import note_path
from cadence.workspace import today as vault_today

ALREADY_EXISTS = "already exists"


def normalize_text(text: str) -> str:
    return text.strip().lower()


def _existing_texts(fs: LocalFileSystem, path: str) -> set[str]:
    if not fs.exists(path):
        return set()
    return {normalize_text(t.text) for t in parse_tasks(fs.read_text(path))}


def bump_task(task: TaskWithSource) -> TaskWithSource:
    """Carry a task forward one day: age + 1, created defaults to source date."""
    m = task.metadata
    updates = MetadataUpdates(
        created=KEEP if m.created is not None else Set(task.source_date),
        age=Set((m.age or 0) + 1),
    )
    new_raw = apply_updates(task.raw, updates)
    return replace(task, raw=new_raw, metadata=updates.apply_to(m))


def _plan(
    vault_path: str | Path,
    config: VaultConfig,
    target: date,
    source_days_back: int,
    fs: LocalFileSystem,
) -> tuple[str, list[TaskWithSource], list[SkippedTask]]:
    target_path = note_path(vault_path, config, "daily", target)
    candidates = collect_tasks(
        vault_path,
        config,
        "daily",
        target - timedelta(days=source_days_back),
        target - timedelta(days=1),
        fs=fs,
        open_only=True,
    )

    barrier = _existing_texts(fs, target_path)
    rolled: list[TaskWithSource] = []
    skipped: list[SkippedTask] = []
    for task in candidates:
        key = normalize_text(task.text)
        if key in barrier:
            skipped.append(SkippedTask(task=task, reason=ALREADY_EXISTS))
            continue
        barrier.add(key)
        rolled.append(bump_task(task))
    return target_path, rolled, skipped


def _resolve(
    vault_path: str | Path,
    source_days_back: int | None,
    target_date: date | None,
    cache: ConfigCache | None,
) -> tuple[VaultConfig, date, int]:
    config = (cache or ConfigCache()).get(vault_path)
    target = target_date or vault_today(config)
    days = config.tasks.scan_days_back if source_days_back is None else source_days_back
    if days < 0:
        raise ValueError("source_days_back must be non-negative")
    return config, target, days


def preview_rollover(
    vault_path: str | Path,
    source_days_back: int | None = None,
    target_date: date | None = None,
    *,
    cache: ConfigCache | None = None,
    fs: LocalFileSystem | None = None,
) -> RolloverResult:
    """Compute what rollover() would do without writing anything."""
    fs = fs or LocalFileSystem()
    config, target, days = _resolve(vault_path, source_days_back, target_date, cache)
    target_path, rolled, skipped = _plan(vault_path, config, target, days, fs)
    return RolloverResult(rolled_over=rolled, skipped=skipped, target_note_path=target_path)


def rollover(
    vault_path: str | Path,
    source_days_back: int | None = None,
    target_date: date | None = None,
    *,
    cache: ConfigCache | None = None,
    fs: LocalFileSystem | None = None,
) -> RolloverResult:
    """Move open tasks from previous days into the target day's note."""
    fs = fs or LocalFileSystem()
    config, target, days = _resolve(vault_path, source_days_back, target_date, cache)
    target_path, rolled, skipped = _plan(vault_path, config, target, days, fs)

    if rolled:
        content = fs.read_text(target_path) if fs.exists(target_path) else ""
        updated, _first = insert_under_section(
            content, config.tasks_section, [t.raw for t in rolled]
        )
        fs.write_text(target_path, updated)

    logger.info(
        "Rolled over {} task(s) into {} ({} skipped)", len(rolled), target_path, len(skipped)
    )
    return RolloverResult(rolled_over=rolled, skipped=skipped, target_note_path=target_path)
