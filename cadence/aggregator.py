"""Task aggregation across periodic notes.

Scans a window of dated notes, parses their checkbox tasks, and sorts them
into open / completed / overdue / stale buckets plus a by-priority view.
"""

from __future__ import annotations

from datetime import date, timedelta
from pathlib import Path
from typing import Iterable

from loguru import logger

from cadence.checkbox import parse_tasks
from cadence.config import ConfigCache
from cadence.fileio import LocalFileSystem
from cadence.models import PRIORITY_ORDER, AggregatedTasks, TaskWithSource, VaultConfig
from cadence.workspace import note_path, period_dates
from cadence.workspace import today as vault_today


def sort_key(task: TaskWithSource) -> tuple[int, bool, date]:
    """Priority first (high..none), then due ascending, undated last."""
    due = task.metadata.due
    return (PRIORITY_ORDER[task.priority], due is None, due or date.max)


def sort_tasks(tasks: Iterable[TaskWithSource]) -> list[TaskWithSource]:
    return sorted(tasks, key=sort_key)


def is_overdue(task: TaskWithSource, today: date) -> bool:
    """Due strictly before today. A task due today is not overdue."""
    return task.metadata.due is not None and task.metadata.due < today


def is_stale(task: TaskWithSource, today: date, stale_after_days: int) -> bool:
    """Any one of three age signals past the threshold marks a task stale."""
    m = task.metadata
    if m.age is not None:
        if m.age > stale_after_days:
            return True
    elif task.source_date is not None and (today - task.source_date).days > stale_after_days:
        return True
    if m.created is not None and (today - m.created).days > stale_after_days:
        return True
    return False


def collect_tasks(
    vault_path: str | Path,
    config: VaultConfig,
    note_type: str,
    start: date,
    end: date,
    fs: LocalFileSystem | None = None,
    open_only: bool = False,
) -> list[TaskWithSource]:
    """Parse every note of one type in [start, end], most recent first.

    Missing notes are skipped; unreadable ones are logged and skipped.
    """
    fs = fs or LocalFileSystem()
    out: list[TaskWithSource] = []
    for d in period_dates(note_type, start, end):
        path = note_path(vault_path, config, note_type, d)
        try:
            if not fs.exists(path):
                continue
            content = fs.read_text(path)
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("Skipping unreadable note {}: {}", path, exc)
            continue
        for task in parse_tasks(content):
            if open_only and task.completed:
                continue
            out.append(TaskWithSource.from_task(task, path, d))
    return out


def categorize_tasks(
    tasks: list[TaskWithSource],
    today: date,
    stale_after_days: int,
    include_completed: bool = False,
) -> AggregatedTasks:
    open_tasks = [t for t in tasks if not t.completed]
    completed = [t for t in tasks if t.completed] if include_completed else []
    by_priority: dict[str, list[TaskWithSource]] = {p: [] for p in PRIORITY_ORDER}
    for t in open_tasks:
        by_priority[t.priority].append(t)

    return AggregatedTasks(
        open=sort_tasks(open_tasks),
        completed=sort_tasks(completed),
        overdue=sort_tasks(t for t in open_tasks if is_overdue(t, today)),
        stale=sort_tasks(t for t in open_tasks if is_stale(t, today, stale_after_days)),
        by_priority={p: sort_tasks(ts) for p, ts in by_priority.items()},
    )


def aggregate(
    vault_path: str | Path,
    days_back: int | None = None,
    include_completed: bool = False,
    note_types: Iterable[str] = ("daily",),
    *,
    cache: ConfigCache | None = None,
    fs: LocalFileSystem | None = None,
    today: date | None = None,
) -> AggregatedTasks:
    """Aggregate tasks from notes dated today back through days_back days.

    days_back defaults to the vault's tasks.scanDaysBack.
    """
    config = (cache or ConfigCache()).get(vault_path)
    if today is None:
        today = vault_today(config)
    if days_back is None:
        days_back = config.tasks.scan_days_back
    if days_back < 0:
        raise ValueError("days_back must be non-negative")

    start = today - timedelta(days=days_back)
    tasks: list[TaskWithSource] = []
    for note_type in note_types:
        tasks.extend(collect_tasks(vault_path, config, note_type, start, today, fs=fs))

    return categorize_tasks(tasks, today, config.tasks.stale_after_days, include_completed)


def group_by_source(tasks: Iterable[TaskWithSource]) -> dict[str, list[TaskWithSource]]:
    """Group tasks by source note, keeping first-seen order."""
    grouped: dict[str, list[TaskWithSource]] = {}
    for task in tasks:
        grouped.setdefault(task.source_path, []).append(task)
    return grouped
