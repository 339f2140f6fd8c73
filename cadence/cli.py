"""Cadence CLI: view and manage tasks in a vault of dated notes."""

from __future__ import annotations

import json
import sys
from datetime import date
from pathlib import Path
from typing import NoReturn

import click

from cadence import __version__
from cadence.aggregator import aggregate, group_by_source
from cadence.config import ConfigCache, write_default_config
from cadence.errors import CadenceError
from cadence.logging_setup import setup_logging
from cadence.models import PRIORITY_ORDER, NewTask, TaskMetadata, TaskWithSource
from cadence.modifier import add_task, toggle_task
from cadence.rollover import preview_rollover, rollover
from cadence.workspace import note_path, vault_root
from cadence.workspace import today as vault_today

ERROR_PREFIXES = {
    "VAULT_NOT_FOUND": "Vault not found",
    "CONFIG_NOT_FOUND": "Config not found",
    "CONFIG_INVALID": "Invalid config",
    "NOT_A_TASK": "Not a task",
    "LINE_OUT_OF_RANGE": "Line out of range",
}

PRIORITY_MARKS = {"high": ("!!!", "red"), "medium": ("!!", "yellow"), "low": ("!", "blue")}

ISO_DATE = click.DateTime(formats=["%Y-%m-%d"])


def fail(exc: Exception) -> NoReturn:
    """Print a one-line error and exit non-zero."""
    if isinstance(exc, CadenceError):
        prefix = ERROR_PREFIXES.get(exc.code, "Error")
        click.echo(f"{click.style('Error:', fg='red')} {prefix}: {exc.message}", err=True)
        if exc.code in ("VAULT_NOT_FOUND", "CONFIG_NOT_FOUND"):
            click.echo("Tip: initialize the vault with 'cadence init'", err=True)
    else:
        click.echo(f"{click.style('Error:', fg='red')} {exc}", err=True)
    sys.exit(1)


def _relative(path: str, vault: Path) -> str:
    try:
        return Path(path).relative_to(vault).as_posix()
    except ValueError:
        return path


def format_task(task: TaskWithSource, vault: Path, today: date) -> str:
    parts = []
    mark = PRIORITY_MARKS.get(task.priority)
    if mark:
        parts.append(click.style(mark[0], fg=mark[1]))
    parts.append(task.text)

    m = task.metadata
    if m.due:
        days_until = (m.due - today).days
        color = "red" if days_until < 0 else "yellow" if days_until == 0 else "cyan"
        parts.append(click.style(f"due:{m.due.isoformat()}", fg=color))
    if m.age:
        parts.append(click.style(f"age:{m.age}d", fg="bright_black"))
    if m.tags:
        parts.append(click.style(" ".join(f"#{t}" for t in m.tags), fg="blue"))

    parts.append(click.style(f"[{_relative(task.source_path, vault)}:{task.line}]", dim=True))
    return " ".join(parts)


def print_tasks(tasks: list[TaskWithSource], vault: Path, today: date, flat: bool = False) -> None:
    if not tasks:
        click.echo(click.style("No tasks found.", dim=True))
        return
    if flat:
        for task in tasks:
            click.echo(format_task(task, vault, today))
        return
    for source, source_tasks in group_by_source(tasks).items():
        click.echo(click.style(_relative(source, vault), fg="cyan", bold=True))
        for task in source_tasks:
            click.echo(f"  {format_task(task, vault, today)}")
        click.echo()


def task_to_json(task: TaskWithSource, vault: Path) -> dict:
    d = task.to_dict()
    d["sourcePath"] = _relative(task.source_path, vault)
    return d


@click.group()
@click.version_option(version=__version__, package_name="cadence")
@click.option("--vault", "vault", type=click.Path(file_okay=False), help="Vault root directory.")
@click.option("--verbose", "-v", is_flag=True, help="Show debug diagnostics.")
@click.pass_context
def main(ctx: click.Context, vault: str | None, verbose: bool) -> None:
    """Cadence: tasks across your periodic notes."""
    setup_logging("DEBUG" if verbose else "WARNING")
    ctx.ensure_object(dict)
    ctx.obj["vault"] = vault
    ctx.obj["cache"] = ConfigCache()


def _vault(ctx: click.Context) -> Path:
    return vault_root(ctx.obj.get("vault"))


@main.command()
@click.option("--force", is_flag=True, help="Overwrite an existing config.")
@click.pass_context
def init(ctx: click.Context, force: bool) -> None:
    """Write a default .cadence/config.yaml into the vault."""
    try:
        path = write_default_config(_vault(ctx), force=force)
    except (CadenceError, OSError) as exc:
        fail(exc)
    click.echo(f"Wrote {path}")


@main.group(invoke_without_command=True)
@click.option("--days", type=int, default=None, help="Number of days to look back.")
@click.option("--overdue", is_flag=True, help="Show only overdue tasks.")
@click.option("--stale", is_flag=True, help="Show only stale tasks.")
@click.option("--priority", type=click.Choice(list(PRIORITY_ORDER), case_sensitive=False))
@click.option("--tag", default=None, help="Filter by tag.")
@click.option("--flat", is_flag=True, help="Flat list instead of grouped by note.")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def tasks(
    ctx: click.Context,
    days: int | None,
    overdue: bool,
    stale: bool,
    priority: str | None,
    tag: str | None,
    flat: bool,
    as_json: bool,
) -> None:
    """List open tasks from recent daily notes."""
    if ctx.invoked_subcommand is not None:
        return
    try:
        if days is not None and days < 1:
            raise click.BadParameter("--days must be a positive integer")
        vault = _vault(ctx)
        cache = ctx.obj["cache"]
        config = cache.get(vault)
        today = vault_today(config)
        days_back = days if days is not None else config.tasks.scan_days_back
        result = aggregate(vault, days_back, cache=cache, today=today)
    except (CadenceError, OSError) as exc:
        fail(exc)

    if overdue:
        shown, label, title = result.overdue, "overdue", "Overdue Tasks"
    elif stale:
        shown, label, title = result.stale, "stale", "Stale Tasks"
    elif priority:
        p = priority.lower()
        shown, label, title = result.by_priority[p], f"priority:{p}", f"{p.capitalize()} Priority Tasks"
    elif tag:
        wanted = tag.lower().lstrip("#")
        shown = [t for t in result.open if any(x.lower() == wanted for x in t.metadata.tags)]
        label, title = f"tag:{tag}", f"Tasks tagged #{wanted}"
    else:
        shown, label, title = result.open, "open", "Open Tasks"

    if as_json:
        payload = {
            "filter": label,
            "daysBack": days_back,
            "count": len(shown),
            "tasks": [task_to_json(t, vault) for t in shown],
            "summary": {
                "total": len(result.open),
                "overdue": len(result.overdue),
                "stale": len(result.stale),
                "byPriority": {p: len(ts) for p, ts in result.by_priority.items()},
            },
        }
        click.echo(json.dumps(payload, indent=2))
        return

    click.echo(click.style(f"{title} ({len(shown)}) - Last {days_back} days", bold=True))
    click.echo()
    print_tasks(shown, vault, today, flat=flat)

    if label == "open":
        summary = []
        if result.overdue:
            summary.append(click.style(f"{len(result.overdue)} overdue", fg="red"))
        if result.stale:
            summary.append(click.style(f"{len(result.stale)} stale", fg="yellow"))
        if result.by_priority["high"]:
            summary.append(click.style(f"{len(result.by_priority['high'])} high priority", fg="red"))
        if summary:
            click.echo(click.style("---", dim=True))
            click.echo(" | ".join(summary))


@tasks.command("toggle")
@click.argument("file", type=click.Path(dir_okay=False))
@click.argument("line", type=int)
@click.pass_context
def toggle_cmd(ctx: click.Context, file: str, line: int) -> None:
    """Toggle the checkbox on LINE of FILE."""
    path = Path(file)
    if not path.is_absolute() and ctx.obj.get("vault"):
        path = Path(ctx.obj["vault"]) / path
    try:
        task = toggle_task(path.resolve(), line)
    except (CadenceError, OSError) as exc:
        fail(exc)
    state = click.style("done", fg="green") if task.completed else "open"
    click.echo(f"[{state}] {task.text}")


@tasks.command("add")
@click.argument("text")
@click.option("--due", type=ISO_DATE, default=None)
@click.option("--scheduled", type=ISO_DATE, default=None)
@click.option("--priority", type=click.Choice(["high", "medium", "low"], case_sensitive=False))
@click.option("--tag", "tags", multiple=True, help="Tag (repeatable).")
@click.option("--date", "note_date", type=ISO_DATE, default=None, help="Daily note date.")
@click.pass_context
def add_cmd(ctx, text, due, scheduled, priority, tags, note_date) -> None:
    """Add a task to a daily note's tasks section."""
    try:
        vault = _vault(ctx)
        config = ctx.obj["cache"].get(vault)
        today = vault_today(config)
        target = note_date.date() if note_date else today
        path = note_path(vault, config, "daily", target)
        metadata = TaskMetadata(
            due=due.date() if due else None,
            scheduled=scheduled.date() if scheduled else None,
            priority=priority.lower() if priority else None,
            tags=tuple(t.lstrip("#") for t in tags),
        )
        task = add_task(path, config.tasks_section, NewTask(text=text, metadata=metadata), today=today)
    except (CadenceError, OSError, ValueError) as exc:
        fail(exc)
    click.echo(f"Added to {_relative(path, vault)}:{task.line}: {task.raw.strip()}")


@tasks.command("rollover")
@click.option("--days", type=int, default=None, help="Days to scan back for open tasks.")
@click.option("--dry-run", is_flag=True, help="Show what would roll over without writing.")
@click.pass_context
def rollover_cmd(ctx: click.Context, days: int | None, dry_run: bool) -> None:
    """Roll incomplete tasks from previous days into today's note."""
    try:
        if days is not None and days < 1:
            raise click.BadParameter("--days must be a positive integer")
        vault = _vault(ctx)
        cache = ctx.obj["cache"]
        run = preview_rollover if dry_run else rollover
        result = run(vault, days, cache=cache)
        today = vault_today(cache.get(vault))
    except (CadenceError, OSError) as exc:
        fail(exc)

    if dry_run:
        click.echo(click.style("DRY RUN - No changes will be made", fg="yellow", bold=True))
        click.echo()

    if not result.rolled_over:
        click.echo(click.style("No tasks to roll over.", dim=True))
    else:
        verb = "Would roll over" if dry_run else "Rolled over"
        click.echo(click.style(f"{verb} {len(result.rolled_over)} task(s) to:", fg="green"))
        click.echo(click.style(result.target_note_path, fg="cyan"))
        click.echo()
        if dry_run:
            print_tasks(result.rolled_over, vault, today)
        else:
            for task in result.rolled_over:
                click.echo(f"  - {task.text}")

    if result.skipped:
        click.echo()
        click.echo(click.style(f"Skipped {len(result.skipped)} task(s) (already exist):", dim=True))
        for item in result.skipped:
            click.echo(click.style(f"  - {item.task.text}", dim=True))
