"""Typed dataclasses for the Cadence task engine.

Task records are frozen: every parse, aggregate or rollover call builds fresh
instances, and callers re-read a note to observe later edits.

Config models use from_dict/to_dict for YAML serialization.
camelCase in the file is mapped to snake_case in Python.
Unknown keys are ignored; missing keys use defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Generic, TypeVar, Union


PRIORITIES = ("high", "medium", "low")
PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2, "none": 3}
SHORTHAND_PRIORITY = {"!!!": "high", "!!": "medium", "!": "low"}
NOTE_TYPES = ("daily", "weekly", "monthly", "quarterly", "yearly")


# ── Tasks ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class TaskMetadata:
    due: date | None = None
    scheduled: date | None = None
    created: date | None = None
    priority: str | None = None  # high, medium, low
    age: int | None = None
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class Task:
    """One checkbox line parsed from a note."""

    text: str
    completed: bool
    line: int  # 1-indexed
    metadata: TaskMetadata = field(default_factory=TaskMetadata)
    raw: str = ""

    @property
    def priority(self) -> str:
        return self.metadata.priority or "none"

    def to_dict(self) -> dict[str, Any]:
        m = self.metadata
        d: dict[str, Any] = {
            "text": self.text,
            "completed": self.completed,
            "line": self.line,
            "metadata": {"tags": list(m.tags)},
        }
        for key in ("due", "scheduled", "created"):
            value = getattr(m, key)
            if value is not None:
                d["metadata"][key] = value.isoformat()
        if m.priority:
            d["metadata"]["priority"] = m.priority
        if m.age is not None:
            d["metadata"]["age"] = m.age
        return d


@dataclass(frozen=True)
class TaskWithSource(Task):
    source_path: str = ""
    source_date: date | None = None

    @classmethod
    def from_task(cls, task: Task, source_path: str, source_date: date) -> TaskWithSource:
        return cls(
            text=task.text,
            completed=task.completed,
            line=task.line,
            metadata=task.metadata,
            raw=task.raw,
            source_path=source_path,
            source_date=source_date,
        )

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["sourcePath"] = self.source_path
        d["sourceDate"] = self.source_date.isoformat() if self.source_date else None
        return d


@dataclass(frozen=True)
class AggregatedTasks:
    open: list[TaskWithSource] = field(default_factory=list)
    completed: list[TaskWithSource] = field(default_factory=list)
    overdue: list[TaskWithSource] = field(default_factory=list)
    stale: list[TaskWithSource] = field(default_factory=list)
    by_priority: dict[str, list[TaskWithSource]] = field(
        default_factory=lambda: {"high": [], "medium": [], "low": [], "none": []}
    )


@dataclass(frozen=True)
class SkippedTask:
    task: TaskWithSource
    reason: str


@dataclass(frozen=True)
class RolloverResult:
    rolled_over: list[TaskWithSource]
    skipped: list[SkippedTask]
    target_note_path: str


@dataclass(frozen=True)
class NewTask:
    """Input for add_task: text plus optional metadata."""

    text: str
    completed: bool = False
    metadata: TaskMetadata = field(default_factory=TaskMetadata)


# ── Metadata updates ──────────────────────────────────────────

T = TypeVar("T")


@dataclass(frozen=True)
class Keep:
    """Leave the field as it is on the line."""


@dataclass(frozen=True)
class Set(Generic[T]):
    value: T


@dataclass(frozen=True)
class Remove:
    """Strip the field's token(s) from the line."""


FieldUpdate = Union[Keep, Set, Remove]

KEEP = Keep()
REMOVE = Remove()

# Order in which new tokens are appended to a line.
UPDATE_FIELDS = ("created", "due", "scheduled", "priority", "age", "tags")


@dataclass(frozen=True)
class MetadataUpdates:
    created: FieldUpdate = KEEP
    due: FieldUpdate = KEEP
    scheduled: FieldUpdate = KEEP
    priority: FieldUpdate = KEEP
    age: FieldUpdate = KEEP
    tags: FieldUpdate = KEEP

    @classmethod
    def from_mapping(cls, d: dict[str, Any]) -> MetadataUpdates:
        """Build updates from a plain mapping where None means remove."""
        unknown = set(d) - set(UPDATE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown metadata field(s): {', '.join(sorted(unknown))}")
        kwargs: dict[str, FieldUpdate] = {}
        for key, value in d.items():
            kwargs[key] = REMOVE if value is None else Set(value)
        return cls(**kwargs)

    def items(self) -> list[tuple[str, FieldUpdate]]:
        """Non-Keep updates in append order."""
        out = []
        for name in UPDATE_FIELDS:
            update = getattr(self, name)
            if not isinstance(update, Keep):
                out.append((name, update))
        return out

    def apply_to(self, metadata: TaskMetadata) -> TaskMetadata:
        changes: dict[str, Any] = {}
        for name, update in self.items():
            if isinstance(update, Remove):
                changes[name] = () if name == "tags" else None
            else:
                changes[name] = tuple(update.value) if name == "tags" else update.value
        return replace(metadata, **changes)


# ── Vault configuration ───────────────────────────────────────


@dataclass(frozen=True)
class TasksConfig:
    rollover_enabled: bool = True
    scan_days_back: int = 7
    stale_after_days: int = 14

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> TasksConfig:
        return cls(
            rollover_enabled=bool(d.get("rolloverEnabled", True)),
            scan_days_back=int(d["scanDaysBack"]),
            stale_after_days=int(d["staleAfterDays"]),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "rolloverEnabled": self.rollover_enabled,
            "scanDaysBack": self.scan_days_back,
            "staleAfterDays": self.stale_after_days,
        }


@dataclass(frozen=True)
class VaultConfig:
    paths: dict[str, str]
    sections: dict[str, str]
    tasks: TasksConfig
    timezone: str = "UTC"
    version: int = 1

    @property
    def tasks_section(self) -> str:
        return self.sections["tasks"]

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> VaultConfig:
        return cls(
            version=int(d.get("version", 1)),
            timezone=str(d.get("timezone") or "UTC"),
            paths={str(k): str(v) for k, v in (d.get("paths") or {}).items() if v},
            sections={str(k): str(v) for k, v in (d.get("sections") or {}).items() if v},
            tasks=TasksConfig.from_dict(d.get("tasks") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "timezone": self.timezone,
            "paths": dict(self.paths),
            "sections": dict(self.sections),
            "tasks": self.tasks.to_dict(),
        }
