"""In-place task edits for Cadence notes.

Each operation reads the whole note, changes exactly one line, and writes
the note back atomically. Bytes outside the edited tokens are preserved,
including the note's LF/CRLF convention.
"""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path

from loguru import logger

from cadence.checkbox import (
    AGE,
    CREATED,
    DUE,
    PRIORITY,
    SCHEDULED,
    SHORTHAND,
    TAG,
    Token,
    detect_newline,
    parse_task_line,
    split_lines,
    tokenize_line,
)
from cadence.errors import LineOutOfRangeError, NotATaskError
from cadence.fileio import LocalFileSystem
from cadence.models import (
    PRIORITIES,
    MetadataUpdates,
    NewTask,
    Remove,
    Task,
)


# Token kinds owned by each metadata field.
FIELD_KINDS = {
    "due": (DUE,),
    "scheduled": (SCHEDULED,),
    "created": (CREATED,),
    "age": (AGE,),
    "priority": (PRIORITY, SHORTHAND),
    "tags": (TAG,),
}


# ── Line rewriting ────────────────────────────────────────────


def _tokens(line: str) -> list[Token]:
    parsed = tokenize_line(line)
    if parsed is None:
        raise ValueError(f"Not a task line: {line!r}")
    return parsed[1]


def _strip_tokens(line: str, kinds: tuple[str, ...]) -> str:
    """Remove every token of the given kinds with its leading whitespace.

    The first token after the checkbox takes its trailing whitespace instead,
    so the checkbox keeps its separating space.
    """
    tokens = _tokens(line)
    if not tokens:
        return line
    first_start = tokens[0].start
    for tok in reversed(tokens):
        if tok.kind not in kinds:
            continue
        start, end = tok.start, tok.end
        if start == first_start:
            while end < len(line) and line[end].isspace():
                end += 1
        else:
            while start > 0 and line[start - 1].isspace():
                start -= 1
        line = line[:start] + line[end:]
    return line


def _append_token(line: str, text: str) -> str:
    return line.rstrip() + " " + text


def _format_value(name: str, value: object) -> str:
    if name in ("due", "scheduled", "created"):
        if isinstance(value, datetime):
            value = value.date()
        if not isinstance(value, date):
            raise TypeError(f"{name} must be a date, got {type(value).__name__}")
        return f"{name}:{value.isoformat()}"
    if name == "age":
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise ValueError(f"age must be a non-negative integer, got {value!r}")
        return f"age:{value}"
    if name == "priority":
        if value not in PRIORITIES:
            raise ValueError(f"priority must be one of {', '.join(PRIORITIES)}, got {value!r}")
        return f"priority:{value}"
    raise ValueError(f"Unknown metadata field: {name}")


def _set_field(line: str, name: str, value: object) -> str:
    if name == "tags":
        line = _strip_tokens(line, (TAG,))
        tags = [str(t).lstrip("#") for t in value]
        if tags:
            line = _append_token(line, " ".join(f"#{t}" for t in tags))
        return line

    new_text = _format_value(name, value)
    if name == "priority":
        line = _strip_tokens(line, (SHORTHAND,))
    kind = FIELD_KINDS[name][0]
    for tok in _tokens(line):
        if tok.kind == kind:
            return line[: tok.start] + new_text + line[tok.end :]
    return _append_token(line, new_text)


def apply_updates(line: str, updates: MetadataUpdates) -> str:
    """Return the task line with metadata updates applied.

    Fields are processed in append order (created, due, scheduled,
    priority, age, tags) so new tokens land in a predictable order.
    """
    for name, update in updates.items():
        if isinstance(update, Remove):
            line = _strip_tokens(line, FIELD_KINDS[name])
        else:
            line = _set_field(line, name, update.value)
    return line


def build_task_line(task: NewTask, today: date) -> str:
    """Render a new checkbox line, always stamping created."""
    m = task.metadata
    line = f"- [{'x' if task.completed else ' '}] {task.text.strip()}"
    line += " " + _format_value("created", m.created or today)
    if m.due:
        line += " " + _format_value("due", m.due)
    if m.scheduled:
        line += " " + _format_value("scheduled", m.scheduled)
    if m.priority:
        line += " " + _format_value("priority", m.priority)
    if m.age is not None:
        line += " " + _format_value("age", m.age)
    if m.tags:
        line += " " + " ".join(f"#{t}" for t in m.tags)
    return line


# ── Sections ──────────────────────────────────────────────────


def find_section_index(lines: list[str], section: str) -> int | None:
    """Index of the heading line matching section (trimmed, case-insensitive)."""
    wanted = section.strip().lower()
    for i, line in enumerate(lines):
        if line.strip().lower() == wanted:
            return i
    return None


def insert_under_section(content: str, section: str, new_lines: list[str]) -> tuple[str, int]:
    """Insert lines right after the section heading.

    A missing heading is appended (after a blank separator line when the
    note has content). Returns the new content and the 1-indexed line
    number of the first inserted line.
    """
    newline = detect_newline(content)
    lines = split_lines(content) if content else []
    idx = find_section_index(lines, section)
    if idx is not None:
        lines[idx + 1 : idx + 1] = new_lines
        return newline.join(lines), idx + 2

    if lines and lines[-1] == "":
        lines.pop()
    if lines and lines[-1].strip():
        lines.append("")
    lines.append(section.strip())
    first = len(lines) + 1
    lines.extend(new_lines)
    lines.append("")
    return newline.join(lines), first


# ── Operations ────────────────────────────────────────────────


def _load_task_line(
    fs: LocalFileSystem, file_path: str | Path, line_number: int
) -> tuple[str, list[str], Task]:
    content = fs.read_text(file_path)
    lines = split_lines(content)
    if line_number < 1 or line_number > len(lines):
        raise LineOutOfRangeError(line_number, len(lines))
    line = lines[line_number - 1]
    task = parse_task_line(line, line_number)
    if task is None:
        raise NotATaskError(line_number, line)
    return content, lines, task


def _write_line(
    fs: LocalFileSystem,
    file_path: str | Path,
    content: str,
    lines: list[str],
    line_number: int,
    new_line: str,
) -> None:
    if lines[line_number - 1] == new_line:
        return
    lines[line_number - 1] = new_line
    fs.write_text(file_path, detect_newline(content).join(lines))


def toggle_task(
    file_path: str | Path, line_number: int, fs: LocalFileSystem | None = None
) -> Task:
    """Flip [ ] <-> [x] on one line, leaving everything else untouched."""
    fs = fs or LocalFileSystem()
    content, lines, task = _load_task_line(fs, file_path, line_number)
    line = lines[line_number - 1]
    m = tokenize_line(line)[0]
    mark = " " if task.completed else "x"
    new_line = line[: m.start(2)] + mark + line[m.end(2) :]
    _write_line(fs, file_path, content, lines, line_number, new_line)
    logger.info("Toggled task {}:{} -> {}", file_path, line_number, "done" if mark == "x" else "open")
    return parse_task_line(new_line, line_number)


def update_metadata(
    file_path: str | Path,
    line_number: int,
    updates: MetadataUpdates,
    fs: LocalFileSystem | None = None,
) -> Task:
    """Set, replace, or remove metadata tokens on one task line."""
    fs = fs or LocalFileSystem()
    content, lines, _task = _load_task_line(fs, file_path, line_number)
    new_line = apply_updates(lines[line_number - 1], updates)
    _write_line(fs, file_path, content, lines, line_number, new_line)
    logger.info(
        "Updated task {}:{} ({})",
        file_path,
        line_number,
        ", ".join(name for name, _ in updates.items()) or "no changes",
    )
    return parse_task_line(new_line, line_number)


def add_task(
    file_path: str | Path,
    section: str,
    new_task: NewTask,
    fs: LocalFileSystem | None = None,
    today: date | None = None,
) -> Task:
    """Insert a new task under a section heading, creating what is missing."""
    fs = fs or LocalFileSystem()
    task_line = build_task_line(new_task, today or date.today())
    content = fs.read_text(file_path) if fs.exists(file_path) else ""
    updated, line_number = insert_under_section(content, section, [task_line])
    fs.write_text(file_path, updated)
    logger.info("Added task to {}:{}", file_path, line_number)
    return parse_task_line(task_line, line_number)
