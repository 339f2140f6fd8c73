"""Checkbox task parsing for Cadence notes.

A task line is a dash list item with a checkbox:
    - [ ] Open task
    - [x] Done task
    - [X] Done task

After the checkbox, the rest of the line is split on whitespace and each
token is classified on its own:
    due:YYYY-MM-DD  scheduled:YYYY-MM-DD  created:YYYY-MM-DD
    age:N
    priority:high|medium|low   (or a standalone !!! / !! / !)
    #tag
Anything else is text. Tokens that look like metadata but do not validate
(e.g. due:tomorrow) stay in the text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date

from cadence.models import SHORTHAND_PRIORITY, Task, TaskMetadata


CHECKBOX_RE = re.compile(r"^(\s*)-\s+\[([ xX])\]\s+(.*)$")
LINE_SPLIT_RE = re.compile(r"\r?\n")

_DATE_TOKEN_RE = re.compile(r"^(due|scheduled|created):(\d{4}-\d{2}-\d{2})$", re.IGNORECASE)
_AGE_TOKEN_RE = re.compile(r"^age:(\d+)$", re.IGNORECASE)
_PRIORITY_TOKEN_RE = re.compile(r"^priority:(high|medium|low)$", re.IGNORECASE)
_TAG_TOKEN_RE = re.compile(r"^#([A-Za-z0-9_-]+)$")

# Token kinds
WORD = "word"
DUE = "due"
SCHEDULED = "scheduled"
CREATED = "created"
AGE = "age"
PRIORITY = "priority"
SHORTHAND = "shorthand"
TAG = "tag"


@dataclass(frozen=True)
class Token:
    kind: str
    value: object
    start: int  # offset within the full line
    end: int
    text: str


def split_lines(content: str) -> list[str]:
    """Split on LF or CRLF. A trailing newline yields a trailing empty line."""
    return LINE_SPLIT_RE.split(content)


def detect_newline(content: str) -> str:
    return "\r\n" if "\r\n" in content else "\n"


def _parse_iso_date(value: str) -> date | None:
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def classify_token(text: str) -> tuple[str, object]:
    """Return (kind, value) for one whitespace-delimited token."""
    m = _DATE_TOKEN_RE.match(text)
    if m:
        parsed = _parse_iso_date(m.group(2))
        if parsed is not None:
            return m.group(1).lower(), parsed
        return WORD, text
    m = _AGE_TOKEN_RE.match(text)
    if m:
        return AGE, int(m.group(1))
    m = _PRIORITY_TOKEN_RE.match(text)
    if m:
        return PRIORITY, m.group(1).lower()
    if text in SHORTHAND_PRIORITY:
        return SHORTHAND, SHORTHAND_PRIORITY[text]
    m = _TAG_TOKEN_RE.match(text)
    if m:
        return TAG, m.group(1)
    return WORD, text


def tokenize_line(line: str) -> tuple[re.Match[str], list[Token]] | None:
    """Split a task line into its checkbox match and classified tokens.

    Returns None if the line is not a task.
    """
    m = CHECKBOX_RE.match(line)
    if not m:
        return None
    offset = m.start(3)
    tokens = []
    for tm in re.finditer(r"\S+", m.group(3)):
        kind, value = classify_token(tm.group())
        tokens.append(Token(kind, value, offset + tm.start(), offset + tm.end(), tm.group()))
    return m, tokens


def metadata_from_tokens(tokens: list[Token]) -> TaskMetadata:
    """Fold classified tokens into metadata.

    The first occurrence of each single-valued field wins. An explicit
    priority: token beats shorthand; among shorthand runs the highest wins.
    """
    found: dict[str, object] = {}
    shorthand: list[str] = []
    tags: list[str] = []
    for tok in tokens:
        if tok.kind == TAG:
            tags.append(tok.value)
        elif tok.kind == SHORTHAND:
            shorthand.append(tok.value)
        elif tok.kind != WORD:
            found.setdefault(tok.kind, tok.value)

    priority = found.get(PRIORITY)
    if priority is None:
        for level in ("high", "medium", "low"):
            if level in shorthand:
                priority = level
                break

    return TaskMetadata(
        due=found.get(DUE),
        scheduled=found.get(SCHEDULED),
        created=found.get(CREATED),
        priority=priority,
        age=found.get(AGE),
        tags=tuple(tags),
    )


def parse_task_line(line: str, line_number: int = 1) -> Task | None:
    """Parse one line; None if it is not a checkbox task."""
    parsed = tokenize_line(line)
    if parsed is None:
        return None
    m, tokens = parsed
    text = " ".join(tok.text for tok in tokens if tok.kind == WORD)
    return Task(
        text=text,
        completed=m.group(2).lower() == "x",
        line=line_number,
        metadata=metadata_from_tokens(tokens),
        raw=line,
    )


def parse_tasks(content: str) -> list[Task]:
    """Extract every checkbox task from note text, in file order."""
    out = []
    for i, line in enumerate(split_lines(content)):
        task = parse_task_line(line, i + 1)
        if task is not None:
            out.append(task)
    return out
