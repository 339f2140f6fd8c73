"""Note and config file access for Cadence.

Every write lands through a sibling temp file that is fsynced and renamed
over the target, so a crashed write never leaves a half-written note.
"""

from __future__ import annotations

import fcntl
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml


def read_text(path: str | Path) -> str:
    """Read a UTF-8 file, or "" when it does not exist."""
    path = Path(path)
    if not path.is_file():
        return ""
    with open(path, encoding="utf-8", newline="") as f:
        return f.read()


def _replace_atomically(path: Path, content: str, suffix: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}.", suffix=suffix)
    try:
        # newline="" writes CRLF notes back byte for byte
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            try:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


def write_text_atomic(path: str | Path, content: str) -> None:
    _replace_atomically(Path(path), content, ".md.tmp")


def write_yaml_atomic(path: str | Path, data: dict[str, Any]) -> None:
    """Dump data as block-style YAML, keeping key order."""
    content = yaml.safe_dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False)
    _replace_atomically(Path(path), content, ".yaml.tmp")


class LocalFileSystem:
    """Disk access for the task engine.

    Swap in another object with the same three methods to run scans and
    edits against something other than the local disk.
    """

    def exists(self, path: str | Path) -> bool:
        return Path(path).is_file()

    def read_text(self, path: str | Path) -> str:
        with open(path, encoding="utf-8", newline="") as f:
            return f.read()

    def write_text(self, path: str | Path, content: str) -> None:
        write_text_atomic(path, content)
