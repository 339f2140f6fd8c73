"""Structured error types for Cadence task operations."""

from __future__ import annotations

from typing import Any, Mapping


class CadenceError(RuntimeError):
    """Base error carrying a stable code and structured details."""

    code = "CADENCE_ERROR"

    def __init__(self, message: str, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = dict(details or {})

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class NotATaskError(CadenceError):
    """The targeted line is not a checkbox task."""

    code = "NOT_A_TASK"

    def __init__(self, line_number: int, line: str) -> None:
        super().__init__(
            f"Line {line_number} is not a task: {line!r}",
            {"line": line_number, "content": line},
        )


class LineOutOfRangeError(CadenceError):
    code = "LINE_OUT_OF_RANGE"

    def __init__(self, line_number: int, line_count: int) -> None:
        super().__init__(
            f"Line number {line_number} is out of range (1-{line_count})",
            {"line": line_number, "lineCount": line_count},
        )


class VaultNotFoundError(CadenceError):
    code = "VAULT_NOT_FOUND"

    def __init__(self, vault_path: str) -> None:
        super().__init__(f"Vault directory does not exist: {vault_path}", {"path": vault_path})


class ConfigNotFoundError(CadenceError):
    code = "CONFIG_NOT_FOUND"

    def __init__(self, vault_path: str) -> None:
        super().__init__(
            f"No Cadence configuration found in vault: {vault_path}",
            {"path": vault_path},
        )


class ConfigError(CadenceError):
    """Raised when the vault configuration is unparseable or incomplete."""

    code = "CONFIG_INVALID"
