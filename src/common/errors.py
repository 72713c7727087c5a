"""Shared error codes and exceptions for line readers."""
from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    CONFIG_ERROR = "CONFIG_ERROR"
    OPEN_ERROR = "OPEN_ERROR"
    READ_ERROR = "READ_ERROR"
    CLOSE_ERROR = "CLOSE_ERROR"
    STATE_ERROR = "STATE_ERROR"
    UNSUPPORTED = "UNSUPPORTED"


class BackendError(RuntimeError):
    """Exception carrying a structured error code for CLI/callers."""

    def __init__(self, code: ErrorCode, message: str, *, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.code = code
        self.context = context or {}

    def __str__(self) -> str:  # pragma: no cover - formatting sugar
        base = super().__str__()
        return f"[{self.code.value}] {base}" if base else self.code.value


class OpenError(BackendError):
    """Raised when a read session cannot be opened."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(
            ErrorCode.OPEN_ERROR,
            f"Cannot open '{path}': {reason}",
            context={"path": str(path)},
        )


class ReadError(BackendError):
    """Raised when the underlying channel fails mid-scan."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(
            ErrorCode.READ_ERROR,
            f"Read failed for '{path}': {reason}",
            context={"path": str(path)},
        )


class CloseError(BackendError):
    """Raised when releasing a channel fails; the stream is closed regardless."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(
            ErrorCode.CLOSE_ERROR,
            f"Close failed for '{path}': {reason}",
            context={"path": str(path)},
        )


class NoMoreLines(BackendError, LookupError):
    def __init__(self, path: Path) -> None:
        super().__init__(
            ErrorCode.STATE_ERROR,
            f"No more lines in '{path}'",
            context={"path": str(path)},
        )


class UnsupportedOperation(BackendError, NotImplementedError):
    def __init__(self, message: str) -> None:
        super().__init__(ErrorCode.UNSUPPORTED, message)
