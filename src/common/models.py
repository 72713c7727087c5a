"""Data models shared across the CLI and the line readers."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

CompressionMode = Literal["auto", "gzip", "none"]


@dataclass(slots=True)
class ReaderSettings:
    """Knobs applied to every read session opened from a view."""

    encoding: Optional[str] = "utf-8"  # None -> platform default
    error_policy: str = "replace"  # fail-fast | strict | replace
    compression: CompressionMode = "auto"
    chunk_lines: int = 65_536  # rows per chunk for columnar export


@dataclass(slots=True)
class ConfigDocument:
    version: int
    reader: ReaderSettings
    source: Optional[str] = None
