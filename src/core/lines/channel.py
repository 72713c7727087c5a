"""Opening of decoded (optionally gunzipped) text channels."""
from __future__ import annotations

import gzip
import io
import logging
from pathlib import Path
from typing import BinaryIO, Optional, TextIO

from common.errors import OpenError

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"


class _OwningGzipFile(gzip.GzipFile):
    """GzipFile that also closes the raw file it decompresses."""

    def __init__(self, raw: BinaryIO) -> None:
        self._raw = raw
        super().__init__(fileobj=raw, mode="rb")

    def close(self) -> None:
        try:
            super().close()
        finally:
            self._raw.close()


def open_text_channel(
    path: Path,
    *,
    encoding: Optional[str],
    compressed: bool,
    errors: str = "replace",
) -> TextIO:
    """Open ``path`` for line reading, failing fast on unusable input.

    The file is opened once; for gzip input its magic header is checked on
    that same handle. Line terminators (``\\n``, ``\\r\\n`` and ``\\r``) are
    normalized to ``\\n``.
    """

    _check_encoding(path, encoding)
    try:
        raw = path.open("rb")
    except OSError as exc:
        raise OpenError(path, exc.strerror or str(exc)) from exc
    try:
        binary: BinaryIO = _open_gzip(raw, path) if compressed else raw
        return io.TextIOWrapper(binary, encoding=encoding, errors=errors, newline=None)
    except BaseException:
        raw.close()
        raise


def _check_encoding(path: Path, encoding: Optional[str]) -> None:
    if encoding is None:
        return
    try:
        "".encode(encoding)
    except LookupError as exc:
        raise OpenError(path, f"unknown encoding '{encoding}'") from exc


def _open_gzip(raw: BinaryIO, path: Path) -> BinaryIO:
    try:
        magic = raw.read(len(GZIP_MAGIC))
        raw.seek(0)
    except OSError as exc:
        raise OpenError(path, exc.strerror or str(exc)) from exc
    if magic != GZIP_MAGIC:
        logger.debug("Rejecting %s: header %r is not gzip", path, magic)
        raise OpenError(path, "not a gzip stream (bad magic header)")
    return _OwningGzipFile(raw)


def is_gzip_path(path: Path) -> bool:
    return path.suffix.lower() in {".gz", ".gzip"}
