"""Collection-like view over the lines of a (possibly gzipped) text file."""
from __future__ import annotations

import io
import logging
import os
import threading
from collections.abc import Collection
from pathlib import Path
from typing import List, Optional, Union

from common.config import error_mode_from_policy
from common.errors import UnsupportedOperation
from common.models import ReaderSettings
from .buffer import LineBuffer
from .channel import is_gzip_path, open_text_channel
from .stream import LineStream

logger = logging.getLogger(__name__)


class LinesView(Collection):
    """Exhibits the lines of a file as a reusable collection.

    Every iteration opens an independent :class:`LineStream` from the start of
    the file, so the view can be iterated any number of times, even
    concurrently. Nothing is held open by the view itself.

    ``len(view)`` scans the whole file once and caches the result; ``in``
    always scans. ``list(view)`` works but asks for ``len()`` first, so
    prefer :meth:`collect_all` when all lines are needed.
    """

    def __init__(
        self,
        path: Union[str, os.PathLike],
        encoding: Optional[str] = None,
        compressed: bool = False,
        *,
        errors: str = "replace",
    ) -> None:
        self._path = Path(path)
        self._encoding = encoding
        self._compressed = compressed
        self._errors = errors
        self._cached_count: Optional[int] = None
        self._count_lock = threading.Lock()

    @classmethod
    def from_settings(
        cls,
        path: Union[str, os.PathLike],
        settings: ReaderSettings,
        *,
        compressed: Optional[bool] = None,
    ) -> "LinesView":
        path = Path(path)
        if compressed is None:
            if settings.compression == "auto":
                compressed = is_gzip_path(path)
            else:
                compressed = settings.compression == "gzip"
        return cls(
            path,
            settings.encoding,
            compressed,
            errors=error_mode_from_policy(settings.error_policy),
        )

    @property
    def path(self) -> Path:
        return self._path

    @property
    def encoding(self) -> Optional[str]:
        return self._encoding

    @property
    def compressed(self) -> bool:
        return self._compressed

    @property
    def errors(self) -> str:
        return self._errors

    @property
    def cached_count(self) -> Optional[int]:
        return self._cached_count

    def new_stream(self) -> LineStream:
        """Open a fresh, independent read session from the start of the file."""

        handle = open_text_channel(
            self._path,
            encoding=self._encoding,
            compressed=self._compressed,
            errors=self._errors,
        )
        logger.debug(
            "Opened line stream over %s (encoding=%s, compressed=%s)",
            self._path,
            self._encoding or "<platform>",
            self._compressed,
        )
        return LineStream(self._path, handle)

    def count(self) -> int:
        """Return the number of lines, scanning the file on first use only.

        Concurrent first callers wait for a single scan.
        """

        cached = self._cached_count
        if cached is not None:
            return cached
        with self._count_lock:
            if self._cached_count is None:
                total = 0
                with self.new_stream() as stream:
                    while stream.has_more():
                        stream.take_next()
                        total += 1
                self._cached_count = total
                logger.debug("Counted %d lines in %s", total, self._path)
            return self._cached_count

    def collect_all(self) -> List[str]:
        """Return every line as an independent string, in file order."""

        lines: List[str] = []
        with self.new_stream() as stream:
            while stream.has_more():
                lines.append(stream.take_next().copy())
        return lines

    def render_all(self) -> str:
        """Join all lines with ``os.linesep`` (no trailing separator)."""

        out = io.StringIO()
        with self.new_stream() as stream:
            first = True
            while stream.has_more():
                if not first:
                    out.write(os.linesep)
                out.write(str(stream.take_next()))
                first = False
        return out.getvalue()

    def to_array(self) -> list:
        raise UnsupportedOperation(
            "Fixed-size array export would require a full eager scan; use collect_all()"
        )

    def __iter__(self) -> LineStream:
        return self.new_stream()

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, item: object) -> bool:
        if not isinstance(item, (str, LineBuffer)):
            return False
        target = str(item)
        with self.new_stream() as stream:
            while stream.has_more():
                if stream.take_next() == target:
                    return True
        return False

    def __str__(self) -> str:
        return self.render_all()

    def __repr__(self) -> str:
        return (
            f"LinesView(path={str(self._path)!r}, encoding={self._encoding!r}, "
            f"compressed={self._compressed!r})"
        )
