"""Single-use read session with one line of lookahead."""
from __future__ import annotations

import logging
import threading
import weakref
import zlib
from pathlib import Path
from typing import Iterator, Optional, TextIO

from common.errors import CloseError, NoMoreLines, ReadError
from .buffer import LineBuffer

logger = logging.getLogger(__name__)


class LineStream:
    """Iterates the lines of one open channel, reusing a single buffer.

    Two ways to consume a stream:

    * ``for line in stream`` yields independent ``str`` values;
    * ``has_more()`` / ``take_next()`` lend out the stream's own
      :class:`LineBuffer`, which is overwritten by the next advance.

    The stream closes itself when the end of the channel is reached. Use it
    as a context manager so that early exits release the channel too; a
    finalizer closes abandoned streams as a last resort.
    """

    def __init__(self, path: Path, handle: TextIO) -> None:
        self.path = path
        self._handle: Optional[TextIO] = handle
        self._buffer = LineBuffer()
        self._pending: Optional[LineBuffer] = None
        self._advance_needed = True
        self._close_lock = threading.Lock()
        self._finalizer = weakref.finalize(self, _release_abandoned, handle, str(path))

    @property
    def closed(self) -> bool:
        return self._handle is None

    def has_more(self) -> bool:
        """Return whether another line is available, reading ahead at most once."""

        if self._advance_needed:
            handle = self._handle
            if handle is None:
                self._pending = None
            else:
                try:
                    line = handle.readline()
                except (OSError, EOFError, UnicodeDecodeError, zlib.error) as exc:
                    raise ReadError(self.path, str(exc)) from exc
                if line:
                    self._pending = self._buffer.replace(line[:-1] if line.endswith("\n") else line)
                else:
                    self._pending = None
                    self.close()
            self._advance_needed = False
        return self._pending is not None

    def take_next(self) -> LineBuffer:
        """Lend out the next line; the buffer is reused by the next advance."""

        if not self.has_more():
            raise NoMoreLines(self.path)
        self._advance_needed = True
        return self._buffer

    def close(self) -> None:
        with self._close_lock:
            handle = self._handle
            if handle is None:
                return
            self._handle = None
            self._pending = None
            self._advance_needed = False
            self._finalizer.detach()
        logger.debug("Closing line stream over %s", self.path)
        try:
            handle.close()
        except OSError as exc:
            raise CloseError(self.path, str(exc)) from exc

    def __iter__(self) -> Iterator[str]:
        return self

    def __next__(self) -> str:
        if not self.has_more():
            raise StopIteration
        self._advance_needed = True
        return self._buffer.copy()

    def __enter__(self) -> "LineStream":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<LineStream {self.path} {state}>"


def _release_abandoned(handle: TextIO, path: str) -> None:
    logger.warning("Line stream over %s was never closed; releasing it", path)
    try:
        handle.close()
    except Exception as exc:  # no caller left to receive it
        logger.warning("Ignoring close failure for abandoned stream over %s: %s", path, exc)
