"""Columnar export of a view's lines as an Arrow chunked array."""
from __future__ import annotations

from typing import Any, List

from common.models import ReaderSettings
from .view import LinesView

try:  # pragma: no cover - optional dependency validated via tests
    import pyarrow as pa
except ImportError:  # pragma: no cover
    pa = None  # type: ignore[assignment]

DEFAULT_CHUNK_LINES = ReaderSettings().chunk_lines


def collect_arrow(view: LinesView, *, chunk_lines: int = DEFAULT_CHUNK_LINES) -> Any:
    """Materialize all lines into a ``pa.ChunkedArray`` of ``large_string``.

    At most ``chunk_lines`` Python strings are alive at once; each full chunk
    is converted to Arrow storage before reading on.
    """

    if pa is None:  # pragma: no cover - guarded by dependency
        raise RuntimeError("pyarrow is required for Arrow export. Install the 'pyarrow' dependency.")
    chunk_lines = max(1, chunk_lines)
    chunks: List[Any] = []
    buffer: List[str] = []
    with view.new_stream() as stream:
        while stream.has_more():
            buffer.append(stream.take_next().copy())
            if len(buffer) >= chunk_lines:
                chunks.append(pa.array(buffer, type=pa.large_string()))
                buffer.clear()
    if buffer:
        chunks.append(pa.array(buffer, type=pa.large_string()))
    return pa.chunked_array(chunks, type=pa.large_string())
