"""Streaming, collection-like access to the lines of text files."""

from .arrow import collect_arrow
from .buffer import LineBuffer
from .channel import open_text_channel
from .stream import LineStream
from .view import LinesView

__all__ = ["LineBuffer", "LineStream", "LinesView", "collect_arrow", "open_text_channel"]
