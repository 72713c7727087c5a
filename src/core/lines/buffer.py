"""Reusable mutable holder for the current line of a read session."""
from __future__ import annotations

from typing import Union


class LineBuffer:
    """Mutable line text overwritten in place on every advance.

    A borrowed buffer is only valid until the next ``has_more()`` or
    ``take_next()`` on the stream that owns it. Call ``copy()`` (or ``str()``)
    to keep the value.
    """

    __slots__ = ("_text",)
    __hash__ = None  # type: ignore[assignment]

    def __init__(self, text: str = "") -> None:
        self._text = text

    def replace(self, text: str) -> "LineBuffer":
        self._text = text
        return self

    def clear(self) -> None:
        self._text = ""

    def copy(self) -> str:
        return self._text

    def startswith(self, prefix: Union[str, tuple]) -> bool:
        return self._text.startswith(prefix)

    def endswith(self, suffix: Union[str, tuple]) -> bool:
        return self._text.endswith(suffix)

    def __str__(self) -> str:
        return self._text

    def __repr__(self) -> str:
        return f"LineBuffer({self._text!r})"

    def __len__(self) -> int:
        return len(self._text)

    def __bool__(self) -> bool:
        return bool(self._text)

    def __contains__(self, item: str) -> bool:
        return item in self._text

    def __eq__(self, other: object) -> bool:
        if isinstance(other, LineBuffer):
            return self._text == other._text
        if isinstance(other, str):
            return self._text == other
        return NotImplemented
