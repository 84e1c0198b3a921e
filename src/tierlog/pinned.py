"""
Pinned lines: status lines held at the bottom of a terminal while regular
output scrolls above them.

A PinnedLine is only a handle. Its owning Logger keeps the bound set and
does all rendering.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tierlog.core import Logger


class PinnedLine:
    """
    Usage:
        line = logger.create_pinned_line("INFO", "Downloading... 0%")
        line.set_content("Downloading... 50%")
        line.release()   # logged once as a normal INFO line

    Also usable as a context manager; the line is released on exit.
    """

    def __init__(self, parent: "Logger", level: str):
        self._parent = parent
        self._level = level
        self._content = ""

    @property
    def level(self) -> str:
        return self._level

    @property
    def content(self) -> str:
        return self._content

    @property
    def bound(self) -> bool:
        return self._parent.is_pinned_line_bound(self)

    def set_content(self, message: str) -> "PinnedLine":
        """Update the text and redraw. Does nothing once released."""
        if not self._parent.is_pinned_line_bound(self):
            return self
        self._content = message
        self._parent.update_pinned_lines()
        return self

    def release(self) -> bool:
        """Shortcut for Logger.release_pinned_line(self)."""
        return self._parent.release_pinned_line(self)

    def __enter__(self) -> "PinnedLine":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "bound" if self.bound else "released"
        return f"PinnedLine(level={self._level!r}, content={self._content!r}, {state})"
