"""
Destination capability probing and the terminal wrapper.

A destination is anything with write(). Two extra capabilities matter:

  - terminal-capable: exposes `columns`, move_cursor(), cursor_to() and
    clear_line(). Pinned lines are redrawn on these.
  - file-like: an io stream that is not a TTY. ANSI formatting is
    stripped before writing to these.

Python text streams have no cursor primitives, so a stream whose isatty()
is true gets wrapped in TerminalStream, which emits the CSI sequences
itself. Probing happens once, when a stream is added to a logger.
"""

from __future__ import annotations

import io
import os
import shutil
from typing import Any


CSI = "\x1b["
FALLBACK_COLUMNS = 80


class TerminalStream:
    """
    Cursor control over a TTY text stream.

    clear_line() directions follow the usual convention:
        -1 → clear left of cursor, 1 → clear right of cursor, 0 → whole line
    """

    def __init__(self, stream: Any, columns: int | None = None):
        self._stream = stream
        self._columns = columns

    @property
    def stream(self) -> Any:
        return self._stream

    @property
    def columns(self) -> int:
        """Current terminal width. Re-read on every call; terminals resize."""
        if self._columns is not None:
            return self._columns
        try:
            return os.get_terminal_size(self._stream.fileno()).columns
        except (AttributeError, OSError, ValueError, io.UnsupportedOperation):
            return shutil.get_terminal_size((FALLBACK_COLUMNS, 24)).columns

    def write(self, data: str) -> Any:
        result = self._stream.write(data)
        flush = getattr(self._stream, "flush", None)
        if callable(flush):
            flush()
        return result

    def move_cursor(self, dx: int, dy: int) -> None:
        seq = ""
        if dx < 0:
            seq += f"{CSI}{-dx}D"
        elif dx > 0:
            seq += f"{CSI}{dx}C"
        if dy < 0:
            seq += f"{CSI}{-dy}A"
        elif dy > 0:
            seq += f"{CSI}{dy}B"
        if seq:
            self.write(seq)

    def cursor_to(self, x: int) -> None:
        self.write(f"{CSI}{x + 1}G")

    def clear_line(self, direction: int = 0) -> None:
        if direction < 0:
            self.write(f"{CSI}1K")
        elif direction > 0:
            self.write(f"{CSI}0K")
        else:
            self.write(f"{CSI}2K")

    def __repr__(self) -> str:
        return f"TerminalStream({self._stream!r})"


# ── Capability probes ─────────────────────────────────────────────────

def is_terminal_capable(stream: Any) -> bool:
    """True if the object already exposes the cursor-control interface."""
    return (
        hasattr(stream, "columns")
        and callable(getattr(stream, "move_cursor", None))
        and callable(getattr(stream, "cursor_to", None))
        and callable(getattr(stream, "clear_line", None))
    )


def is_tty(stream: Any) -> bool:
    isatty = getattr(stream, "isatty", None)
    if not callable(isatty):
        return False
    try:
        return bool(isatty())
    except ValueError:  # closed file
        return False


def as_terminal(stream: Any) -> Any | None:
    """Return a terminal-capable view of the stream, or None if it has none."""
    if is_terminal_capable(stream):
        return stream
    if is_tty(stream) and not wants_bytes(stream):
        return TerminalStream(stream)
    return None


def is_file_like(stream: Any) -> bool:
    """Non-interactive io stream (files, buffers, pipes)."""
    return isinstance(stream, io.IOBase) and not is_tty(stream)


def wants_bytes(stream: Any) -> bool:
    if isinstance(stream, (io.RawIOBase, io.BufferedIOBase)):
        return True
    mode = getattr(stream, "mode", None)
    return isinstance(mode, str) and "b" in mode
