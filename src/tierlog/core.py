"""
Logger: the stream router.

One Logger, many output streams. Each log call walks the streams in order:

    admission → intercept_data → format → intercept_string
        → nested Logger: prefix lines with the identifier, re-log there
        → raw sink:      prefix lines, strip ANSI if file-like, write
                         (terminals with pinned lines go through redraw)

Pinned lines live on the Logger that owns the terminal. Before each write,
the redraw moves the cursor back over the previously rendered pinned block,
writes the new output, then re-renders every bound line below it.

Error policy:
    - Interceptor contract violations raise immediately.
    - A failing destination write does not stop the fan-out. Remaining
      streams are still written, then the first failure is re-raised
      (later ones are attached as notes).
"""

from __future__ import annotations

import sys
import threading
from typing import Any, Callable, Iterable, Optional

from tierlog.errors import InvalidInterceptorResult, LoggerCycleError
from tierlog.formatters import format_values, strip_ansi_formatting
from tierlog.levels import LevelRegistry
from tierlog.pinned import PinnedLine
from tierlog.streams import (
    LoggerStream,
    OutputTarget,
    intercept_data,
    intercept_string,
)


IdentifierPrefix = Callable[[str, str], str]

# Guards the nested-logger graph: cycle checks and nested appends
_topology_lock = threading.Lock()


def bracket_identifier(level: str, identifier: str) -> str:
    """Default identifier prefix: "[identifier]"."""
    return f"[{identifier}]"


class Logger:
    """
    Hierarchical logger with several outputs.

    Usage:
        log = Logger()                                   # stdout
        log = Logger(split_stderr=True)                  # ERROR+ → stderr
        log = Logger(streams=[
            LoggerStream(sys.stdout, level="INFO"),
            LoggerStream(open("app.log", "a")),          # ANSI stripped
        ])

        child = Logger(identifier="db", streams=LoggerStream(log))
        child.info("connected")                          # "[db] connected" via log
    """

    def __init__(
        self,
        streams: LoggerStream | Any | Iterable[LoggerStream | Any] | None = None,
        identifier: str | None = None,
        identifier_prefix: IdentifierPrefix | None = None,
        split_stderr: bool = False,
        registry: LevelRegistry | None = None,
    ) -> None:
        self._lock = threading.RLock()
        self._registry = registry
        self._identifier = identifier
        self._identifier_prefix = identifier_prefix or bracket_identifier
        self._targets: list[OutputTarget] = []
        self._pinned: dict[PinnedLine, None] = {}  # insertion-ordered set
        self._previous_line_count: dict[int, int] = {}  # id(stream) → rendered lines

        if streams is None:
            entries = self._default_streams(split_stderr)
        elif isinstance(streams, (list, tuple)):
            entries = list(streams)
        else:
            entries = [streams]

        for settings in entries:
            self.add_stream(settings)

    def _default_streams(self, split_stderr: bool) -> list[LoggerStream]:
        if not split_stderr:
            return [LoggerStream(sys.stdout)]
        error = self.registry.lookup("ERROR").importance
        return [
            LoggerStream(sys.stdout, level=lambda importance: importance < error),
            LoggerStream(sys.stderr, level="ERROR"),
        ]

    # ── Properties ────────────────────────────────────────────────

    @property
    def registry(self) -> LevelRegistry:
        return self._registry or LevelRegistry.instance()

    @property
    def identifier(self) -> str | None:
        return self._identifier

    @property
    def streams(self) -> list[LoggerStream]:
        """Snapshot of the configured streams, in routing order."""
        with self._lock:
            return [target.settings for target in self._targets]

    @property
    def pinned_lines(self) -> list[PinnedLine]:
        with self._lock:
            return list(self._pinned)

    # ── Stream Management ─────────────────────────────────────────

    def add_stream(self, stream: LoggerStream | Any) -> "Logger":
        """
        Add an output stream. A bare writable or Logger is wrapped in a
        default LoggerStream. Adding a destination that is already present
        is a no-op.

        Raises:
            LoggerCycleError: If the destination is a Logger that routes
                back into this one.
        """
        settings = stream if isinstance(stream, LoggerStream) else LoggerStream(stream)
        nested = isinstance(settings.stream, Logger)
        target = OutputTarget(settings, nested=nested, registry=self._registry)
        if not nested:
            self._append(target)
            return self

        # Cycle check and append are atomic across all loggers
        with _topology_lock:
            if settings.stream is self or settings.stream._routes_to(self):
                raise LoggerCycleError(
                    f"Adding {settings.stream!r} as a stream of {self!r} would create a routing cycle"
                )
            self._append(target)
        return self

    def _append(self, target: OutputTarget) -> None:
        with self._lock:
            if not any(t.stream is target.stream for t in self._targets):
                self._targets.append(target)

    def remove_output(self, output: Any) -> "Logger":
        """Remove every stream whose destination is `output` (identity match)."""
        with self._lock:
            self._targets = [t for t in self._targets if t.stream is not output]
            self._previous_line_count.pop(id(output), None)
        return self

    def _routes_to(self, other: "Logger") -> bool:
        """True if this logger reaches `other` through nested streams."""
        seen: set[int] = set()
        pending: list[Logger] = [self]
        while pending:
            node = pending.pop()
            if node is other:
                return True
            if id(node) in seen:
                continue
            seen.add(id(node))
            pending.extend(t.stream for t in node._targets if t.nested)
        return False

    # ── Core Logging ──────────────────────────────────────────────

    def log(self, level: str | int, *values: Any) -> None:
        """
        Log values at the given level (name, or numeric importance).

        Raises:
            UnknownLevel: If the level name is not registered.
            InvalidInterceptorResult: If a hook breaks its return contract.
        """
        self._route(level, values)

    def _route(self, level: str | int, values: tuple) -> set[int]:
        """Fan out to every stream. Returns ids of terminals that were redrawn."""
        descriptor = self.registry.resolve(level)
        name = descriptor.name
        redrawn: set[int] = set()
        failures: list[Exception] = []

        with self._lock:
            for target in list(self._targets):
                if not target.admits(descriptor.importance):
                    continue

                data = intercept_data(target, list(values), name)
                if data is None:
                    continue
                message = self._render(target, name, data)
                if message is None:
                    continue

                try:
                    if self._deliver(target, name, message):
                        redrawn.add(id(target.stream))
                except InvalidInterceptorResult:
                    raise
                except Exception as exc:
                    failures.append(exc)

        if failures:
            first = failures[0]
            for extra in failures[1:]:
                first.add_note(f"Another stream also failed: {extra!r}")
            raise first
        return redrawn

    def _deliver(self, target: OutputTarget, level: str, message: str) -> bool:
        """Hand a rendered message to one stream. Returns True if a redraw ran."""
        if target.nested:
            target.stream.log(level, message)
            return False

        if target.pins:
            self._redraw(target, message + "\n")
            return True

        target.write(message + "\n")
        return False

    def _render(self, target: OutputTarget, level: str, data: list) -> str | None:
        """Per-stream formatting pipeline. None means suppressed."""
        message = intercept_string(target, format_values(*data), level)
        if message is None:
            return None

        if target.nested:
            if self._identifier is not None:
                tag = self._identifier_prefix(level, self._identifier)
                message = "\n".join(f"{tag} {line}" for line in message.split("\n"))
            return message

        if target.prefix is not None:
            prefix = target.prefix(level)
            message = "\n".join(prefix + line for line in message.split("\n"))

        if target.strip:
            message = strip_ansi_formatting(message)
        return message

    # ── Convenience Methods ───────────────────────────────────────

    def debug(self, *values: Any) -> None:
        self.log("DEBUG", *values)

    def info(self, *values: Any) -> None:
        self.log("INFO", *values)

    def warn(self, *values: Any) -> None:
        self.log("WARN", *values)

    warning = warn

    def error(self, *values: Any) -> None:
        self.log("ERROR", *values)

    def fatal(self, *values: Any) -> None:
        self.log("FATAL", *values)

    # ── Pinned Lines ──────────────────────────────────────────────

    def create_pinned_line(self, level: str | int, initial_content: str | None = None) -> PinnedLine:
        """
        Create a line pinned below regular output on terminal streams.

        Pinned lines are drawn only by the logger that owns the terminal;
        nested loggers forward plain log calls and never render them.
        """
        line = PinnedLine(self, self.registry.resolve(level).name)
        with self._lock:
            self._pinned[line] = None
            if initial_content is not None:
                line.set_content(initial_content)
            else:
                self.update_pinned_lines()
        return line

    def release_pinned_line(self, line: PinnedLine) -> bool:
        """
        Unpin a line, logging its final content as a regular entry.

        Returns False if the line was not bound (nothing happens).
        """
        with self._lock:
            if line not in self._pinned:
                return False
            del self._pinned[line]
            redrawn = self._route(line.level, (line.content,))
            for target in self._targets:
                if target.pins and id(target.stream) not in redrawn:
                    self._redraw(target)
        return True

    def is_pinned_line_bound(self, line: PinnedLine) -> bool:
        with self._lock:
            return line in self._pinned

    def update_pinned_lines(self) -> None:
        """Redraw the pinned block on every terminal stream that allows it."""
        with self._lock:
            for target in self._targets:
                if target.pins:
                    self._redraw(target)

    def _redraw(self, target: OutputTarget, content_above: str | None = None) -> None:
        term = target.terminal
        key = id(target.stream)
        previous = self._previous_line_count.get(key, 0)
        width = term.columns

        term.move_cursor(0, -previous)
        term.cursor_to(0)
        term.clear_line(0)

        rows_above = 0
        if content_above:
            lines = content_above.split("\n")
            if lines[-1] == "":
                lines.pop()
            for line in lines:
                term.cursor_to(0)
                term.clear_line(0)
                term.write(line + "\n")
                rows_above += _rows(line, width)

        rendered = 0
        for pinned in list(self._pinned):
            if not target.admits(self.registry.lookup(pinned.level).importance):
                continue
            message = self._render(target, pinned.level, [pinned.content])
            if message is None:
                continue

            term.cursor_to(0)
            term.clear_line(0)
            term.write(_fit(message.split("\n", 1)[0], width))
            term.write("\n")
            rendered += 1

        # Wipe rows left behind by a taller previous block
        leftover = previous - rendered - rows_above
        if leftover > 0:
            for row in range(leftover):
                if row:
                    term.move_cursor(0, 1)
                term.clear_line(0)
            term.move_cursor(0, -(leftover - 1))

        self._previous_line_count[key] = rendered

    # ── Status ────────────────────────────────────────────────────

    def describe(self) -> dict[str, Any]:
        """Snapshot of this logger's configuration for display."""
        with self._lock:
            return {
                "identifier": self._identifier,
                "streams": [target.describe() for target in self._targets],
                "pinned_lines": len(self._pinned),
            }

    # ── Cleanup ───────────────────────────────────────────────────

    def flush(self) -> None:
        """Flush every raw stream that supports it."""
        with self._lock:
            for target in self._targets:
                flush = getattr(target.stream, "flush", None)
                if not target.nested and callable(flush):
                    flush()

    def close(self) -> None:
        """Close and drop the streams this logger owns (e.g. files opened from config)."""
        with self._lock:
            owned = [t for t in self._targets if t.settings.owned]
            self._targets = [t for t in self._targets if not t.settings.owned]
            for target in owned:
                self._previous_line_count.pop(id(target.stream), None)
                target.stream.close()

    def __repr__(self) -> str:
        name = f" {self._identifier!r}" if self._identifier is not None else ""
        return f"<Logger{name} streams={len(self._targets)}>"


def _rows(text: str, width: Optional[int]) -> int:
    """Physical terminal rows a line occupies once wrapped at `width`."""
    if not width or width <= 0:
        return 1
    return max(1, -(-len(strip_ansi_formatting(text)) // width))


def _fit(text: str, width: Optional[int]) -> str:
    """Truncate to `width` visible columns. Formatting is dropped only if cut."""
    if not width or width <= 0:
        return text
    plain = strip_ansi_formatting(text)
    if len(plain) <= width:
        return text
    return plain[:width]
