"""
Output streams.

LoggerStream is what callers hand to a Logger: a destination plus the
knobs that control what reaches it. OutputTarget is the resolved form the
router works with. The admission predicate, prefix, terminal view and
ANSI policy are all decided once, when the stream is added.

Interceptor hooks return one of three outcomes:

    None / CONTINUE   → pass through unchanged
    Replace(value)    → use value for the rest of this stream's pipeline
    SUPPRESS          → drop the message for this stream

A bare list/tuple (data hook) or str (string hook) is shorthand for
Replace. Anything else raises InvalidInterceptorResult.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Optional

from tierlog.errors import InvalidInterceptorResult
from tierlog.formatters import colored_log
from tierlog.levels import LevelRegistry, importance_of
from tierlog.terminal import as_terminal, is_file_like, wants_bytes


Predicate = Callable[[int], bool]
Prefix = Callable[[str], str]


# ═══════════════════════════════════════════════════════════════════
#  Interceptor outcomes
# ═══════════════════════════════════════════════════════════════════

class _Outcome:
    __slots__ = ("_name",)

    def __init__(self, name: str):
        self._name = name

    def __repr__(self) -> str:
        return self._name


CONTINUE = _Outcome("CONTINUE")
SUPPRESS = _Outcome("SUPPRESS")


@dataclass(frozen=True)
class Replace:
    """Interceptor outcome carrying a replacement value."""
    value: Any


# ═══════════════════════════════════════════════════════════════════
#  LoggerStream
# ═══════════════════════════════════════════════════════════════════

@dataclass(eq=False)
class LoggerStream:
    """
    One configured destination of a Logger.

    Attributes:
        stream: Object with write(), or another Logger.
        level: Level name, numeric threshold, or predicate(importance) → bool.
        prefix: Callable(level_name) → str applied to every line. None means
            colored_log() on terminals and no prefix elsewhere. Ignored for
            nested loggers.
        allow_pinned_lines: Render pinned lines on this stream (terminals only).
        intercept_data: Hook(values, level_name) run before formatting.
        intercept_string: Hook(message, level_name) run after formatting.
        strip_ansi: Force ANSI stripping on/off. None strips for file-like
            non-interactive streams.
        owned: The logger closes this stream in Logger.close().
    """
    stream: Any
    level: str | int | Predicate = "DEBUG"
    prefix: Optional[Prefix] = None
    allow_pinned_lines: bool = True
    intercept_data: Optional[Callable[[list, str], Any]] = None
    intercept_string: Optional[Callable[[str, str], Any]] = None
    strip_ansi: Optional[bool] = None
    owned: bool = False


def no_prefix(level_name: str) -> str:
    """Prefix that adds nothing. Disables the terminal default."""
    return ""


def admission_predicate(
    level: str | int | Predicate,
    registry: LevelRegistry | None = None,
) -> Predicate:
    """Turn a level name, numeric threshold or predicate into a predicate."""
    if callable(level):
        return level
    threshold = importance_of(level, registry)

    def admits(importance: int) -> bool:
        return importance >= threshold

    admits.threshold = threshold  # type: ignore[attr-defined]
    return admits


# ═══════════════════════════════════════════════════════════════════
#  OutputTarget
# ═══════════════════════════════════════════════════════════════════

class OutputTarget:
    """
    Resolved LoggerStream. Built once per add, immutable afterwards.

    Level names (threshold, default prefix) resolve against `registry`,
    falling back to the process-wide one.
    """

    def __init__(
        self,
        settings: LoggerStream,
        nested: bool,
        registry: LevelRegistry | None = None,
    ):
        self.settings = settings
        self.stream = settings.stream
        self.nested = nested
        self.admits = admission_predicate(settings.level, registry)
        self.allow_pinned_lines = settings.allow_pinned_lines
        self.intercept_data = settings.intercept_data
        self.intercept_string = settings.intercept_string

        if nested:
            self.terminal = None
            self.strip = False
            self.binary = False
            self.prefix = None
        else:
            self.terminal = as_terminal(settings.stream)
            self.strip = (
                settings.strip_ansi
                if settings.strip_ansi is not None
                else self.terminal is None and is_file_like(settings.stream)
            )
            self.binary = wants_bytes(settings.stream)
            if settings.prefix is not None:
                self.prefix = settings.prefix
            else:
                self.prefix = (
                    partial(colored_log, registry=registry)
                    if self.terminal is not None
                    else None
                )

    @property
    def kind(self) -> str:
        if self.nested:
            return "logger"
        if self.terminal is not None:
            return "terminal"
        if self.strip:
            return "file"
        return "sink"

    @property
    def pins(self) -> bool:
        """True if pinned-line redraws apply to this target."""
        return self.terminal is not None and self.allow_pinned_lines

    def write(self, text: str) -> None:
        self.stream.write(text.encode("utf-8") if self.binary else text)

    def describe(self) -> dict[str, Any]:
        threshold = getattr(self.admits, "threshold", None)
        return {
            "kind": self.kind,
            "stream": repr(self.stream),
            "threshold": threshold,
            "allow_pinned_lines": self.allow_pinned_lines,
            "intercepts": [
                name for name, hook in (
                    ("data", self.intercept_data),
                    ("string", self.intercept_string),
                ) if hook is not None
            ],
        }


# ═══════════════════════════════════════════════════════════════════
#  Interceptor resolution
# ═══════════════════════════════════════════════════════════════════

def intercept_data(target: OutputTarget, values: list, level: str) -> list | None:
    """Run the data hook. Returns the values to format, or None to suppress."""
    if target.intercept_data is None:
        return values
    result = target.intercept_data(values, level)
    if result is None or result is CONTINUE:
        return values
    if result is SUPPRESS:
        return None
    if isinstance(result, Replace):
        result = result.value
    if isinstance(result, (list, tuple)):
        return list(result)
    raise InvalidInterceptorResult(
        f"intercept_data returned an invalid type: {type(result).__name__}. "
        f"Expected None, CONTINUE, SUPPRESS, a list, or Replace(list)"
    )


def intercept_string(target: OutputTarget, message: str, level: str) -> str | None:
    """Run the string hook. Returns the message to emit, or None to suppress."""
    if target.intercept_string is None:
        return message
    result = target.intercept_string(message, level)
    if result is None or result is CONTINUE:
        return message
    if result is SUPPRESS:
        return None
    if isinstance(result, Replace):
        result = result.value
    if isinstance(result, str):
        return result
    raise InvalidInterceptorResult(
        f"intercept_string returned an invalid type: {type(result).__name__}. "
        f"Expected None, CONTINUE, SUPPRESS, a str, or Replace(str)"
    )
