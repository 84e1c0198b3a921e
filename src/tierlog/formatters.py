"""
Message formatting.

Three jobs:
  - format_values():        variadic values → one human-readable string
  - colored_log():          "[HH:MM:SS] [LEVEL] " prefix with ANSI colors
  - strip_ansi_formatting(): remove terminal escape sequences

Strings are inserted literally. Everything else is pretty-printed and
highlighted by rich, so structured values carry ANSI color the same way a
terminal REPL would show them. Sinks that cannot render color strip it
again at write time.
"""

from __future__ import annotations

import io
import json
import re
import traceback
from datetime import datetime
from typing import Any

from rich.console import Console
from rich.pretty import Pretty

from tierlog.levels import LevelRegistry


# ═══════════════════════════════════════════════════════════════════
#  Constants
# ═══════════════════════════════════════════════════════════════════

DIM = "\x1b[90m"
RESET_FG = "\x1b[39m"
LEVEL_TAG_WIDTH = 7
PRETTY_WIDTH = 80

_DIRECTIVE = re.compile(r"%[sdifjoOc%]")

_ANSI_PATTERN = re.compile(
    # OSC terminated by BEL or ST
    r"\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)"
    # CSI and friends
    r"|[\x1b\x9b][\[\]()#;?]*"
    r"(?:(?:(?:[a-zA-Z\d]*(?:;[-a-zA-Z\d/#&.:=?%@~_]*)*)?\x07)"
    r"|(?:(?:\d{1,4}(?:;\d{0,4})*)?[\dA-PR-TZcf-ntqry=><~]))"
)


# ═══════════════════════════════════════════════════════════════════
#  Value rendering
# ═══════════════════════════════════════════════════════════════════

def format_values(*values: Any) -> str:
    """
    Render log call arguments into a single string.

    A leading str may carry printf-style directives (%s %d %i %f %j %o %O
    %c %%), each consuming one of the remaining values. Values left over
    are appended, separated by spaces.

    Example:
        format_values("%s has %d items", "cart", 3)  → "cart has 3 items"
        format_values("a", 1, {"b": 2})              → "a 1 {'b': 2}" (highlighted)
    """
    if not values:
        return ""

    first, rest = values[0], list(values[1:])
    parts: list[str] = []

    if isinstance(first, str):
        if rest and "%" in first:
            first = _apply_directives(first, rest)
        parts.append(first)
    else:
        parts.append(render_value(first))

    parts.extend(v if isinstance(v, str) else render_value(v) for v in rest)
    return " ".join(parts)


def render_value(value: Any) -> str:
    """Pretty-print a single non-str value with ANSI highlighting."""
    if isinstance(value, BaseException):
        rendered = "".join(
            traceback.format_exception(type(value), value, value.__traceback__)
        )
        return rendered.rstrip("\n")

    buffer = io.StringIO()
    console = Console(
        file=buffer,
        force_terminal=True,
        color_system="standard",
        width=PRETTY_WIDTH,
        legacy_windows=False,
    )
    console.print(Pretty(value), end="")
    return buffer.getvalue()


def _apply_directives(template: str, args: list[Any]) -> str:
    """Substitute printf-style directives, consuming from args in place."""

    def substitute(match: re.Match) -> str:
        directive = match.group(0)
        if directive == "%%":
            return "%"
        if not args:
            return directive
        arg = args.pop(0)
        if directive == "%s":
            return arg if isinstance(arg, str) else _plain(arg)
        if directive in ("%d", "%i"):
            return _number(arg, integer=directive == "%i")
        if directive == "%f":
            return _number(arg, floating=True)
        if directive == "%j":
            try:
                return json.dumps(arg, default=str)
            except (TypeError, ValueError):
                return "[Circular]"
        if directive == "%c":
            return ""
        return render_value(arg)  # %o, %O

    return _DIRECTIVE.sub(substitute, template)


def _plain(value: Any) -> str:
    if isinstance(value, (int, float, bool)) or value is None:
        return str(value)
    return repr(value)


def _number(value: Any, integer: bool = False, floating: bool = False) -> str:
    if isinstance(value, bool):
        value = int(value)
    if isinstance(value, int) and not floating:
        return str(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return "NaN"
    if number != number:
        return "NaN"
    if integer:
        return str(int(number)) if abs(number) != float("inf") else "NaN"
    if not floating and number.is_integer():
        return str(int(number))
    return str(number)


# ═══════════════════════════════════════════════════════════════════
#  Prefix
# ═══════════════════════════════════════════════════════════════════

def colored_log(
    level_name: str,
    now: datetime | None = None,
    registry: LevelRegistry | None = None,
) -> str:
    """
    Default stream prefix.

    Example (DEBUG at 05:09:02):
        "\\x1b[90m[05:09:02]\\x1b[39m \\x1b[34m[DEBUG]\\x1b[39m "

    The level tag is left-justified to a fixed width so all built-in tags
    line up. Levels are looked up in `registry`, or the process-wide one.
    """
    if level_name is None:
        raise TypeError("colored_log() requires a level name")
    descriptor = (registry or LevelRegistry.instance()).lookup(level_name)
    now = now or datetime.now()
    clock = f"{now.hour:02d}:{now.minute:02d}:{now.second:02d}"
    tag = f"[{descriptor.name}]".ljust(LEVEL_TAG_WIDTH)
    return f"{DIM}[{clock}]{RESET_FG} \x1b[{descriptor.display_color}m{tag}{RESET_FG} "


def plain_log(
    level_name: str,
    now: datetime | None = None,
    registry: LevelRegistry | None = None,
) -> str:
    """Uncolored variant of colored_log(), for sinks configured with prefix='plain'."""
    return strip_ansi_formatting(colored_log(level_name, now, registry))


# ═══════════════════════════════════════════════════════════════════
#  ANSI stripping
# ═══════════════════════════════════════════════════════════════════

def strip_ansi_formatting(text: str) -> str:
    """
    Remove ANSI escape sequences (CSI, OSC) from text.

    Repeats until nothing matches, so removing one sequence can never
    leave another one behind. strip(strip(s)) == strip(s).
    """
    while True:
        stripped = _ANSI_PATTERN.sub("", text)
        if stripped == text:
            return stripped
        text = stripped
