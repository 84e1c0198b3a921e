"""
tierlog: hierarchical logging with several outputs and pinned terminal lines.

Loggers route each call to an ordered list of streams. A stream is a raw
writable or another Logger, so loggers nest into trees.
"""

from tierlog.core import Logger, bracket_identifier
from tierlog.pinned import PinnedLine
from tierlog.streams import CONTINUE, SUPPRESS, LoggerStream, Replace, no_prefix
from tierlog.levels import (
    LevelDescriptor,
    LevelRegistry,
    add_level,
    get_level,
    level_name,
)
from tierlog.formatters import colored_log, format_values, plain_log, strip_ansi_formatting
from tierlog.terminal import TerminalStream
from tierlog.errors import (
    TierlogError,
    DuplicateLevelName,
    DuplicateImportance,
    UnknownLevel,
    InvalidInterceptorResult,
    LoggerCycleError,
    ConfigError,
)

__version__ = "0.1.0"

__all__ = [
    "Logger",
    "LoggerStream",
    "PinnedLine",
    "CONTINUE",
    "SUPPRESS",
    "Replace",
    "no_prefix",
    "bracket_identifier",
    "LevelDescriptor",
    "LevelRegistry",
    "add_level",
    "get_level",
    "level_name",
    "colored_log",
    "plain_log",
    "format_values",
    "strip_ansi_formatting",
    "TerminalStream",
    "TierlogError",
    "DuplicateLevelName",
    "DuplicateImportance",
    "UnknownLevel",
    "InvalidInterceptorResult",
    "LoggerCycleError",
    "ConfigError",
]
