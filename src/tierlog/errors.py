"""
Error taxonomy.

Every error raised by tierlog derives from TierlogError and from the builtin
exception that best describes it, so callers can catch either.
"""


class TierlogError(Exception):
    """Base class for all tierlog errors."""


class DuplicateLevelName(TierlogError, ValueError):
    """A level with this name is already registered."""


class DuplicateImportance(TierlogError, ValueError):
    """A level with this importance is already registered."""


class UnknownLevel(TierlogError, KeyError):
    """Lookup of a level name that was never registered."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the message readable
        return str(self.args[0]) if self.args else ""


class InvalidInterceptorResult(TierlogError, TypeError):
    """An interceptor hook returned something outside its contract."""


class LoggerCycleError(TierlogError, ValueError):
    """Adding a nested logger would make a logger route into itself."""


class ConfigError(TierlogError, ValueError):
    """Configuration could not be turned into loggers."""
