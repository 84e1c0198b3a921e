"""
Bridge from the stdlib logging module.

Lets libraries that log through `logging` land in a tierlog Logger:

    root = Logger()
    logging.getLogger().addHandler(TierlogHandler(root))

Stdlib levels map onto the built-ins: DEBUG (and below) → DEBUG, INFO → INFO,
WARNING → WARN, ERROR → ERROR, CRITICAL → FATAL.
"""

from __future__ import annotations

import logging

from tierlog.core import Logger
from tierlog.errors import InvalidInterceptorResult


def tier_level(levelno: int) -> str:
    """Map a stdlib numeric level to a built-in tierlog level name."""
    if levelno >= logging.CRITICAL:
        return "FATAL"
    if levelno >= logging.ERROR:
        return "ERROR"
    if levelno >= logging.WARNING:
        return "WARN"
    if levelno >= logging.INFO:
        return "INFO"
    return "DEBUG"


class TierlogHandler(logging.Handler):
    """
    logging.Handler that forwards formatted records to a tierlog Logger.

    The default formatter renders "name: message" so the originating
    stdlib logger stays visible once the record is merged into tierlog.
    """

    def __init__(self, logger: Logger | None = None, level: int = logging.NOTSET):
        super().__init__(level)
        self.logger = logger or Logger()
        self.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
            self.logger.log(tier_level(record.levelno), message)
        except (RecursionError, InvalidInterceptorResult):
            raise
        except Exception:
            self.handleError(record)
