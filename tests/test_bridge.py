"""
Tests for the stdlib logging bridge.
"""

import logging

import pytest

from tierlog import InvalidInterceptorResult, Logger, LoggerStream
from tierlog.bridge import TierlogHandler, tier_level
from tierlog.levels import LevelRegistry


class Sink:
    def __init__(self):
        self.writes = []

    def write(self, data):
        self.writes.append(data)

    @property
    def text(self):
        return "".join(self.writes)


@pytest.fixture(autouse=True)
def reset_registry():
    LevelRegistry.reset()
    yield
    LevelRegistry.reset()


@pytest.fixture
def stdlib_logger():
    log = logging.getLogger("tierlog.tests.bridge")
    log.setLevel(logging.DEBUG)
    log.propagate = False
    yield log
    log.handlers.clear()


@pytest.mark.parametrize("levelno,expected", [
    (logging.NOTSET, "DEBUG"),
    (5, "DEBUG"),
    (logging.DEBUG, "DEBUG"),
    (logging.INFO, "INFO"),
    (25, "INFO"),
    (logging.WARNING, "WARN"),
    (logging.ERROR, "ERROR"),
    (logging.CRITICAL, "FATAL"),
    (60, "FATAL"),
])
def test_tier_level(levelno, expected):
    assert tier_level(levelno) == expected


class TestTierlogHandler:
    def test_forwards_with_logger_name(self, stdlib_logger):
        sink = Sink()
        stdlib_logger.addHandler(TierlogHandler(Logger(streams=sink)))
        stdlib_logger.warning("disk at %d%%", 91)
        assert sink.text == "tierlog.tests.bridge: disk at 91%\n"

    def test_respects_tierlog_thresholds(self, stdlib_logger):
        sink = Sink()
        stdlib_logger.addHandler(TierlogHandler(Logger(streams=LoggerStream(sink, level="ERROR"))))
        stdlib_logger.info("skipped")
        stdlib_logger.critical("kept")
        assert sink.text == "tierlog.tests.bridge: kept\n"

    def test_handler_level(self, stdlib_logger):
        sink = Sink()
        stdlib_logger.addHandler(TierlogHandler(Logger(streams=sink), level=logging.WARNING))
        stdlib_logger.info("below handler level")
        assert sink.writes == []

    def test_custom_formatter(self, stdlib_logger):
        sink = Sink()
        handler = TierlogHandler(Logger(streams=sink))
        handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        stdlib_logger.addHandler(handler)
        stdlib_logger.error("bad")
        assert sink.text == "ERROR bad\n"

    def test_default_logger_writes_stdout(self, stdlib_logger, capsys):
        stdlib_logger.addHandler(TierlogHandler())
        stdlib_logger.info("to stdout")
        assert capsys.readouterr().out == "tierlog.tests.bridge: to stdout\n"

    def test_interceptor_violation_propagates(self, stdlib_logger):
        log = Logger(streams=LoggerStream(Sink(), intercept_string=lambda s, l: 0))
        stdlib_logger.addHandler(TierlogHandler(log))
        with pytest.raises(InvalidInterceptorResult):
            stdlib_logger.info("x")

    def test_write_failure_goes_to_handle_error(self, stdlib_logger, monkeypatch):
        class Broken:
            def write(self, data):
                raise OSError("gone")

        handler = TierlogHandler(Logger(streams=Broken()))
        seen = []
        monkeypatch.setattr(handler, "handleError", lambda record: seen.append(record.getMessage()))
        stdlib_logger.addHandler(handler)
        stdlib_logger.info("lost")
        assert seen == ["lost"]
