"""
Pydantic configuration schemas for tierlog.

A whole logger tree can be described in YAML:

    levels:
      - {name: trace, importance: -1, color: 90}
    loggers:
      app:
        streams:
          - {destination: stdout, level: INFO}
          - {destination: logs/app.log, level: trace}
      db:
        identifier: db
        streams:
          - {destination: "logger:app"}

Usage:
    config = TierlogConfig.from_yaml("logging.yaml")
    loggers = build_loggers(config)
    loggers["db"].info("connected")     # → app: "[db] connected"
"""

from __future__ import annotations

import sys
from pathlib import Path
from functools import partial
from typing import IO, Any, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from tierlog.core import Logger
from tierlog.errors import ConfigError, DuplicateImportance, DuplicateLevelName, TierlogError
from tierlog.formatters import colored_log, plain_log
from tierlog.levels import LevelRegistry
from tierlog.streams import LoggerStream, Prefix, no_prefix


LOGGER_REF = "logger:"

PREFIXES = {
    "colored": colored_log,
    "plain": plain_log,
    "none": no_prefix,
}


# ═══════════════════════════════════════════════════════════════════
#  Schemas
# ═══════════════════════════════════════════════════════════════════

class LevelConfig(BaseModel):
    name: str
    importance: int
    color: Optional[int] = None


class StreamConfig(BaseModel):
    destination: str = "stdout"  # 'stdout', 'stderr', 'logger:<name>', or a file path
    level: int | str = "DEBUG"
    prefix: Optional[Literal["colored", "plain", "none"]] = None
    allow_pinned_lines: bool = True
    strip_ansi: Optional[bool] = None


class LoggerEntryConfig(BaseModel):
    identifier: Optional[str] = None
    streams: Optional[list[StreamConfig]] = None
    split_stderr: bool = False


class TierlogConfig(BaseModel):
    levels: Optional[list[LevelConfig]] = None
    loggers: dict[str, LoggerEntryConfig] = Field(default_factory=dict)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "TierlogConfig":
        """Load and validate from a YAML file."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.from_yaml_string(raw)

    @classmethod
    def from_yaml_string(cls, yaml_string: str) -> "TierlogConfig":
        """Load and validate from a YAML string."""
        data = yaml.safe_load(yaml_string) or {}
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> "TierlogConfig":
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigError(f"Invalid tierlog config: {exc}") from exc

    def to_dict(self, exclude_none: bool = True) -> dict:
        return self.model_dump(exclude_none=exclude_none)


# ═══════════════════════════════════════════════════════════════════
#  Builder
# ═══════════════════════════════════════════════════════════════════

def build_loggers(
    config: TierlogConfig | dict,
    registry: LevelRegistry | None = None,
) -> dict[str, Logger]:
    """
    Register configured levels, then build every logger.

    Loggers referenced through 'logger:<name>' destinations are built
    first. File destinations are opened in append mode and owned by their
    logger (closed by Logger.close()). If the build fails, every file
    opened so far is closed before the error propagates.

    Raises:
        ConfigError: Unknown logger reference, reference cycle, level
            conflict, or an unknown level name on a stream.
    """
    if isinstance(config, dict):
        config = TierlogConfig.from_dict(config)
    registry = registry or LevelRegistry.instance()

    for level in config.levels or []:
        _register_level(registry, level)

    built: dict[str, Logger] = {}
    building: list[str] = []
    opened: list[IO[str]] = []

    def build(name: str) -> Logger:
        if name in built:
            return built[name]
        if name in building:
            chain = " → ".join(building + [name])
            raise ConfigError(f"Logger reference cycle: {chain}")
        entry = config.loggers.get(name)
        if entry is None:
            raise ConfigError(
                f"Unknown logger '{name}'. "
                f"Configured: {', '.join(sorted(config.loggers)) or 'none'}"
            )

        building.append(name)
        try:
            streams = None
            if entry.streams is not None:
                streams = [
                    _build_stream(stream_cfg, build, registry, opened)
                    for stream_cfg in entry.streams
                ]
            logger = Logger(
                streams=streams,
                identifier=entry.identifier,
                split_stderr=entry.split_stderr,
                registry=registry,
            )
        except ConfigError:
            raise
        except TierlogError as exc:
            raise ConfigError(f"Logger '{name}': {exc}") from exc
        finally:
            building.pop()

        built[name] = logger
        return logger

    try:
        for name in config.loggers:
            build(name)
    except BaseException:
        for handle in opened:
            handle.close()
        raise
    return built


def _register_level(registry: LevelRegistry, level: LevelConfig) -> None:
    """Register a level, tolerating an identical existing definition."""
    if registry.has(level.name):
        existing = registry.lookup(level.name)
        if existing.importance == level.importance and existing.color == level.color:
            return
    try:
        registry.register(level.name, level.importance, level.color)
    except (DuplicateLevelName, DuplicateImportance) as exc:
        raise ConfigError(f"Cannot register level '{level.name}': {exc}") from exc


def _prefix(choice: str | None, registry: LevelRegistry) -> Prefix | None:
    if choice is None:
        return None
    if choice == "none":
        return no_prefix
    return partial(PREFIXES[choice], registry=registry)


def _build_stream(
    cfg: StreamConfig,
    resolve_logger,
    registry: LevelRegistry,
    opened: list[IO[str]],
) -> LoggerStream:
    destination = cfg.destination
    owned = False
    if destination == "stdout":
        stream: Any = sys.stdout
    elif destination == "stderr":
        stream = sys.stderr
    elif destination.startswith(LOGGER_REF):
        stream = resolve_logger(destination[len(LOGGER_REF):])
    else:
        path = Path(destination)
        path.parent.mkdir(parents=True, exist_ok=True)
        stream = open(path, "a", encoding="utf-8")
        opened.append(stream)
        owned = True

    return LoggerStream(
        stream=stream,
        level=cfg.level,
        prefix=_prefix(cfg.prefix, registry),
        allow_pinned_lines=cfg.allow_pinned_lines,
        strip_ansi=cfg.strip_ansi,
        owned=owned,
    )
