"""
Level registry.

Process-wide table of named levels. Each level has a unique importance
(higher = more important) and an optional ANSI color used by the default
prefix. Every new registry starts with the built-ins:

    DEBUG=0  INFO=1  WARN=2  ERROR=3  FATAL=4  NONE=sys.maxsize

NONE is a sentinel threshold: a stream configured at NONE admits nothing
that is logged at a real level.

Entries are append-only. Registration takes a lock; lookups do not, since
levels are expected to be registered at startup.
"""

from __future__ import annotations

import bisect
import sys
import threading
from dataclasses import dataclass
from typing import Optional

from tierlog.errors import DuplicateImportance, DuplicateLevelName, UnknownLevel


DEFAULT_COLOR = 34  # blue


@dataclass(frozen=True)
class LevelDescriptor:
    """One registered level. Immutable once registered."""
    name: str
    importance: int
    color: int | None = None

    @property
    def display_color(self) -> int:
        return self.color if self.color is not None else DEFAULT_COLOR


class LevelRegistry:
    """
    Registry of named levels. Singleton.

    Usage:
        registry = LevelRegistry.instance()
        registry.register("trace", -1, color=90)
        registry.lookup("TRACE").importance   # -1
        registry.name_for_importance(2)        # "WARN"
    """

    _instance: Optional["LevelRegistry"] = None
    _lock = threading.Lock()

    def __init__(self) -> None:
        self._by_name: dict[str, LevelDescriptor] = {}
        self._by_importance: dict[int, LevelDescriptor] = {}
        self._sorted_importances: list[int] = []
        self._register_lock = threading.Lock()
        _register_builtins(self)

    @classmethod
    def instance(cls) -> "LevelRegistry":
        """Get or create the singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop custom levels. For testing only."""
        with cls._lock:
            cls._instance = None

    # ── Registration ──────────────────────────────────────────────

    def register(self, name: str, importance: int, color: int | None = None) -> LevelDescriptor:
        """
        Register a new level.

        Raises:
            TypeError: If name is not a str or importance/color are not ints.
            DuplicateLevelName: If the name (case-insensitive) exists.
            DuplicateImportance: If another level has this importance.
        """
        if not isinstance(name, str) or not name:
            raise TypeError("Level name must be a non-empty str")
        if isinstance(importance, bool) or not isinstance(importance, int):
            raise TypeError(f"Level importance must be an int, got {type(importance).__name__}")
        if color is not None and (isinstance(color, bool) or not isinstance(color, int)):
            raise TypeError(f"Level color must be an int or None, got {type(color).__name__}")

        key = name.upper()
        with self._register_lock:
            if key in self._by_name:
                raise DuplicateLevelName(f"Level '{key}' already exists")
            if importance in self._by_importance:
                existing = self._by_importance[importance].name
                raise DuplicateImportance(
                    f"Level '{existing}' already has importance {importance}"
                )

            descriptor = LevelDescriptor(name=key, importance=importance, color=color)
            self._by_name[key] = descriptor
            self._by_importance[importance] = descriptor
            bisect.insort(self._sorted_importances, importance)
            return descriptor

    # ── Lookup ────────────────────────────────────────────────────

    def lookup(self, name: str) -> LevelDescriptor:
        """Resolve a level by name, case-insensitive."""
        try:
            return self._by_name[name.upper()]
        except (KeyError, AttributeError):
            raise UnknownLevel(
                f"Unknown log level '{name}'. "
                f"Valid levels: {', '.join(d.name for d in self.levels())}"
            ) from None

    def has(self, name: str) -> bool:
        return isinstance(name, str) and name.upper() in self._by_name

    def name_for_importance(self, importance: int | float) -> str:
        """
        Map a numeric importance onto a level name.

        Exact matches return that level. Values below the lowest level map to
        the lowest, values above the highest map to the highest, and values
        in between map to the nearest lower level.
        """
        exact = self._by_importance.get(importance)
        if exact is not None:
            return exact.name

        ordered = self._sorted_importances
        idx = bisect.bisect_right(ordered, importance)
        if idx == 0:
            return self._by_importance[ordered[0]].name
        return self._by_importance[ordered[idx - 1]].name

    def resolve(self, level: str | int) -> LevelDescriptor:
        """Resolve a level from a name or a numeric importance."""
        if isinstance(level, LevelDescriptor):
            return level
        if isinstance(level, str):
            return self.lookup(level)
        if isinstance(level, (int, float)) and not isinstance(level, bool):
            return self._by_name[self.name_for_importance(level)]
        raise TypeError(f"Expected int or str for level, got {type(level).__name__}")

    # ── Introspection ─────────────────────────────────────────────

    def levels(self) -> list[LevelDescriptor]:
        """All levels, ordered by importance."""
        return [self._by_importance[i] for i in self._sorted_importances]

    def describe(self) -> dict[str, dict]:
        return {
            d.name: {"importance": d.importance, "color": d.color}
            for d in self.levels()
        }

    @property
    def count(self) -> int:
        return len(self._by_name)


def _register_builtins(registry: LevelRegistry) -> None:
    registry.register("DEBUG", 0, color=34)
    registry.register("INFO", 1, color=32)
    registry.register("WARN", 2, color=33)
    registry.register("ERROR", 3, color=31)
    registry.register("FATAL", 4, color=31)
    registry.register("NONE", sys.maxsize)


# ── Module-level shortcuts ────────────────────────────────────────────

def add_level(name: str, importance: int, color: int | None = None) -> LevelDescriptor:
    """Register a level on the process-wide registry."""
    return LevelRegistry.instance().register(name, importance, color)


def get_level(name: str) -> LevelDescriptor:
    return LevelRegistry.instance().lookup(name)


def level_name(importance: int | float) -> str:
    """Get the level name for a numeric importance."""
    return LevelRegistry.instance().name_for_importance(importance)


def importance_of(level: str | int, registry: LevelRegistry | None = None) -> int:
    """Numeric importance of a level name (or pass-through for numbers)."""
    if isinstance(level, str):
        return (registry or LevelRegistry.instance()).lookup(level).importance
    if isinstance(level, bool) or not isinstance(level, (int, float)):
        raise TypeError(f"Expected int or str for level, got {type(level).__name__}")
    return level
