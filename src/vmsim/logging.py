"""Simulator event log.

The logger records structured entries for everything interesting the
machine does: page faults, evictions, swap traffic, and (at DEBUG) every
instruction the CPU executes.  It plays the role of a kernel log buffer
(``dmesg`` on Linux) for our one-program machine.

- **LogLevel** — severity levels ordered for filtering (DEBUG < ERROR).
- **LogEntry** — a single structured record (level, message, source, tick).
- **Logger** — an append-only log with filtering, clearing, and an
  optional live sink.

Design choices:
    - **IntEnum for levels** so they compare naturally with ``<``.
    - **Frozen dataclass for entries** — log records should be immutable.
    - **Minimum level on the logger** — a long run executes millions of
      instructions; DEBUG entries are dropped unless asked for.
    - **Sink callable** — the CLI passes ``print`` so a verbose run shows
      its trace as it happens, without the logger knowing about stdout.
    - **Optional capacity** — a bounded logger keeps only the newest
      entries, so tracing a program that never halts uses constant memory.
"""

from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum
from typing import TypeAlias

LogSink: TypeAlias = Callable[[str], object]


class LogLevel(IntEnum):
    """Severity levels for log entries."""

    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


@dataclass(frozen=True)
class LogEntry:
    """A single structured log record.

    Attributes:
        level: The severity of this event.
        message: A human-readable description of what happened.
        source: The subsystem that generated the event (e.g. "pager").
        tick: The machine's memory-access count when the event happened.

    """

    level: LogLevel
    message: str
    source: str
    tick: int = 0

    def __str__(self) -> str:
        """Format as ``[LEVEL] source: message``."""
        return f"[{self.level.name}] {self.source}: {self.message}"


class Logger:
    """Append-only log buffer with filtering.

    Entries below ``min_level`` are discarded on arrival.  Accepted
    entries are kept in order and, when a sink is installed, also
    passed to it as formatted text.  With a ``capacity`` only the most
    recent entries are kept; the sink still sees every one.
    """

    def __init__(
        self,
        *,
        min_level: LogLevel = LogLevel.INFO,
        sink: LogSink | None = None,
        capacity: int | None = None,
    ) -> None:
        """Create an empty logger.

        Args:
            min_level: Entries below this level are dropped.
            sink: Optional callable receiving each accepted entry as text.
            capacity: Most entries to keep, or None for no limit.

        Raises:
            ValueError: If capacity is not positive.

        """
        if capacity is not None and capacity <= 0:
            msg = f"Log capacity must be positive, got {capacity}"
            raise ValueError(msg)
        self._entries: deque[LogEntry] = deque(maxlen=capacity)
        self._min_level = min_level
        self._sink = sink

    @property
    def entries(self) -> list[LogEntry]:
        """Return all log entries in chronological order."""
        return list(self._entries)

    @property
    def capacity(self) -> int | None:
        """Return the most entries kept, or None if unbounded."""
        return self._entries.maxlen

    @property
    def min_level(self) -> LogLevel:
        """Return the lowest level this logger keeps."""
        return self._min_level

    def enabled_for(self, level: LogLevel) -> bool:
        """Return True if an entry at *level* would be kept."""
        return level >= self._min_level

    def log(
        self,
        level: LogLevel,
        message: str,
        *,
        source: str,
        tick: int = 0,
    ) -> None:
        """Append a new entry to the log.

        Args:
            level: Severity of the event.
            message: Human-readable event description.
            source: Subsystem that generated the event.
            tick: Memory-access count at the time of the event.

        """
        if level < self._min_level:
            return
        entry = LogEntry(level=level, message=message, source=source, tick=tick)
        self._entries.append(entry)
        if self._sink is not None:
            self._sink(str(entry))

    def filter(
        self,
        *,
        min_level: LogLevel | None = None,
        source: str | None = None,
    ) -> list[LogEntry]:
        """Return entries matching the given criteria.

        Args:
            min_level: If set, only return entries at or above this level.
            source: If set, only return entries from this source.

        Returns:
            A filtered list of log entries.

        """
        result = list(self._entries)
        if min_level is not None:
            result = [e for e in result if e.level >= min_level]
        if source is not None:
            result = [e for e in result if e.source == source]
        return result

    def clear(self) -> None:
        """Remove all log entries."""
        self._entries.clear()
