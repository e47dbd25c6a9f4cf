"""Status report models: the values produced by diagnostic tasks.

A StatusReport is handed to a task as a mutable buffer seeded with the task
name; the task fills in level, message and key/value entries. Reports
collected by one update cycle travel together as a DiagnosticBatch.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any


# ── Models ───────────────────────────────────────────────────────────────────


class Level(IntEnum):
    OK = 0
    WARN = 1
    ERROR = 2
    STALE = 3


MESSAGE_SEPARATOR = "; "


@dataclass(frozen=True)
class KeyValue:
    key: str
    value: str


@dataclass
class StatusReport:
    """Result of a single diagnostic task run."""

    name: str = ""
    level: Level = Level.OK
    message: str = ""
    values: list[KeyValue] = field(default_factory=list)
    hardware_id: str = ""

    def summary(self, level: Level | int, message: str) -> None:
        """Overwrite level and message."""
        self.level = Level(level)
        self.message = message

    def summary_from(self, other: StatusReport) -> None:
        """Copy level and message from another report."""
        self.summary(other.level, other.message)

    def merge_summary(self, level: Level | int, message: str) -> None:
        """Fold another summary into this one.

        The level becomes the max of both. Non-OK messages are appended; an
        OK summary never contributes text.
        """
        level = Level(level)
        if level > Level.OK:
            if self.message:
                self.message = f"{self.message}{MESSAGE_SEPARATOR}{message}"
            else:
                self.message = message
        self.level = max(self.level, level)

    def merge_summary_from(self, other: StatusReport) -> None:
        self.merge_summary(other.level, other.message)

    def add(self, key: str, value: Any) -> None:
        """Append a key/value entry; the value is stored as text."""
        if isinstance(value, bool):
            value = "True" if value else "False"
        self.values.append(KeyValue(key=key, value=str(value)))


@dataclass
class DiagnosticBatch:
    """Timestamped collection of reports published together."""

    statuses: list[StatusReport]
    hardware_id: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def names(self) -> list[str]:
        return [s.name for s in self.statuses]

    @property
    def level(self) -> Level:
        """Worst level in the batch (OK when empty)."""
        return max((s.level for s in self.statuses), default=Level.OK)
