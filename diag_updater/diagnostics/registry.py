"""Task registry: thread-safe ordered list of named diagnostic tasks.

Insertion order is preserved and duplicate names are allowed. All mutations
and snapshots share one lock; the on_added hook runs after the lock is
released so it may call back into the registry.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass

from .tasks import DiagnosticTask, TaskFunction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskEntry:
    """A registered task: the name to seed reports with and the callback."""

    name: str
    callback: TaskFunction


class TaskRegistry:
    """Ordered collection of TaskEntry guarded by a single lock.

    Callbacks need only stay valid through their last invocation; once an
    entry is removed the registry never calls it again.
    """

    def __init__(self, on_added: Callable[[TaskEntry], None] | None = None) -> None:
        self._lock = threading.Lock()
        self._entries: list[TaskEntry] = []
        self._on_added = on_added

    def add(self, name: str | DiagnosticTask, callback: TaskFunction | None = None) -> TaskEntry:
        """Register ``callback`` under ``name``.

        Passing a task object instead of a name registers ``task.run`` under
        ``task.name``.
        """
        if callback is None:
            if isinstance(name, str):
                raise TypeError("add() needs a callback when given a task name")
            return self.add_task(name)

        entry = TaskEntry(name=str(name), callback=callback)
        with self._lock:
            self._entries.append(entry)
        logger.debug("Registered diagnostic task %r", entry.name)

        if self._on_added is not None:
            self._on_added(entry)
        return entry

    def add_task(self, task: DiagnosticTask) -> TaskEntry:
        return self.add(task.name, task.run)

    def remove_by_name(self, name: str) -> bool:
        """Remove the first entry named ``name``; True if one matched."""
        with self._lock:
            for i, entry in enumerate(self._entries):
                if entry.name == name:
                    del self._entries[i]
                    break
            else:
                return False
        logger.debug("Removed diagnostic task %r", name)
        return True

    def snapshot(self) -> list[TaskEntry]:
        """Copy of the current entries, safe to iterate without the lock."""
        with self._lock:
            return list(self._entries)

    def names(self) -> list[str]:
        return [e.name for e in self.snapshot()]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return any(e.name == name for e in self._entries)
