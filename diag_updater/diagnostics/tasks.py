"""Diagnostic tasks: named producers of one StatusReport per run.

Any object with a ``name`` and a ``run(report)`` method is a task; the
classes here cover the common shapes:

- FunctionDiagnosticTask wraps a plain callable
- CompositeDiagnosticTask runs children and merges them into one report
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol

from .status import Level, StatusReport

logger = logging.getLogger(__name__)

TaskFunction = Callable[[StatusReport], None]


class DiagnosticTask(Protocol):
    """Capability shared by every task variant."""

    @property
    def name(self) -> str: ...

    def run(self, report: StatusReport) -> None: ...


class FunctionDiagnosticTask:
    """A task that calls ``fn(report)`` when run.

    Useful for gathering device or driver data (temperature, calibration,
    ...) without writing a class.
    """

    def __init__(self, name: str, fn: TaskFunction) -> None:
        self._name = name
        self._fn = fn

    @property
    def name(self) -> str:
        return self._name

    def run(self, report: StatusReport) -> None:
        self._fn(report)

    def __repr__(self) -> str:
        return f"FunctionDiagnosticTask(name={self._name!r})"


class CompositeDiagnosticTask:
    """Runs child tasks and merges their outputs into a single report.

    The combined level is the max of the children's levels and the combined
    message concatenates the non-OK messages. Every child starts from the
    summary the caller passed in, and all children write their key/value
    entries into the same report.
    """

    def __init__(self, name: str, tasks: list[DiagnosticTask] | None = None) -> None:
        self._name = name
        self._tasks: list[DiagnosticTask] = list(tasks or [])

    @property
    def name(self) -> str:
        return self._name

    @property
    def tasks(self) -> list[DiagnosticTask]:
        return list(self._tasks)

    def add_task(self, task: DiagnosticTask) -> None:
        """Add a child; it runs every time this composite runs."""
        self._tasks.append(task)

    def run(self, report: StatusReport) -> None:
        original_summary = StatusReport()
        original_summary.summary_from(report)
        combined_summary = StatusReport(level=Level.OK, message="")

        for task in self._tasks:
            # Every child starts from the summary that was passed in.
            report.summary_from(original_summary)
            task.run(report)
            combined_summary.merge_summary_from(report)
            logger.debug(
                "Composite %s: child %s -> %s", self._name, task.name, report.level.name,
            )

        report.summary_from(combined_summary)

    def __repr__(self) -> str:
        return f"CompositeDiagnosticTask(name={self._name!r}, tasks={len(self._tasks)})"
