"""Diagnostic updater: runs every registered task on a schedule and publishes.

Two triggers converge on the same update cycle:
- the periodic timer, which reschedules itself at ``now + period`` after
  each cycle
- force_update(), which runs a cycle immediately and leaves the pending
  periodic deadline alone

Task callbacks are isolated: one that raises is reported as an ERROR status
for that task and the cycle carries on with the next task.

Lifecycle:
    updater = Updater(publisher, scheduler, period=1.0)
    updater.add("battery", check_battery)
    updater.start()
    ...
    updater.stop()
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

from .registry import TaskEntry, TaskRegistry
from .status import DiagnosticBatch, Level, StatusReport
from .tasks import DiagnosticTask, TaskFunction
from .timers import Scheduler, ThreadTimerScheduler

if TYPE_CHECKING:
    from ..publishing.base import Publisher

logger = logging.getLogger(__name__)

DEFAULT_PERIOD = 1.0  # seconds
STARTUP_MESSAGE = "Node starting up"


class Updater:
    """Owns a TaskRegistry, a recurring schedule and the publish logic."""

    def __init__(
        self,
        publisher: Publisher,
        scheduler: Scheduler | None = None,
        period: float | timedelta = DEFAULT_PERIOD,
        hardware_id: str = "",
        node_name: str = "",
        verbose: bool = False,
        log: logging.Logger | None = None,
    ) -> None:
        self.publisher = publisher
        self.scheduler = scheduler or ThreadTimerScheduler()
        self.node_name = node_name
        self.verbose = verbose
        self.registry = TaskRegistry(on_added=self._on_task_added)
        self._log = log or logger
        self._period = _to_seconds(period)
        self._hardware_id = hardware_id
        self._warned_missing_hardware_id = False
        self._warn_lock = threading.Lock()

        self._timer_lock = threading.Lock()
        self._cycle_lock = threading.RLock()
        self._handle: Any = None
        self._generation = 0
        self._next_deadline: float | None = None
        self._running = False

    @classmethod
    def from_settings(
        cls,
        publisher: Publisher,
        scheduler: Scheduler | None = None,
        settings: Any = None,
    ) -> Updater:
        """Build an Updater from a Settings object (period read once here)."""
        if settings is None:
            from ..config import settings as default_settings

            settings = default_settings
        return cls(
            publisher,
            scheduler,
            period=settings.diagnostic_period,
            hardware_id=settings.hardware_id,
            node_name=settings.node_name,
            verbose=settings.verbose,
        )

    # -- task registration -----------------------------------------------------

    def add(self, name: str | DiagnosticTask, callback: TaskFunction | None = None) -> TaskEntry:
        return self.registry.add(name, callback)

    def add_task(self, task: DiagnosticTask) -> TaskEntry:
        return self.registry.add_task(task)

    def remove_by_name(self, name: str) -> bool:
        return self.registry.remove_by_name(name)

    def task_names(self) -> list[str]:
        return self.registry.names()

    # -- schedule --------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._running

    @property
    def next_deadline(self) -> float | None:
        """Scheduler time of the pending periodic cycle, None when stopped."""
        return self._next_deadline

    @property
    def period(self) -> timedelta:
        return timedelta(seconds=self._period)

    def get_period(self) -> timedelta:
        return self.period

    def start(self) -> None:
        """Install the first periodic firing at ``now + period``."""
        with self._timer_lock:
            if self._running:
                return
            self._running = True
            self._reset_timer_locked()
        self._log.info("Diagnostic updater started (period=%.3fs)", self._period)

    def stop(self) -> None:
        """Cancel the pending periodic firing."""
        with self._timer_lock:
            if not self._running:
                return
            self._running = False
            self._cancel_locked()
        self._log.info("Diagnostic updater stopped")

    def set_period(self, period: float | timedelta) -> None:
        """Change the period and restart the phase: next cycle at now + period."""
        seconds = _to_seconds(period)
        with self._timer_lock:
            self._period = seconds
            if self._running:
                self._reset_timer_locked()
        self._log.debug("Diagnostic period set to %.3fs", seconds)

    def _reset_timer_locked(self) -> None:
        self._cancel_locked()
        generation = self._generation
        self._next_deadline = self.scheduler.now() + self._period
        self._handle = self.scheduler.schedule(
            self._next_deadline, lambda: self._on_timer(generation),
        )

    def _cancel_locked(self) -> None:
        # Bumping the generation invalidates a firing already in flight.
        self._generation += 1
        if self._handle is not None:
            self.scheduler.cancel(self._handle)
            self._handle = None
        self._next_deadline = None

    def _on_timer(self, generation: int) -> None:
        with self._timer_lock:
            if generation != self._generation or not self._running:
                return
            self._handle = None

        try:
            self._update()
        finally:
            with self._timer_lock:
                # set_period()/stop() during the cycle already took over.
                if generation == self._generation and self._running:
                    self._reset_timer_locked()

    # -- update cycles ---------------------------------------------------------

    def force_update(self) -> DiagnosticBatch:
        """Run every task now; the periodic deadline is left untouched."""
        return self._update()

    def _update(self) -> DiagnosticBatch:
        with self._cycle_lock:
            self._warn_if_no_hardware_id()
            statuses = [self._run_entry(entry) for entry in self.registry.snapshot()]
            batch = self._publish(statuses)

        if self.verbose:
            for status in batch.statuses:
                if status.level != Level.OK:
                    self._log.warning(
                        "Non-zero diagnostic status. Name: '%s', status %d: '%s'",
                        status.name, status.level, status.message,
                    )
        return batch

    def _run_entry(self, entry: TaskEntry) -> StatusReport:
        report = StatusReport(name=entry.name)
        try:
            entry.callback(report)
        except Exception as exc:
            self._log.exception("Diagnostic task %r raised", entry.name)
            report.summary(Level.ERROR, f"Task raised {type(exc).__name__}: {exc}")
        report.name = self._qualify(report.name)
        return report

    def broadcast(self, level: Level | int, message: str) -> DiagnosticBatch:
        """Publish one status per registered task without running any of them.

        Useful for announcements such as shutdown or a self-test.
        """
        level = Level(level)
        statuses = [
            StatusReport(name=self._qualify(entry.name), level=level, message=message)
            for entry in self.registry.snapshot()
        ]
        return self._publish(statuses)

    def _on_task_added(self, entry: TaskEntry) -> None:
        """Announce a new task right away so consumers see it before its first run."""
        placeholder = StatusReport(
            name=self._qualify(entry.name), level=Level.OK, message=STARTUP_MESSAGE,
        )
        self._publish([placeholder])

    def _qualify(self, name: str) -> str:
        return f"{self.node_name}: {name}" if self.node_name else name

    def _warn_if_no_hardware_id(self) -> None:
        with self._warn_lock:
            if self._hardware_id or self._warned_missing_hardware_id:
                return
            self._warned_missing_hardware_id = True
        self._log.warning(
            "diagnostic_updater: No hardware_id was set. This is probably a bug. "
            "Please set the hardware_id with set_hardware_id()."
        )

    def _publish(self, statuses: list[StatusReport]) -> DiagnosticBatch:
        hardware_id = self._hardware_id
        for status in statuses:
            status.hardware_id = hardware_id
        batch = DiagnosticBatch(
            statuses=statuses,
            hardware_id=hardware_id,
            timestamp=datetime.now(timezone.utc),
        )

        try:
            self.publisher.publish(batch)
        except Exception:
            self._log.exception("Publishing diagnostic batch failed")
        return batch

    # -- hardware id -----------------------------------------------------------

    @property
    def hardware_id(self) -> str:
        return self._hardware_id

    def set_hardware_id(self, hardware_id: str) -> None:
        self._hardware_id = hardware_id

    def set_hardware_idf(self, template: str, *args: Any, **kwargs: Any) -> str:
        """Format ``template`` with ``str.format`` and use it as the hardware id."""
        hardware_id = template.format(*args, **kwargs)
        self.set_hardware_id(hardware_id)
        return hardware_id


def _to_seconds(period: float | timedelta) -> float:
    seconds = period.total_seconds() if isinstance(period, timedelta) else float(period)
    if seconds <= 0:
        raise ValueError(f"Diagnostic period must be positive, got {seconds}")
    return seconds
