"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

import pytest

from diag_updater.config import Settings
from diag_updater.diagnostics.status import DiagnosticBatch
from diag_updater.diagnostics.updater import Updater


@dataclass
class _Pending:
    deadline: float
    callback: Callable[[], None]
    cancelled: bool = False


class FakeScheduler:
    """Manual clock: nothing fires until advance() moves time past a deadline."""

    def __init__(self, start: float = 1000.0) -> None:
        self.time = start
        self.pending: list[_Pending] = []

    def now(self) -> float:
        return self.time

    def schedule(self, deadline: float, callback: Callable[[], None]) -> _Pending:
        handle = _Pending(deadline, callback)
        self.pending.append(handle)
        return handle

    def cancel(self, handle: _Pending) -> None:
        handle.cancelled = True

    @property
    def outstanding(self) -> list[_Pending]:
        return [h for h in self.pending if not h.cancelled]

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due callbacks in deadline order."""
        target = self.time + seconds
        while True:
            due = sorted(
                (h for h in self.outstanding if h.deadline <= target),
                key=lambda h: h.deadline,
            )
            if not due:
                break
            handle = due[0]
            self.pending.remove(handle)
            self.time = max(self.time, handle.deadline)
            handle.callback()
        self.time = target


@dataclass
class RecordingPublisher:
    batches: list[DiagnosticBatch] = field(default_factory=list)

    def publish(self, batch: DiagnosticBatch) -> None:
        self.batches.append(batch)

    @property
    def last(self) -> DiagnosticBatch:
        return self.batches[-1]


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def updater(publisher: RecordingPublisher, scheduler: FakeScheduler) -> Updater:
    """An Updater with a hardware id set, a 1s period, and fake collaborators."""
    return Updater(publisher, scheduler, period=1.0, hardware_id="test-hw")


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        diagnostic_period=3600.0,
        hardware_id="api-hw",
        host_tasks_enabled=False,
        publish_webhook_url="",
        log_level="DEBUG",
    )
