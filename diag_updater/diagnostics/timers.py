"""Timer primitives used by the Updater for its periodic schedule.

A scheduler fires a callback once at (or after) a deadline expressed on its
own monotonic clock, and hands back a handle that can be cancelled.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Any, Protocol


class Scheduler(Protocol):
    def now(self) -> float: ...

    def schedule(self, deadline: float, callback: Callable[[], None]) -> Any: ...

    def cancel(self, handle: Any) -> None: ...


class ThreadTimerScheduler:
    """One ``threading.Timer`` per firing; callbacks run on the timer thread."""

    def now(self) -> float:
        return time.monotonic()

    def schedule(self, deadline: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(max(0.0, deadline - self.now()), callback)
        timer.daemon = True
        timer.name = "diag-updater-timer"
        timer.start()
        return timer

    def cancel(self, handle: threading.Timer) -> None:
        handle.cancel()

