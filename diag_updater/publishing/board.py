"""In-memory status board: keeps recent batches and feeds live subscribers.

Subscribers are asyncio queues (one per SSE client). Publishing may happen
on any thread; events are handed to each subscriber's loop with
call_soon_threadsafe, and a full queue drops the event.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections import deque
from typing import Any

from ..diagnostics.status import DiagnosticBatch, StatusReport
from .models import DiagnosticArrayModel

logger = logging.getLogger(__name__)

DEFAULT_HISTORY = 50
SUBSCRIBER_QUEUE_SIZE = 50


class StatusBoard:
    """Publisher that remembers what was published."""

    def __init__(self, history: int = DEFAULT_HISTORY) -> None:
        self._lock = threading.Lock()
        self._batches: deque[DiagnosticBatch] = deque(maxlen=history)
        self._latest_by_name: dict[str, StatusReport] = {}
        self._subscribers: list[tuple[asyncio.AbstractEventLoop, asyncio.Queue[dict[str, Any]]]] = []

    # -- Publisher ------------------------------------------------------------

    def publish(self, batch: DiagnosticBatch) -> None:
        with self._lock:
            self._batches.append(batch)
            for status in batch.statuses:
                self._latest_by_name[status.name] = status
            subscribers = list(self._subscribers)

        if not subscribers:
            return
        data = DiagnosticArrayModel.from_batch(batch).model_dump(mode="json")
        for loop, queue in subscribers:
            try:
                loop.call_soon_threadsafe(_offer, queue, data)
            except RuntimeError:
                # Loop already closed; the subscriber is gone.
                self.unsubscribe(queue)

    # -- Queries --------------------------------------------------------------

    @property
    def latest(self) -> DiagnosticBatch | None:
        with self._lock:
            return self._batches[-1] if self._batches else None

    def history(self, limit: int | None = None) -> list[DiagnosticBatch]:
        """Most recent batches, newest first."""
        with self._lock:
            batches = list(reversed(self._batches))
        return batches[:limit] if limit is not None else batches

    def latest_by_name(self) -> dict[str, StatusReport]:
        with self._lock:
            return dict(self._latest_by_name)

    # -- Subscribers ----------------------------------------------------------

    def subscribe(self, maxsize: int = SUBSCRIBER_QUEUE_SIZE) -> asyncio.Queue[dict[str, Any]]:
        """Register a queue on the running loop; call from a coroutine."""
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=maxsize)
        with self._lock:
            self._subscribers.append((loop, queue))
        return queue

    def unsubscribe(self, queue: asyncio.Queue[dict[str, Any]]) -> None:
        with self._lock:
            self._subscribers = [(l, q) for l, q in self._subscribers if q is not queue]

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)


def _offer(queue: asyncio.Queue[dict[str, Any]], data: dict[str, Any]) -> None:
    try:
        queue.put_nowait(data)
    except asyncio.QueueFull:
        logger.debug("Subscriber queue full, dropping diagnostics event")
