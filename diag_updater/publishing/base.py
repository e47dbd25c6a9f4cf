"""Publisher port and the fan-out publisher."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..diagnostics.status import DiagnosticBatch

logger = logging.getLogger(__name__)


class Publisher(Protocol):
    """Sink for published batches. Fire-and-forget: no return value."""

    def publish(self, batch: DiagnosticBatch) -> None: ...


class FanoutPublisher:
    """Hands every batch to each child publisher in turn.

    A failing child is logged and skipped so the others still receive the
    batch.
    """

    def __init__(self, *publishers: Publisher) -> None:
        self.publishers: list[Publisher] = list(publishers)

    def add(self, publisher: Publisher) -> None:
        self.publishers.append(publisher)

    def publish(self, batch: DiagnosticBatch) -> None:
        for publisher in self.publishers:
            try:
                publisher.publish(batch)
            except Exception:
                logger.exception("Publisher %s failed", type(publisher).__name__)
