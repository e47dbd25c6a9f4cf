"""Webhook publisher: POSTs each batch as JSON to a configured URL.

Fire-and-forget: the POST runs on a small thread pool so a slow endpoint
never holds up an update cycle. Failures are logged and dropped.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

import httpx

from ..diagnostics.status import DiagnosticBatch
from .models import DiagnosticArrayModel

logger = logging.getLogger(__name__)


class WebhookPublisher:
    """Publishes DiagnosticArrayModel payloads over HTTP."""

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        headers: dict[str, str] | None = None,
        max_workers: int = 2,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.headers = dict(headers or {})
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="diag-webhook")

    def publish(self, batch: DiagnosticBatch) -> Future[None]:
        payload = DiagnosticArrayModel.from_batch(batch).model_dump(mode="json")
        return self._executor.submit(self._post, payload)

    def _post(self, payload: dict[str, Any]) -> None:
        try:
            with httpx.Client(timeout=self.timeout) as client:
                resp = client.post(self.url, json=payload, headers=self.headers)
            if resp.status_code >= 400:
                logger.warning(
                    "Diagnostics webhook returned %d: %s", resp.status_code, resp.text[:200],
                )
        except httpx.TimeoutException:
            logger.warning("Diagnostics webhook timed out after %.1fs: %s", self.timeout, self.url)
        except httpx.HTTPError as exc:
            logger.warning("Diagnostics webhook failed: %s", exc)

    def close(self) -> None:
        self._executor.shutdown(wait=False)
