"""Diagnostics API routes: read published batches, drive the updater.

Endpoints:
  GET  /api/diagnostics               latest published batch
  GET  /api/diagnostics/status        latest status per task name
  GET  /api/diagnostics/history       recent batches, newest first
  GET  /api/diagnostics/tasks         registered task names, in order
  POST /api/diagnostics/update        force an update cycle now
  POST /api/diagnostics/broadcast     publish one level/message for every task
  GET  /api/diagnostics/period        current update period
  PUT  /api/diagnostics/period        change the period (restarts the phase)
  PUT  /api/diagnostics/hardware-id   set the hardware id
  GET  /api/diagnostics/stream        SSE stream of published batches

Update cycles and broadcasts run on the default executor so a slow task
never stalls the event loop or the SSE streams.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import StreamingResponse

from ..publishing.models import (
    BroadcastRequest,
    DiagnosticArrayModel,
    DiagnosticStatusModel,
    HardwareIdRequest,
    PeriodRequest,
)

logger = logging.getLogger(__name__)

diag_router = APIRouter(prefix="/diagnostics", tags=["diagnostics"])


# ── Published state ──────────────────────────────────────────────────────────


@diag_router.get("")
def latest_batch(request: Request) -> DiagnosticArrayModel:
    """The most recently published batch."""
    batch = request.app.state.status_board.latest
    if batch is None:
        raise HTTPException(status_code=404, detail="No diagnostics published yet")
    return DiagnosticArrayModel.from_batch(batch)


@diag_router.get("/status")
def latest_status(request: Request) -> dict[str, Any]:
    """Latest status per task name, across all batches seen so far."""
    latest = request.app.state.status_board.latest_by_name()
    return {
        "status": {
            name: DiagnosticStatusModel.from_report(report).model_dump()
            for name, report in latest.items()
        },
    }


@diag_router.get("/history")
def batch_history(request: Request, limit: int = 10) -> dict[str, Any]:
    """Recently published batches, newest first."""
    batches = request.app.state.status_board.history(limit=max(limit, 0))
    return {"batches": [DiagnosticArrayModel.from_batch(b).model_dump(mode="json") for b in batches]}


@diag_router.get("/tasks")
def list_tasks(request: Request) -> dict[str, Any]:
    updater = request.app.state.updater
    return {"tasks": updater.task_names(), "running": updater.running}


# ── Updater control ──────────────────────────────────────────────────────────


@diag_router.post("/update")
async def force_update(request: Request) -> DiagnosticArrayModel:
    """Run every task now, independent of the periodic schedule."""
    loop = asyncio.get_running_loop()
    batch = await loop.run_in_executor(None, request.app.state.updater.force_update)
    return DiagnosticArrayModel.from_batch(batch)


@diag_router.post("/broadcast")
async def broadcast(req: BroadcastRequest, request: Request) -> DiagnosticArrayModel:
    """Publish the same level/message for every registered task."""
    loop = asyncio.get_running_loop()
    batch = await loop.run_in_executor(
        None, request.app.state.updater.broadcast, req.level, req.message,
    )
    logger.info("Broadcast %s to %d tasks: %s", req.level.name, len(batch.statuses), req.message)
    return DiagnosticArrayModel.from_batch(batch)


@diag_router.get("/period")
def get_period(request: Request) -> dict[str, float]:
    return {"seconds": request.app.state.updater.get_period().total_seconds()}


@diag_router.put("/period")
def set_period(req: PeriodRequest, request: Request) -> dict[str, float]:
    updater = request.app.state.updater
    updater.set_period(req.seconds)
    return {"seconds": updater.get_period().total_seconds()}


@diag_router.put("/hardware-id")
def set_hardware_id(req: HardwareIdRequest, request: Request) -> dict[str, str]:
    request.app.state.updater.set_hardware_id(req.hardware_id)
    return {"hardware_id": req.hardware_id}


# ── SSE stream ───────────────────────────────────────────────────────────────


@diag_router.get("/stream")
async def diagnostics_stream(request: Request) -> StreamingResponse:
    """Server-Sent Events stream of every published batch."""
    board = request.app.state.status_board
    queue = board.subscribe()
    logger.debug("SSE client connected (%d subscribers)", board.subscriber_count)

    async def event_generator():
        try:
            latest = board.latest
            if latest is not None:
                init = DiagnosticArrayModel.from_batch(latest).model_dump(mode="json")
                yield f"event: init\ndata: {json.dumps(init)}\n\n"

            while True:
                if await request.is_disconnected():
                    break

                try:
                    data = await asyncio.wait_for(queue.get(), timeout=30)
                    yield f"event: batch\ndata: {json.dumps(data)}\n\n"
                except asyncio.TimeoutError:
                    yield ": keepalive\n\n"
        finally:
            board.unsubscribe(queue)

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
