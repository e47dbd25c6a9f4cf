"""FastAPI server for the diagnostic updater."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..config import Settings, settings as default_settings
from ..diagnostics.host import build_host_task
from ..diagnostics.status import Level
from ..diagnostics.timers import ThreadTimerScheduler
from ..diagnostics.updater import Updater
from ..publishing.base import FanoutPublisher
from ..publishing.board import StatusBoard
from ..publishing.webhook import WebhookPublisher
from .diag_routes import diag_router

logger = logging.getLogger(__name__)

SHUTDOWN_MESSAGE = "Shutting down"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Wire publishers and the updater on startup; announce shutdown on exit."""
    cfg: Settings = app.state.settings

    board = StatusBoard()
    app.state.status_board = board
    publisher = FanoutPublisher(board)

    webhook: WebhookPublisher | None = None
    if cfg.publish_webhook_url:
        webhook = WebhookPublisher(cfg.publish_webhook_url, timeout=cfg.publish_timeout)
        publisher.add(webhook)
        logger.info("Publishing diagnostics to webhook %s", cfg.publish_webhook_url)

    updater = Updater.from_settings(publisher, ThreadTimerScheduler(), settings=cfg)
    app.state.updater = updater

    if cfg.host_tasks_enabled:
        updater.add_task(
            build_host_task(
                disk_path=cfg.disk_path,
                disk_warn_percent=cfg.disk_warn_percent,
                disk_error_percent=cfg.disk_error_percent,
            )
        )

    updater.start()

    yield

    # Shutdown
    updater.broadcast(Level.STALE, SHUTDOWN_MESSAGE)
    updater.stop()
    if webhook is not None:
        webhook.close()


def create_app(settings: Settings | None = None) -> FastAPI:
    app = FastAPI(
        title="Diagnostic Updater",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings or default_settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(diag_router, prefix="/api")

    @app.get("/healthz")
    def healthz() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
