"""Entry point for the diagnostic updater."""

from __future__ import annotations

import argparse
import logging
import sys

import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import settings
from .diagnostics.host import build_host_task
from .diagnostics.status import DiagnosticBatch, Level
from .diagnostics.updater import Updater
from .publishing.board import StatusBoard

console = Console()
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)

_LEVEL_STYLE = {
    Level.OK: "green",
    Level.WARN: "yellow",
    Level.ERROR: "bold red",
    Level.STALE: "dim",
}


def run_server() -> None:
    """Start the FastAPI server."""
    console.print(Panel("Starting Diagnostic Updater API", style="bold green"))
    uvicorn.run(
        "diag_updater.api.server:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
    )


def run_once(hardware_id: str | None = None) -> DiagnosticBatch:
    """Run the built-in host tasks once and print the resulting batch."""
    board = StatusBoard()
    updater = Updater.from_settings(board, settings=settings)
    if hardware_id is not None:
        updater.set_hardware_id(hardware_id)
    updater.add_task(
        build_host_task(
            disk_path=settings.disk_path,
            disk_warn_percent=settings.disk_warn_percent,
            disk_error_percent=settings.disk_error_percent,
        )
    )

    batch = updater.force_update()
    console.print(render_batch(batch))
    return batch


def render_batch(batch: DiagnosticBatch) -> Table:
    table = Table(
        title=f"Diagnostics @ {batch.timestamp.isoformat()} (hardware_id={batch.hardware_id or '-'})",
    )
    table.add_column("Name", style="bold")
    table.add_column("Level")
    table.add_column("Message")
    table.add_column("Values", style="dim")

    for status in batch.statuses:
        values = "\n".join(f"{kv.key}: {kv.value}" for kv in status.values)
        table.add_row(
            status.name,
            f"[{_LEVEL_STYLE[status.level]}]{status.level.name}[/]",
            status.message,
            values,
        )
    return table


def main() -> None:
    parser = argparse.ArgumentParser(description="Diagnostic Updater")
    sub = parser.add_subparsers(dest="command")

    # Server mode
    sub.add_parser("serve", help="Start the API server")

    # One-shot mode
    once_parser = sub.add_parser("once", help="Run the host diagnostics once and print them")
    once_parser.add_argument("--hardware-id", default=None, help="Hardware id to stamp on the batch")

    args = parser.parse_args()

    if args.command == "serve":
        run_server()
    elif args.command == "once":
        batch = run_once(args.hardware_id)
        sys.exit(0 if batch.level < Level.ERROR else 1)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
