"""Built-in host diagnostics: process uptime, load average, disk usage.

Each check writes straight into the report it is given. build_host_task()
bundles them into one composite "host" task.
"""

from __future__ import annotations

import os
import shutil
import time
from collections.abc import Callable

from .status import Level, StatusReport
from .tasks import CompositeDiagnosticTask, FunctionDiagnosticTask

_STARTED_AT = time.monotonic()


def check_uptime(report: StatusReport) -> None:
    """Process uptime, always OK."""
    uptime = time.monotonic() - _STARTED_AT
    report.summary(Level.OK, "Process running")
    report.add("Uptime (s)", f"{uptime:.1f}")
    report.add("PID", os.getpid())


def check_load(report: StatusReport, warn_per_cpu: float = 1.5) -> None:
    """1-minute load average relative to the CPU count."""
    try:
        load1, load5, load15 = os.getloadavg()
    except (AttributeError, OSError):
        report.summary(Level.STALE, "Load average unavailable")
        return

    cpus = os.cpu_count() or 1
    report.add("Load 1m", f"{load1:.2f}")
    report.add("Load 5m", f"{load5:.2f}")
    report.add("Load 15m", f"{load15:.2f}")
    report.add("CPUs", cpus)

    if load1 / cpus > warn_per_cpu:
        report.summary(Level.WARN, f"High load ({load1:.2f} on {cpus} CPUs)")
    else:
        report.summary(Level.OK, "Load normal")


def make_disk_check(
    path: str = "/",
    warn_percent: float = 90.0,
    error_percent: float = 97.0,
) -> Callable[[StatusReport], None]:
    """Return a check reporting usage of the filesystem holding ``path``."""

    def check_disk(report: StatusReport) -> None:
        try:
            usage = shutil.disk_usage(path)
        except OSError as e:
            report.summary(Level.ERROR, f"Disk check failed: {e}")
            return

        used_pct = usage.used / usage.total * 100 if usage.total else 0.0
        report.add("Path", path)
        report.add("Used (%)", f"{used_pct:.1f}")
        report.add("Free (GiB)", f"{usage.free / 2**30:.2f}")

        if used_pct >= error_percent:
            report.summary(Level.ERROR, f"Disk almost full ({used_pct:.1f}%)")
        elif used_pct >= warn_percent:
            report.summary(Level.WARN, f"Disk usage high ({used_pct:.1f}%)")
        else:
            report.summary(Level.OK, "Disk usage normal")

    return check_disk


def build_host_task(
    name: str = "host",
    disk_path: str = "/",
    disk_warn_percent: float = 90.0,
    disk_error_percent: float = 97.0,
) -> CompositeDiagnosticTask:
    host = CompositeDiagnosticTask(name)
    host.add_task(FunctionDiagnosticTask("uptime", check_uptime))
    host.add_task(FunctionDiagnosticTask("load", check_load))
    host.add_task(
        FunctionDiagnosticTask(
            "disk", make_disk_check(disk_path, disk_warn_percent, disk_error_percent),
        )
    )
    return host
