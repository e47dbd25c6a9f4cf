"""Diagnostics subsystem: status models, tasks, registry, updater."""

from .registry import TaskEntry, TaskRegistry
from .status import DiagnosticBatch, KeyValue, Level, StatusReport
from .tasks import CompositeDiagnosticTask, DiagnosticTask, FunctionDiagnosticTask
from .timers import Scheduler, ThreadTimerScheduler
from .updater import Updater
