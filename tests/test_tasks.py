"""Tests for function and composite diagnostic tasks."""

from __future__ import annotations

from diag_updater.diagnostics.host import build_host_task, check_uptime, make_disk_check
from diag_updater.diagnostics.status import KeyValue, Level, StatusReport
from diag_updater.diagnostics.tasks import CompositeDiagnosticTask, FunctionDiagnosticTask


def _reporter(level: Level, message: str, key: str | None = None):
    def fn(report: StatusReport) -> None:
        report.summary(level, message)
        if key:
            report.add(key, message)
    return fn


class TestFunctionTask:
    def test_runs_function(self) -> None:
        task = FunctionDiagnosticTask("battery", _reporter(Level.WARN, "low battery"))
        report = StatusReport(name="battery")
        task.run(report)
        assert task.name == "battery"
        assert report.level == Level.WARN
        assert report.message == "low battery"


class TestCompositeTask:
    def test_merge_max_level_and_non_ok_messages(self) -> None:
        composite = CompositeDiagnosticTask("robot")
        composite.add_task(FunctionDiagnosticTask("a", _reporter(Level.OK, "fine")))
        composite.add_task(FunctionDiagnosticTask("b", _reporter(Level.WARN, "low battery")))
        composite.add_task(FunctionDiagnosticTask("c", _reporter(Level.ERROR, "overheat")))

        report = StatusReport(name="robot")
        composite.run(report)

        assert report.level == Level.ERROR
        assert report.message == "low battery; overheat"

    def test_all_ok_gives_empty_message(self) -> None:
        composite = CompositeDiagnosticTask("robot", [
            FunctionDiagnosticTask("a", _reporter(Level.OK, "fine")),
            FunctionDiagnosticTask("b", _reporter(Level.OK, "also fine")),
        ])
        report = StatusReport(name="robot")
        composite.run(report)
        assert report.level == Level.OK
        assert report.message == ""

    def test_children_share_values(self) -> None:
        composite = CompositeDiagnosticTask("robot", [
            FunctionDiagnosticTask("a", _reporter(Level.OK, "x", key="a")),
            FunctionDiagnosticTask("b", _reporter(Level.WARN, "y", key="b")),
        ])
        report = StatusReport(name="robot")
        composite.run(report)
        assert [kv.key for kv in report.values] == ["a", "b"]

    def test_each_child_starts_from_incoming_summary(self) -> None:
        seen: list[tuple[Level, str]] = []

        def spy(report: StatusReport) -> None:
            seen.append((report.level, report.message))
            report.summary(Level.ERROR, "spy broke it")

        composite = CompositeDiagnosticTask("robot", [
            FunctionDiagnosticTask("s1", spy),
            FunctionDiagnosticTask("s2", spy),
        ])
        report = StatusReport(name="robot", level=Level.WARN, message="incoming")
        composite.run(report)

        assert seen == [(Level.WARN, "incoming"), (Level.WARN, "incoming")]
        assert report.message == "spy broke it; spy broke it"

    def test_untouched_incoming_summary_is_merged(self) -> None:
        # A child that leaves the summary alone reports the incoming one.
        composite = CompositeDiagnosticTask("robot", [
            FunctionDiagnosticTask("noop", lambda report: None),
        ])
        report = StatusReport(name="robot", level=Level.WARN, message="incoming")
        composite.run(report)
        assert (report.level, report.message) == (Level.WARN, "incoming")

    def test_empty_composite_reports_ok(self) -> None:
        report = StatusReport(name="robot", level=Level.ERROR, message="stale")
        CompositeDiagnosticTask("robot").run(report)
        assert (report.level, report.message) == (Level.OK, "")

    def test_nested_composites(self) -> None:
        inner = CompositeDiagnosticTask("inner", [
            FunctionDiagnosticTask("w", _reporter(Level.WARN, "inner warn")),
        ])
        outer = CompositeDiagnosticTask("outer", [
            inner,
            FunctionDiagnosticTask("e", _reporter(Level.ERROR, "outer error")),
        ])
        report = StatusReport(name="outer")
        outer.run(report)
        assert report.level == Level.ERROR
        assert report.message == "inner warn; outer error"

    def test_tasks_returns_copy(self) -> None:
        composite = CompositeDiagnosticTask("robot")
        composite.tasks.append(FunctionDiagnosticTask("x", lambda r: None))
        assert composite.tasks == []


class TestHostTasks:
    def test_uptime(self) -> None:
        report = StatusReport(name="uptime")
        check_uptime(report)
        assert report.level == Level.OK
        assert "PID" in [kv.key for kv in report.values]

    def test_disk_thresholds(self, tmp_path) -> None:
        report = StatusReport(name="disk")
        make_disk_check(str(tmp_path), warn_percent=0.0, error_percent=101.0)(report)
        assert report.level == Level.WARN
        assert KeyValue("Path", str(tmp_path)) in report.values

    def test_disk_missing_path(self, tmp_path) -> None:
        report = StatusReport(name="disk")
        make_disk_check(str(tmp_path / "nope"))(report)
        assert report.level == Level.ERROR

    def test_host_composite(self, tmp_path) -> None:
        host = build_host_task(disk_path=str(tmp_path), disk_warn_percent=101.0, disk_error_percent=102.0)
        assert [t.name for t in host.tasks] == ["uptime", "load", "disk"]
        report = StatusReport(name="host")
        host.run(report)
        keys = [kv.key for kv in report.values]
        assert "Uptime (s)" in keys
        assert "Used (%)" in keys
