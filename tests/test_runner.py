import io

from fakes import FakeController, FakeRunner

from timesync_diagnostics.commands import TimeSyncQueries
from timesync_diagnostics.errors import CommandInvocationError, ServiceControlError
from timesync_diagnostics.logging_utils import DiagnosticLogger
from timesync_diagnostics.models import HostServiceState, RunContext, RunStage, ServiceState, SyncStatus
from timesync_diagnostics.runner import Runner
from timesync_diagnostics.service import ServiceEnsurer

STATUS = ("w32tm", "/query", "/status")
PEERS = ("w32tm", "/query", "/peers")

STATUS_TEXT = (
    "Source: time.windows.com\n"
    "Mode: NTP\n"
    "Poll Interval: 6\n"
    "Last Successful Sync Time: 2024-01-01 00:00:00\n"
)


def _run(tmp_path, outputs, controller=None):
    ctx = RunContext(hostname="diag-host", execution_timestamp="2024-01-01 00:00:00", log_path=str(tmp_path / "t.log"))
    console = io.StringIO()
    transcript = DiagnosticLogger(console=console)
    ensurer = ServiceEnsurer(controller) if controller is not None else None
    report = Runner(ctx, TimeSyncQueries(FakeRunner(outputs)), transcript, service_ensurer=ensurer).run()
    transcript.close()
    lines = (tmp_path / "t.log").read_text(encoding="utf-8").splitlines()
    messages = [line.split(" - ", 1)[1] for line in lines]
    return report, messages


def test_full_run_logs_summary(tmp_path) -> None:
    outputs = {PEERS: "Peer: 10.0.0.1\nPeer: 10.0.0.2\n", STATUS: STATUS_TEXT}
    report, messages = _run(tmp_path, outputs, FakeController(HostServiceState.RUNNING))

    assert report.stage is RunStage.DONE
    assert report.service is not None and report.service.state is ServiceState.ALREADY_RUNNING
    assert report.peers == ("10.0.0.1", "10.0.0.2")
    assert report.status.as_report()["pollIntervalSeconds"] == "64 seconds"
    assert report.errors == []
    assert messages == [
        "Time synchronization diagnostics for diag-host (run started 2024-01-01 00:00:00)",
        "Time service already running",
        "Configured peers: 10.0.0.1, 10.0.0.2",
        "Time Source: time.windows.com",
        "Last Successful Sync Time: 2024-01-01 00:00:00",
        "Poll Interval: 64 seconds",
        "Sync Type: NTP",
    ]


def test_service_failure_does_not_stop_run(tmp_path) -> None:
    outputs = {PEERS: "", STATUS: STATUS_TEXT}
    controller = FakeController(HostServiceState.STOPPED, start_error="access denied")
    report, messages = _run(tmp_path, outputs, controller)

    assert report.stage is RunStage.DONE
    assert report.service is not None and report.service.state is ServiceState.FAILED_TO_START
    assert isinstance(report.errors[0], ServiceControlError)
    assert "Time service could not be started: access denied" in messages
    assert "No peers configured" in messages
    assert "Time Source: time.windows.com" in messages


def test_started_service_is_logged(tmp_path) -> None:
    outputs = {PEERS: "", STATUS: STATUS_TEXT}
    report, messages = _run(tmp_path, outputs, FakeController(HostServiceState.STOPPED))
    assert report.service is not None and report.service.state is ServiceState.STARTED
    assert messages[1] == "Time service started"


def test_query_failures_fall_back_to_defaults(tmp_path) -> None:
    failure = CommandInvocationError(list(STATUS), "exit status 1", returncode=1)
    report, messages = _run(tmp_path, {STATUS: failure})

    assert report.stage is RunStage.DONE
    assert report.peers == ()
    assert report.status == SyncStatus()
    assert len(report.errors) == 2
    assert all(isinstance(error, CommandInvocationError) for error in report.errors)
    assert any(message.startswith("Failed to query peers:") for message in messages)
    assert any(message.startswith("Failed to query status:") for message in messages)
    # No per-field warnings when no output was obtained.
    assert not any(message.startswith("Field not found") for message in messages)
    assert report.warnings == []
    assert "Time Source: Unknown" in messages
    assert "Poll Interval: Unspecified" in messages


def test_missing_fields_are_warned(tmp_path) -> None:
    outputs = {PEERS: "Peer: a\n", STATUS: "Source: local\nPoll Interval: abc\n"}
    report, messages = _run(tmp_path, outputs)

    assert report.errors == []
    assert "Field not found in status output: pollIntervalSeconds" in messages
    assert "Field not found in status output: lastSyncTime" in messages
    assert "Field not found in status output: syncType" in messages
    assert "Field not found in status output: timeSource" not in messages
    assert [warning.field for warning in report.warnings] == ["lastSyncTime", "pollIntervalSeconds", "syncType"]
    assert "Time Source: local" in messages


def test_run_without_service_ensurer_skips_stage(tmp_path) -> None:
    report, messages = _run(tmp_path, {PEERS: "", STATUS: ""})
    assert report.service is None
    assert not any(message.startswith("Time service") for message in messages)
