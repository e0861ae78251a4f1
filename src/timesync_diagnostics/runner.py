"""Orchestrate a single diagnostics run."""

from __future__ import annotations

import logging
from typing import Callable

from .commands import TimeSyncQueries
from .errors import CommandInvocationError, FieldParseWarning
from .extraction import extract_peers, extract_status
from .logging_utils import DiagnosticLogger
from .models import RunContext, RunReport, RunStage, ServiceState
from .service import ServiceEnsurer


class Runner:
    """Run every stage in order; failures degrade a stage, never the run."""

    def __init__(
        self,
        context: RunContext,
        queries: TimeSyncQueries,
        transcript: DiagnosticLogger,
        service_ensurer: ServiceEnsurer | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._context = context
        self._queries = queries
        self._transcript = transcript
        self._service_ensurer = service_ensurer
        self._logger = logger or logging.getLogger(__name__)

    def _log(self, message: str) -> None:
        self._transcript.log(self._context, message)

    def _warn(self, message: str) -> None:
        self._transcript.warning(self._context, message)

    def _advance(self, report: RunReport, stage: RunStage) -> None:
        self._logger.debug("stage_entered", extra={"stage": stage.value})
        report.stage = stage

    def run(self) -> RunReport:
        ctx = self._context
        report = RunReport(context=ctx)
        self._log(f"Time synchronization diagnostics for {ctx.hostname} (run started {ctx.execution_timestamp})")

        self._advance(report, RunStage.ENSURE_SERVICE)
        if self._service_ensurer is not None:
            self._ensure_service(report, self._service_ensurer)

        self._advance(report, RunStage.QUERY_PEERS)
        peers_text = self._query(report, "peers", self._queries.query_peers)
        self._advance(report, RunStage.EXTRACT_PEERS)
        if peers_text is not None:
            report.peers = extract_peers(peers_text)

        self._advance(report, RunStage.QUERY_STATUS)
        status_text = self._query(report, "status", self._queries.query_status)
        self._advance(report, RunStage.EXTRACT_STATUS)
        if status_text is not None:
            report.status = extract_status(status_text)

        self._advance(report, RunStage.LOG_SUMMARY)
        self._log_summary(report, status_obtained=status_text is not None)

        self._advance(report, RunStage.DONE)
        return report

    def _ensure_service(self, report: RunReport, ensurer: ServiceEnsurer) -> None:
        result = ensurer.ensure()
        report.service = result
        if result.state is ServiceState.ALREADY_RUNNING:
            self._log("Time service already running")
        elif result.state is ServiceState.STARTED:
            self._log("Time service started")
        else:
            if result.error is not None:
                report.errors.append(result.error)
            self._warn(f"Time service could not be started: {result.error}")

    def _query(self, report: RunReport, name: str, query: Callable[[], str]) -> str | None:
        try:
            return query()
        except CommandInvocationError as exc:
            report.errors.append(exc)
            self._logger.warning("query_failed", extra={"query": name, "error": str(exc)})
            self._warn(f"Failed to query {name}: {exc}")
            return None

    def _log_summary(self, report: RunReport, status_obtained: bool) -> None:
        if report.peers:
            self._log(f"Configured peers: {', '.join(report.peers)}")
        else:
            self._log("No peers configured")

        # Missing fields are only meaningful when output was actually parsed.
        if status_obtained:
            report.warnings = [FieldParseWarning(name) for name in report.status.missing_fields()]
            for warning in report.warnings:
                self._warn(str(warning))

        status = report.status
        self._log(f"Time Source: {status.time_source_text}")
        self._log(f"Last Successful Sync Time: {status.last_sync_time_text}")
        self._log(f"Poll Interval: {status.poll_interval_text}")
        self._log(f"Sync Type: {status.sync_type_text}")
