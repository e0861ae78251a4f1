"""Records produced and consumed during a diagnostics run."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
import socket
from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field

from .errors import DiagnosticsError, FieldParseWarning, ServiceControlError

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

UNKNOWN = "Unknown"
UNSPECIFIED = "Unspecified"

PeerList = Tuple[str, ...]


@dataclass(frozen=True)
class SyncStatus:
    """Parsed time-sync status.

    Fields hold ``None`` when the value could not be extracted; the ``*_text``
    accessors substitute the sentinel defaults used in the transcript.
    """

    time_source: str | None = None
    last_sync_time: str | None = None
    poll_interval_seconds: int | None = None
    sync_type: str | None = None

    @property
    def time_source_text(self) -> str:
        return self.time_source if self.time_source is not None else UNKNOWN

    @property
    def last_sync_time_text(self) -> str:
        return self.last_sync_time if self.last_sync_time is not None else UNSPECIFIED

    @property
    def poll_interval_text(self) -> str:
        if self.poll_interval_seconds is None:
            return UNSPECIFIED
        return f"{self.poll_interval_seconds} seconds"

    @property
    def sync_type_text(self) -> str:
        return self.sync_type if self.sync_type is not None else UNSPECIFIED

    def missing_fields(self) -> list[str]:
        """Return the rendered names of fields that fell back to defaults."""

        # Ordered like the status output prefixes.
        candidates = [
            ("timeSource", self.time_source),
            ("lastSyncTime", self.last_sync_time),
            ("pollIntervalSeconds", self.poll_interval_seconds),
            ("syncType", self.sync_type),
        ]
        return [name for name, value in candidates if value is None]

    def as_report(self) -> dict[str, str]:
        return {
            "timeSource": self.time_source_text,
            "lastSyncTime": self.last_sync_time_text,
            "pollIntervalSeconds": self.poll_interval_text,
            "syncType": self.sync_type_text,
        }


class RunContext(BaseModel):
    """Per-run values shared by every logging call."""

    model_config = ConfigDict(frozen=True)

    hostname: str = Field(min_length=1)
    execution_timestamp: str
    log_path: str = Field(min_length=1)

    @classmethod
    def create(cls, log_path: str, now: datetime | None = None) -> "RunContext":
        now = now or datetime.now()
        return cls(
            hostname=socket.gethostname() or "localhost",
            execution_timestamp=now.strftime(TIMESTAMP_FORMAT),
            log_path=log_path,
        )


class HostServiceState(str, Enum):
    """State reported by a service controller."""

    RUNNING = "running"
    STOPPED = "stopped"
    UNKNOWN = "unknown"


class ServiceState(str, Enum):
    """Outcome of ensuring the time service is running."""

    ALREADY_RUNNING = "already_running"
    STARTED = "started"
    FAILED_TO_START = "failed_to_start"


@dataclass(frozen=True)
class EnsureResult:
    """Service outcome plus the failure cause, if any."""

    state: ServiceState
    error: ServiceControlError | None = None


class RunStage(str, Enum):
    """Linear stages of a diagnostics run."""

    START = "start"
    ENSURE_SERVICE = "ensure_service"
    QUERY_PEERS = "query_peers"
    EXTRACT_PEERS = "extract_peers"
    QUERY_STATUS = "query_status"
    EXTRACT_STATUS = "extract_status"
    LOG_SUMMARY = "log_summary"
    DONE = "done"


@dataclass
class RunReport:
    """Everything a run produced, for callers and tests."""

    context: RunContext
    service: EnsureResult | None = None
    peers: PeerList = ()
    status: SyncStatus = field(default_factory=SyncStatus)
    errors: list[DiagnosticsError] = field(default_factory=list)
    warnings: list[FieldParseWarning] = field(default_factory=list)
    stage: RunStage = RunStage.START
