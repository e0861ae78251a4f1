"""Time synchronization diagnostics: query, extract, and log sync status."""

from .commands import CommandRunner, SubprocessRunner, TimeSyncQueries
from .config import CommandsConfig, DiagnosticsSettings, LoggingConfig, ServiceConfig
from .errors import (
    CommandInvocationError,
    DiagnosticsError,
    FieldParseWarning,
    LogSinkError,
    ServiceControlError,
)
from .extraction import MAX_POLL_EXPONENT, extract_peers, extract_status, parse_poll_exponent
from .logging_utils import (
    AppendFileHandler,
    DiagnosticLogger,
    JsonFormatter,
    TranscriptFormatter,
    configure_logging,
)
from .models import (
    EnsureResult,
    HostServiceState,
    PeerList,
    RunContext,
    RunReport,
    RunStage,
    ServiceState,
    SyncStatus,
)
from .runner import Runner
from .service import (
    ServiceController,
    ServiceEnsurer,
    SystemdServiceController,
    WindowsServiceController,
    build_controller,
)

__all__ = [
    "CommandRunner",
    "SubprocessRunner",
    "TimeSyncQueries",
    "CommandsConfig",
    "DiagnosticsSettings",
    "LoggingConfig",
    "ServiceConfig",
    "CommandInvocationError",
    "DiagnosticsError",
    "FieldParseWarning",
    "LogSinkError",
    "ServiceControlError",
    "MAX_POLL_EXPONENT",
    "extract_peers",
    "extract_status",
    "parse_poll_exponent",
    "AppendFileHandler",
    "DiagnosticLogger",
    "JsonFormatter",
    "TranscriptFormatter",
    "configure_logging",
    "EnsureResult",
    "HostServiceState",
    "PeerList",
    "RunContext",
    "RunReport",
    "RunStage",
    "ServiceState",
    "SyncStatus",
    "Runner",
    "ServiceController",
    "ServiceEnsurer",
    "SystemdServiceController",
    "WindowsServiceController",
    "build_controller",
]
