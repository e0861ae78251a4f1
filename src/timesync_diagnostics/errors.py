"""Error taxonomy for time-sync diagnostics runs."""

from __future__ import annotations

from typing import Sequence


class DiagnosticsError(Exception):
    """Base class for recoverable diagnostics failures."""


class ServiceControlError(DiagnosticsError):
    """The time service could not be queried or started."""


class CommandInvocationError(DiagnosticsError):
    """A query command could not be run or reported failure."""

    def __init__(
        self,
        command: Sequence[str],
        reason: str,
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        self.command = list(command)
        self.reason = reason
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"{' '.join(self.command)}: {reason}")


class LogSinkError(DiagnosticsError):
    """The transcript file could not be appended to."""


class FieldParseWarning(UserWarning):
    """An expected status field was absent or malformed."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"Field not found in status output: {field}")
