"""Process invocation boundary for the time-sync queries."""

from __future__ import annotations

import logging
import subprocess
from typing import Protocol, Sequence

from .config import CommandsConfig
from .errors import CommandInvocationError


class CommandRunner(Protocol):
    """Protocol for running an external command and returning its stdout."""

    def run(self, command: Sequence[str]) -> str:
        """Return the command's text output or raise CommandInvocationError."""


class SubprocessRunner:
    """Run commands synchronously with ``subprocess.run``."""

    def __init__(self, timeout_s: float = 30.0, logger: logging.Logger | None = None) -> None:
        self._timeout_s = timeout_s
        self._logger = logger or logging.getLogger(__name__)

    def run(self, command: Sequence[str]) -> str:
        args = list(command)
        if not args:
            raise CommandInvocationError(args, "empty command")
        self._logger.debug("command_started", extra={"command": args})
        try:
            result = subprocess.run(
                args,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self._timeout_s,
                check=False,
            )
        except FileNotFoundError as exc:
            raise CommandInvocationError(args, "command not found") from exc
        except PermissionError as exc:
            raise CommandInvocationError(args, "permission denied") from exc
        except subprocess.TimeoutExpired as exc:
            raise CommandInvocationError(args, f"timed out after {self._timeout_s:g}s") from exc
        except OSError as exc:
            raise CommandInvocationError(args, str(exc)) from exc

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            # w32tm reports most failures on stdout.
            detail = stderr or (result.stdout or "").strip()
            self._logger.warning(
                "command_failed",
                extra={"command": args, "returncode": result.returncode},
            )
            reason = f"exit status {result.returncode}"
            if detail:
                reason = f"{reason}: {detail.splitlines()[0]}"
            raise CommandInvocationError(args, reason, returncode=result.returncode, stderr=stderr)
        return result.stdout or ""


class TimeSyncQueries:
    """The two queries a diagnostics run issues."""

    def __init__(self, runner: CommandRunner, config: CommandsConfig | None = None) -> None:
        self._runner = runner
        self._config = config or CommandsConfig()

    def query_status(self) -> str:
        return self._runner.run(self._config.status_command)

    def query_peers(self) -> str:
        return self._runner.run(self._config.peers_command)
