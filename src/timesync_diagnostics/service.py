"""Ensure the host's time-sync service is running."""

from __future__ import annotations

import logging
import re
from typing import Protocol

from .commands import CommandRunner
from .config import ServiceConfig
from .errors import CommandInvocationError, ServiceControlError
from .models import EnsureResult, HostServiceState, ServiceState

_SC_STATE = re.compile(r"^\s*STATE\s*:\s*\d+\s+(\w+)", re.MULTILINE)


class ServiceController(Protocol):
    """Service control boundary."""

    def query_state(self) -> HostServiceState:
        """Return the service state or raise ServiceControlError."""

    def request_start(self) -> None:
        """Start the service or raise ServiceControlError."""


class WindowsServiceController:
    """Control a Windows service through ``sc``."""

    def __init__(self, runner: CommandRunner, name: str = "W32Time") -> None:
        self._runner = runner
        self._name = name

    def query_state(self) -> HostServiceState:
        try:
            output = self._runner.run(["sc", "query", self._name])
        except CommandInvocationError as exc:
            raise ServiceControlError(f"cannot query service {self._name}: {exc.reason}") from exc
        match = _SC_STATE.search(output)
        if match is None:
            return HostServiceState.UNKNOWN
        state = match.group(1).upper()
        if state == "RUNNING":
            return HostServiceState.RUNNING
        if state == "STOPPED":
            return HostServiceState.STOPPED
        # START_PENDING, STOP_PENDING, PAUSED and friends
        return HostServiceState.UNKNOWN

    def request_start(self) -> None:
        try:
            self._runner.run(["sc", "start", self._name])
        except CommandInvocationError as exc:
            raise ServiceControlError(f"cannot start service {self._name}: {exc.reason}") from exc


class SystemdServiceController:
    """Control a systemd unit through ``systemctl``."""

    def __init__(self, runner: CommandRunner, name: str = "systemd-timesyncd") -> None:
        self._runner = runner
        self._name = name

    def query_state(self) -> HostServiceState:
        try:
            output = self._runner.run(["systemctl", "is-active", self._name])
        except CommandInvocationError as exc:
            # is-active exits 3 for inactive units and prints the state.
            if exc.returncode == 3:
                return HostServiceState.STOPPED
            raise ServiceControlError(f"cannot query unit {self._name}: {exc.reason}") from exc
        if output.strip() == "active":
            return HostServiceState.RUNNING
        return HostServiceState.UNKNOWN

    def request_start(self) -> None:
        try:
            self._runner.run(["systemctl", "start", self._name])
        except CommandInvocationError as exc:
            raise ServiceControlError(f"cannot start unit {self._name}: {exc.reason}") from exc


def build_controller(config: ServiceConfig, runner: CommandRunner) -> ServiceController:
    if config.backend == "systemd":
        return SystemdServiceController(runner, config.name)
    return WindowsServiceController(runner, config.name)


class ServiceEnsurer:
    """Start the time service when it is not already running."""

    def __init__(self, controller: ServiceController, logger: logging.Logger | None = None) -> None:
        self._controller = controller
        self._logger = logger or logging.getLogger(__name__)

    def ensure(self) -> EnsureResult:
        try:
            state = self._controller.query_state()
            if state is HostServiceState.RUNNING:
                return EnsureResult(ServiceState.ALREADY_RUNNING)
            self._logger.info("service_start_requested", extra={"previous_state": state.value})
            self._controller.request_start()
        except ServiceControlError as exc:
            self._logger.warning("service_control_failed", extra={"error": str(exc)})
            return EnsureResult(ServiceState.FAILED_TO_START, error=exc)
        return EnsureResult(ServiceState.STARTED)
