"""Command line entry point for a diagnostics run."""

from __future__ import annotations

import argparse
import sys

from .commands import SubprocessRunner, TimeSyncQueries
from .config import DiagnosticsSettings
from .logging_utils import DiagnosticLogger, configure_logging
from .models import RunContext
from .runner import Runner
from .service import ServiceEnsurer, build_controller


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Report the host's time synchronization status")
    parser.add_argument("--config", help="Path to TOML configuration file")
    parser.add_argument("--log-path", help="Transcript file to append to")
    parser.add_argument("--skip-service", action="store_true", help="Do not check or start the time service")
    parser.add_argument("--backend", choices=["sc", "systemd"], help="Service control backend")
    return parser


def load_settings(args: argparse.Namespace) -> DiagnosticsSettings:
    settings = DiagnosticsSettings.from_toml(args.config) if args.config else DiagnosticsSettings()
    updates: dict[str, object] = {}
    if args.log_path:
        updates["log_path"] = args.log_path
    service_updates: dict[str, object] = {}
    if args.skip_service:
        service_updates["enabled"] = False
    if args.backend:
        service_updates["backend"] = args.backend
    if service_updates:
        updates["service"] = settings.service.model_copy(update=service_updates)
    return settings.model_copy(update=updates) if updates else settings


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings(args)
    configure_logging(settings.logging)

    context = RunContext.create(settings.log_path)
    command_runner = SubprocessRunner(timeout_s=settings.commands.timeout_s)
    ensurer = None
    if settings.service.enabled:
        ensurer = ServiceEnsurer(build_controller(settings.service, command_runner))

    transcript = DiagnosticLogger()
    try:
        Runner(
            context,
            TimeSyncQueries(command_runner, settings.commands),
            transcript,
            service_ensurer=ensurer,
        ).run()
    finally:
        transcript.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
