"""Transcript and structured logging helpers."""

from __future__ import annotations

from datetime import datetime
import json
import logging
from logging.handlers import RotatingFileHandler
import sys
from typing import Any, TextIO

from .config import LoggingConfig
from .errors import LogSinkError
from .models import TIMESTAMP_FORMAT, RunContext

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """Format log records as JSON."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED:
                payload[key] = value
        if record.exc_info:
            # Include stack traces when provided.
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(config: LoggingConfig) -> None:
    """Configure the root logger used by the package's module loggers."""

    # Map the string level to the logging module value.
    level = getattr(logging, config.level.upper(), logging.WARNING)
    handler: logging.Handler
    if config.log_file:
        # File-based logging with rotation.
        handler = RotatingFileHandler(
            config.log_file,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
    else:
        # stdout carries the transcript, so module logs go to stderr.
        handler = logging.StreamHandler(sys.stderr)

    formatter: logging.Formatter
    if config.as_json:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter("%(levelname)s %(name)s %(message)s")
    handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=[handler], force=True)


class TranscriptFormatter(logging.Formatter):
    """Render ``yyyy-MM-dd HH:mm:ss - message`` lines."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s - %(message)s", datefmt=TIMESTAMP_FORMAT)


class AppendFileHandler(logging.Handler):
    """Append each record to a file, degrading to console-only on failure.

    The file is opened per record. A failed append is retried once; after
    that the sink is marked unavailable, a single notice goes to ``console``
    and later records are not written to the file.
    """

    def __init__(self, path: str, console: TextIO, attempts: int = 2) -> None:
        super().__init__()
        self.path = path
        self.available = True
        self._console = console
        self._attempts = attempts

    def _append(self, line: str) -> None:
        last_error: OSError | None = None
        for _ in range(self._attempts):
            try:
                with open(self.path, "a", encoding="utf-8") as handle:
                    handle.write(line + "\n")
                return
            except OSError as exc:
                last_error = exc
        raise LogSinkError(f"log sink unavailable: {self.path} ({last_error})") from last_error

    def emit(self, record: logging.LogRecord) -> None:
        if not self.available:
            return
        try:
            line = self.format(record)
        except Exception:
            self.handleError(record)
            return
        try:
            self._append(line)
        except LogSinkError as exc:
            self.available = False
            stamp = datetime.now().strftime(TIMESTAMP_FORMAT)
            try:
                self._console.write(f"{stamp} - {exc}\n")
                self._console.flush()
            except Exception:
                self.handleError(record)


class DiagnosticLogger:
    """Write the run transcript to the console and the context's log file."""

    def __init__(self, console: TextIO | None = None) -> None:
        self._console = console or sys.stdout
        self._loggers: dict[str, logging.Logger] = {}

    def _logger_for(self, ctx: RunContext) -> logging.Logger:
        logger = self._loggers.get(ctx.log_path)
        if logger is not None:
            return logger
        # Unregistered logger: nothing propagates to, or leaks from, the root.
        logger = logging.Logger(f"{__name__}.transcript", level=logging.DEBUG)
        formatter = TranscriptFormatter()
        console_handler = logging.StreamHandler(self._console)
        console_handler.setFormatter(formatter)
        file_handler = AppendFileHandler(ctx.log_path, self._console)
        file_handler.setFormatter(formatter)
        logger.addHandler(console_handler)
        logger.addHandler(file_handler)
        self._loggers[ctx.log_path] = logger
        return logger

    def log(self, ctx: RunContext, message: str, level: int = logging.INFO) -> None:
        self._logger_for(ctx).log(level, message)

    def warning(self, ctx: RunContext, message: str) -> None:
        self.log(ctx, message, level=logging.WARNING)

    def sink_available(self, ctx: RunContext) -> bool:
        for handler in self._logger_for(ctx).handlers:
            if isinstance(handler, AppendFileHandler):
                return handler.available
        return False

    def close(self) -> None:
        for logger in self._loggers.values():
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)
        self._loggers.clear()
