"""Configuration management for diagnostics runs."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
import tomllib


class LoggingConfig(BaseModel):
    """Settings for the tool's own module loggers (not the transcript)."""

    # Logging severity threshold (INFO/DEBUG/etc.).
    level: str = Field(default="WARNING", description="Logging level")
    # Emit JSON if True; otherwise emit a human-readable format.
    as_json: bool = Field(default=False, description="Emit JSON logs")
    # Optional file path for log output; if None, logs go to stderr.
    log_file: str | None = Field(default=None, description="Optional log file path")
    # Maximum size (bytes) before log rotation.
    max_bytes: int = Field(default=1_000_000, description="Max log file size before rotation")
    # Number of backup files to retain.
    backup_count: int = Field(default=3, description="Number of rotated log files to keep")


class CommandsConfig(BaseModel):
    """External query commands."""

    status_command: list[str] = Field(
        default_factory=lambda: ["w32tm", "/query", "/status"],
        description="Command printing the sync status",
    )
    peers_command: list[str] = Field(
        default_factory=lambda: ["w32tm", "/query", "/peers"],
        description="Command printing the configured peers",
    )
    # Applied to every external command, including service control.
    timeout_s: float = Field(default=30.0, gt=0.0, description="Command timeout (seconds)")


class ServiceConfig(BaseModel):
    """Time service control settings."""

    enabled: bool = Field(default=True, description="Ensure the service is running before querying")
    # "sc" drives the Windows service manager, "systemd" uses systemctl.
    backend: Literal["sc", "systemd"] = Field(default="sc", description="Service control backend")
    name: str = Field(default="W32Time", min_length=1, description="Service or unit name")


class DiagnosticsSettings(BaseSettings):
    """Configuration settings loaded from env or optional TOML."""

    # Environment keys use TSD_ prefix and "__" nesting.
    model_config = SettingsConfigDict(env_prefix="TSD_", env_nested_delimiter="__", extra="ignore")

    # Append-only transcript file.
    log_path: str = Field(default="timesync_diagnostics.log", min_length=1, description="Transcript path")
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    commands: CommandsConfig = Field(default_factory=CommandsConfig)
    service: ServiceConfig = Field(default_factory=ServiceConfig)

    @classmethod
    def from_toml(cls, path: str | Path) -> "DiagnosticsSettings":
        data = tomllib.loads(Path(path).read_text(encoding="utf-8"))
        return cls.model_validate(data)
