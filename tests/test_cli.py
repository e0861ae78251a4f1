import logging

import pytest

from timesync_diagnostics import cli


@pytest.fixture(autouse=True)
def _reset_root_logging():
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)


def test_load_settings_applies_overrides() -> None:
    args = cli.build_parser().parse_args(["--log-path", "x.log", "--skip-service", "--backend", "systemd"])
    settings = cli.load_settings(args)
    assert settings.log_path == "x.log"
    assert settings.service.enabled is False
    assert settings.service.backend == "systemd"


def test_main_exits_zero_when_commands_are_missing(tmp_path, monkeypatch, capsys) -> None:
    log_path = tmp_path / "diag.log"
    monkeypatch.setenv("TSD_COMMANDS__STATUS_COMMAND", '["definitely-not-a-real-command-xyz"]')
    monkeypatch.setenv("TSD_COMMANDS__PEERS_COMMAND", '["definitely-not-a-real-command-xyz"]')

    assert cli.main(["--log-path", str(log_path), "--skip-service"]) == 0

    lines = log_path.read_text(encoding="utf-8").splitlines()
    assert any(line.endswith("No peers configured") for line in lines)
    assert any(line.endswith("Time Source: Unknown") for line in lines)
    assert capsys.readouterr().out.splitlines() == lines
