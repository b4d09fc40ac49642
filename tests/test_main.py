"""Тесты вспомогательных функций и команд модуля main."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from dockfleet import main as main_module
from dockfleet.main import build_parser, initialize_workdir, setup_logging_from_settings
from dockfleet.service import create_service
from dockfleet.settings.groups import LoggingSettings
from dockfleet.settings.registry import SettingsRegistry


class DummySettings:
    def __init__(self, enabled: bool = True, level: str = "INFO") -> None:
        self.logging = LoggingSettings()
        self.logging.set("enabled", enabled)
        self.logging.set("level", level)

    def get_group(self, name: str):  # type: ignore[override]
        if name == "logging":
            return self.logging
        raise KeyError(name)


def json_payload(output: str):
    """Журнал тоже пишет в stdout: JSON начинается с первой скобки."""

    start = min(index for index in (output.find("{"), output.find("[")) if index >= 0)
    return json.loads(output[start:])


@pytest.fixture(autouse=True)
def isolated_registry():
    SettingsRegistry._instance = None  # type: ignore[attr-defined]
    yield
    SettingsRegistry._instance = None  # type: ignore[attr-defined]
    logging.disable(logging.NOTSET)


def test_initialize_workdir_creates_structure(tmp_path: Path) -> None:
    base_dir = tmp_path / ".dockfleet"
    assert initialize_workdir(base_dir)
    assert (base_dir / "logs").is_dir()


def test_setup_logging_enabled_creates_log(tmp_path: Path) -> None:
    setup_logging_from_settings(tmp_path, DummySettings(enabled=True, level="INFO"))
    logging.getLogger("test").info("log entry")
    for handler in logging.getLogger().handlers:
        handler.flush()
    log_file = tmp_path / "logs" / "dockfleet.log"
    assert "log entry" in log_file.read_text(encoding="utf-8")


def test_setup_logging_disabled(tmp_path: Path) -> None:
    setup_logging_from_settings(tmp_path, DummySettings(enabled=False))
    assert logging.root.manager.disable >= logging.CRITICAL


def test_parser_exec_collects_remote_command() -> None:
    args = build_parser().parse_args(["exec", "-u", "root", "--ephemeral", "host", "ls", "-la"])
    assert args.command == "exec"
    assert args.host == "host"
    assert args.ephemeral is True
    assert args.remote_command == ["ls", "-la"]


def test_parser_exec_keeps_flags_after_host_for_remote_command() -> None:
    args = build_parser().parse_args(["exec", "-u", "root", "host", "ls", "--ephemeral"])
    assert args.ephemeral is False
    assert args.remote_command == ["ls", "--ephemeral"]


def test_main_prints_containers(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    session_factory,
    fake_host,
) -> None:
    monkeypatch.setenv("DOCKFLEET_HOME", str(tmp_path))
    monkeypatch.setenv("DOCKFLEET_PASSWORD", "pw")
    monkeypatch.setattr(
        main_module,
        "create_service",
        lambda settings: create_service(settings, session_factory=session_factory),
    )
    entry = {"ID": "abc123", "Names": "web", "Image": "nginx", "State": "running"}
    fake_host.on("docker ps", stdout=json.dumps(entry) + "\n")

    exit_code = main_module.main(["containers", "10.0.0.5", "-u", "deploy"])

    payload = json_payload(capsys.readouterr().out)
    assert exit_code == 0
    assert payload[0]["name"] == "web"
    assert fake_host.sessions[0].credentials.password == "pw"
    assert fake_host.sessions[0].closed
    assert (tmp_path / ".dockfleet" / "config.json").exists()


def test_main_reports_connection_errors(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    session_factory,
    fake_host,
) -> None:
    monkeypatch.setenv("DOCKFLEET_HOME", str(tmp_path))
    monkeypatch.setattr(
        main_module,
        "create_service",
        lambda settings: create_service(settings, session_factory=session_factory),
    )
    fake_host.connect_error = "Connection refused"

    exit_code = main_module.main(["status", "10.0.0.5", "-u", "deploy"])

    assert exit_code == 1
    assert "Connection refused" in capsys.readouterr().err


def test_main_exec_failure_exits_with_two(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    session_factory,
    fake_host,
) -> None:
    monkeypatch.setenv("DOCKFLEET_HOME", str(tmp_path))
    monkeypatch.setattr(
        main_module,
        "create_service",
        lambda settings: create_service(settings, session_factory=session_factory),
    )
    fake_host.on("false", exit_status=1, stderr="boom")

    exit_code = main_module.main(["exec", "-u", "deploy", "10.0.0.5", "--", "false"])

    assert exit_code == 2
    assert fake_host.commands == ["false"]
    assert "boom" in capsys.readouterr().err


def test_main_config_set_persists_and_applies_level(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("DOCKFLEET_HOME", str(tmp_path))
    root = logging.getLogger()
    previous = root.level
    try:
        exit_code = main_module.main(["config", "set", "logging", "level", "WARNING"])
        assert root.level == logging.WARNING
    finally:
        root.setLevel(previous)

    assert exit_code == 0
    assert json_payload(capsys.readouterr().out) == {"logging": {"level": "WARNING"}}
    stored = json.loads((tmp_path / ".dockfleet" / "config.json").read_text(encoding="utf-8"))
    assert stored["logging"]["level"] == "WARNING"


def test_main_config_set_converts_types(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("DOCKFLEET_HOME", str(tmp_path))

    assert main_module.main(["config", "set", "ssh", "port", "2222"]) == 0
    assert json_payload(capsys.readouterr().out) == {"ssh": {"port": 2222}}

    assert main_module.main(["config", "set", "ssh", "port", "many"]) == 1
    assert "expected an integer" in capsys.readouterr().err


def test_main_config_reset(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("DOCKFLEET_HOME", str(tmp_path))
    main_module.main(["config", "set", "docker", "compose_command", "docker-compose"])
    capsys.readouterr()
    SettingsRegistry._instance = None  # type: ignore[attr-defined]

    assert main_module.main(["config", "reset"]) == 0

    payload = json_payload(capsys.readouterr().out)
    assert payload["docker"]["compose_command"] == "docker compose"
