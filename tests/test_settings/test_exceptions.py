"""Тесты исключений подсистемы настроек."""

from __future__ import annotations

from pathlib import Path

import pytest

from dockfleet.exceptions import DockfleetError
from dockfleet.settings.exceptions import (
    SettingsIOError,
    SettingsNotFoundError,
    SettingsValidationError,
)


def test_not_found_message_and_logging(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level("ERROR")
    error = SettingsNotFoundError("ssh", "port")
    assert str(error) == "Setting 'ssh.port' not found"
    assert "ssh.port" in caplog.text


def test_not_found_without_key() -> None:
    assert str(SettingsNotFoundError("unknown")) == "Setting 'unknown' not found"


def test_validation_error_fields(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level("ERROR")
    error = SettingsValidationError("logging.level", "LOUD", "unknown level")
    assert (error.key, error.value, error.reason) == ("logging.level", "LOUD", "unknown level")
    assert "unknown level" in str(error)
    assert "LOUD" in caplog.text


def test_io_error_contains_path(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    error = SettingsIOError(path, "permission denied")
    assert str(path) in str(error)
    assert isinstance(error, DockfleetError)
