"""Тесты групп настроек."""

from __future__ import annotations

import pytest

from dockfleet.settings.exceptions import SettingsNotFoundError, SettingsValidationError
from dockfleet.settings.groups import (
    DockerSettings,
    LoggingSettings,
    RepositoriesSettings,
    SSHSettings,
)


def test_logging_settings_ranges() -> None:
    settings = LoggingSettings()
    settings.set("max_file_size_mb", 100)
    with pytest.raises(SettingsValidationError):
        settings.set("max_archived_files", 0)
    with pytest.raises(SettingsValidationError):
        settings.set("level", "TRACE")


def test_ssh_settings_defaults_and_port_range() -> None:
    settings = SSHSettings()
    assert settings.get("port") == 22
    assert settings.get("allow_agent") is False
    with pytest.raises(SettingsValidationError):
        settings.set("port", 70000)
    with pytest.raises(SettingsValidationError):
        settings.set("look_for_keys", "yes")


def test_repositories_settings_validation() -> None:
    settings = RepositoriesSettings()
    assert settings.get("base_folder") == "projects"
    settings.set("base_folder", "/srv/apps")
    with pytest.raises(SettingsValidationError):
        settings.set("base_folder", "apps; rm -rf /")
    with pytest.raises(SettingsValidationError):
        settings.set("compose_file", "../compose.yml/x y")


def test_docker_settings_enum() -> None:
    settings = DockerSettings()
    settings.set("compose_command", "docker-compose")
    with pytest.raises(SettingsValidationError):
        settings.set("compose_command", "podman compose")


def test_from_dict_skips_unknown_and_reset() -> None:
    settings = RepositoriesSettings()
    settings.from_dict({"clone_timeout_sec": 600, "legacy_key": 1})
    assert settings.get("clone_timeout_sec") == 600
    settings.reset_to_defaults()
    assert settings.get("clone_timeout_sec") == 300


def test_unknown_key_raises_not_found() -> None:
    with pytest.raises(SettingsNotFoundError):
        SSHSettings().get("unknown")


@pytest.mark.parametrize(
    ("group", "key", "raw", "expected"),
    [
        (SSHSettings(), "port", " 2222 ", 2222),
        (SSHSettings(), "look_for_keys", "off", False),
        (DockerSettings(), "compose_command", "docker-compose", "docker-compose"),
    ],
)
def test_coerce_follows_default_type(group, key: str, raw: str, expected) -> None:
    assert group.coerce(key, raw) == expected


def test_coerce_rejects_bad_text() -> None:
    with pytest.raises(SettingsValidationError):
        SSHSettings().coerce("port", "twenty-two")
    with pytest.raises(SettingsValidationError):
        SSHSettings().coerce("allow_agent", "maybe")
    with pytest.raises(SettingsNotFoundError):
        SSHSettings().coerce("unknown", "1")
