"""Группы настроек с валидацией значений."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Tuple

from dockfleet.settings.exceptions import SettingsNotFoundError, SettingsValidationError
from dockfleet.settings.validators import (
    CompositeValidator,
    EnumValidator,
    NonEmptyValidator,
    RangeValidator,
    RegexValidator,
    TypeValidator,
    Validator,
)

FILE_NAME_PATTERN = r"^[\w.\-]+$"
FOLDER_PATTERN = r"^[\w.\-/~]+$"
_TRUE_WORDS = ("true", "yes", "on", "1")
_FALSE_WORDS = ("false", "no", "off", "0")


class SettingsGroup(ABC):
    """Абстрактная база для конкретных групп настроек."""

    group_name: str = ""

    def __init__(self) -> None:
        self._defaults: Dict[str, Any] = {}
        self._validators: Dict[str, Validator] = {}
        self._values: Dict[str, Any] = {}
        self._initialize_defaults()
        self._setup_validators()
        self.reset_to_defaults()

    @abstractmethod
    def _initialize_defaults(self) -> None:
        """Задаёт значения по умолчанию для группы."""

    @abstractmethod
    def _setup_validators(self) -> None:
        """Привязывает валидаторы к ключам группы."""

    def keys(self) -> Tuple[str, ...]:
        return tuple(self._defaults.keys())

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._defaults:
            raise SettingsNotFoundError(self.group_name, key)
        return self._values.get(key, default)

    def validate(self, key: str, value: Any) -> Tuple[bool, str]:
        validator = self._validators.get(key)
        if not validator:
            return True, ""
        return validator.validate(value)

    def set(self, key: str, value: Any) -> None:
        """Сохраняет значение, выбрасывая ошибку при невалидных данных."""

        if key not in self._defaults:
            raise SettingsNotFoundError(self.group_name, key)
        is_valid, error = self.validate(key, value)
        if not is_valid:
            raise SettingsValidationError(
                key=f"{self.group_name}.{key}",
                value=value,
                reason=error,
            )
        self._values[key] = value

    def coerce(self, key: str, raw: str) -> Any:
        """Приводит текст из командной строки к типу значения по умолчанию."""

        if key not in self._defaults:
            raise SettingsNotFoundError(self.group_name, key)
        default = self._defaults[key]
        text = raw.strip()
        if isinstance(default, bool):
            if text.lower() in _TRUE_WORDS:
                return True
            if text.lower() in _FALSE_WORDS:
                return False
            reason = "expected true or false"
        elif isinstance(default, int):
            try:
                return int(text)
            except ValueError:
                reason = "expected an integer"
        else:
            return text
        raise SettingsValidationError(key=f"{self.group_name}.{key}", value=raw, reason=reason)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._values)

    def from_dict(self, data: Dict[str, Any]) -> None:
        """Заполняет значениями из словаря; неизвестные ключи пропускаются."""

        for key, value in data.items():
            if key in self._defaults:
                self.set(key, value)

    def reset_to_defaults(self) -> None:
        self._values = dict(self._defaults)


class LoggingSettings(SettingsGroup):
    """Настройки журналирования."""

    group_name = "logging"

    def _initialize_defaults(self) -> None:
        self._defaults = {
            "enabled": True,
            "level": "INFO",
            "max_file_size_mb": 10,
            "max_archived_files": 5,
        }

    def _setup_validators(self) -> None:
        self._validators = {
            "enabled": TypeValidator(bool),
            "level": EnumValidator(["DEBUG", "INFO", "WARNING", "ERROR"]),
            "max_file_size_mb": RangeValidator(1, 1000),
            "max_archived_files": RangeValidator(1, 50),
        }


class SSHSettings(SettingsGroup):
    """Параметры установления SSH-сессий."""

    group_name = "ssh"

    def _initialize_defaults(self) -> None:
        self._defaults = {
            "port": 22,
            "connect_timeout_sec": 10,
            "auth_timeout_sec": 10,
            "allow_agent": False,
            "look_for_keys": False,
        }

    def _setup_validators(self) -> None:
        self._validators = {
            "port": RangeValidator(1, 65535),
            "connect_timeout_sec": RangeValidator(1, 300),
            "auth_timeout_sec": RangeValidator(1, 300),
            "allow_agent": TypeValidator(bool),
            "look_for_keys": TypeValidator(bool),
        }


class RepositoriesSettings(SettingsGroup):
    """Размещение репозиториев на удалённом хосте и лимиты git."""

    group_name = "repositories"

    def _initialize_defaults(self) -> None:
        self._defaults = {
            "base_folder": "projects",
            "clone_timeout_sec": 300,
            "pull_timeout_sec": 120,
            "compose_file": "docker-compose.yml",
            "env_file": ".env",
        }

    def _setup_validators(self) -> None:
        self._validators = {
            "base_folder": CompositeValidator(
                [NonEmptyValidator(), RegexValidator(FOLDER_PATTERN)]
            ),
            "clone_timeout_sec": RangeValidator(10, 3600),
            "pull_timeout_sec": RangeValidator(10, 3600),
            "compose_file": RegexValidator(FILE_NAME_PATTERN),
            "env_file": RegexValidator(FILE_NAME_PATTERN),
        }


class DockerSettings(SettingsGroup):
    """Как вызывается docker на удалённом хосте."""

    group_name = "docker"

    def _initialize_defaults(self) -> None:
        self._defaults = {
            "compose_command": "docker compose",
        }

    def _setup_validators(self) -> None:
        self._validators = {
            "compose_command": EnumValidator(["docker compose", "docker-compose"]),
        }
