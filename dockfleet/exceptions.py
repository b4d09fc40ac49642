"""Типизированные ошибки ядра: соединения, команды, разбор вывода."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

LOGGER = logging.getLogger(__name__)


class DockfleetError(Exception):
    """Базовое исключение с контекстом, которое само пишет себя в журнал."""

    def __init__(self, message: str, *, context: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.context = context or {}
        super().__init__(message)
        LOGGER.error("%s | context=%s", message, self.context)


class SSHConnectionError(DockfleetError):
    """Не удалось установить SSH-сессию (аутентификация или сеть)."""

    def __init__(self, host: str, username: str, reason: str) -> None:
        self.host = host
        self.username = username
        self.reason = reason
        super().__init__(
            f"Cannot connect to {username}@{host}: {reason}",
            context={"host": host, "username": username},
        )


class NotFoundError(DockfleetError):
    """Объект (по умолчанию соединение) отсутствует или уже не активен."""

    def __init__(self, identifier: str, kind: str = "Connection") -> None:
        self.identifier = identifier
        self.kind = kind
        super().__init__(
            f"{kind} '{identifier}' not found",
            context={"kind": kind, "identifier": identifier},
        )


class CommandExecutionError(DockfleetError):
    """Удалённая команда завершилась с ошибкой."""

    def __init__(self, command: str, exit_status: int, stderr: str, stdout: str = "") -> None:
        self.command = command
        self.exit_status = exit_status
        self.stderr = stderr
        self.stdout = stdout
        details = stderr.strip() or stdout.strip() or "no output"
        super().__init__(
            f"Command failed with exit status {exit_status}: {details}",
            context={"command": command, "exit_status": exit_status},
        )


class ParseError(DockfleetError):
    """Вывод команды не соответствует ожидаемому формату."""

    def __init__(self, source: str, reason: str, line: Optional[str] = None) -> None:
        self.source = source
        self.reason = reason
        self.line = line
        super().__init__(
            f"Cannot parse {source} output: {reason}",
            context={"source": source, "line": line},
        )


class ValidationError(DockfleetError):
    """Некорректные входные данные операции."""

    def __init__(self, field: str, value: Any, reason: str) -> None:
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(
            f"Invalid value for '{field}': {reason} (value={value!r})",
            context={"field": field, "reason": reason},
        )
