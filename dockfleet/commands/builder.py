"""Сборка строк shell-команд из проверенных и экранированных аргументов.

Любое значение, пришедшее от пользователя (имя контейнера, путь, токен),
попадает в команду только через :meth:`CommandBuilder.arg` или
:func:`quote_checked`: сначала валидатор, затем ``shlex.quote``.
Литералы программы и флагов передаются как есть.
"""

from __future__ import annotations

import shlex
from typing import Any, List, Optional

from dockfleet.exceptions import ValidationError
from dockfleet.settings.validators import (
    CompositeValidator,
    NonEmptyValidator,
    RegexValidator,
    Validator,
)

CONTAINER_REF = CompositeValidator(
    [NonEmptyValidator(), RegexValidator(r"[A-Za-z0-9][A-Za-z0-9_.\-]{0,254}")]
)
SERVICE_NAME = CompositeValidator(
    [NonEmptyValidator(), RegexValidator(r"[A-Za-z0-9][A-Za-z0-9_.\-]{0,254}")]
)
IMAGE_REF = CompositeValidator(
    [NonEmptyValidator(), RegexValidator(r"[A-Za-z0-9][A-Za-z0-9_.\-/:@]{0,511}")]
)
REMOTE_PATH = CompositeValidator([NonEmptyValidator(), RegexValidator(r"[^\x00\r\n]+")])
SYSTEM_SERVICE = CompositeValidator(
    [NonEmptyValidator(), RegexValidator(r"[A-Za-z0-9][A-Za-z0-9_.@\-]{0,127}")]
)


def check(field: str, value: Any, validator: Validator) -> str:
    """Возвращает значение, если валидатор его принял, иначе ValidationError."""

    is_valid, error = validator.validate(value)
    if not is_valid:
        raise ValidationError(field, value, error)
    return str(value)


def quote_checked(field: str, value: Any, validator: Optional[Validator] = None) -> str:
    """Проверяет и экранирует значение для вставки в shell."""

    if validator is not None:
        check(field, value, validator)
    return shlex.quote(str(value))


class CommandBuilder:
    """Накопитель частей команды: литералы как есть, аргументы в кавычках."""

    def __init__(self, *literals: str) -> None:
        self._parts: List[str] = []
        for literal in literals:
            self._parts.extend(literal.split())

    def flag(self, *literals: str) -> "CommandBuilder":
        self._parts.extend(literals)
        return self

    def arg(
        self,
        value: Any,
        *,
        field: str = "argument",
        validator: Optional[Validator] = None,
    ) -> "CommandBuilder":
        self._parts.append(quote_checked(field, value, validator))
        return self

    def option(
        self,
        name: str,
        value: Any,
        *,
        field: Optional[str] = None,
        validator: Optional[Validator] = None,
    ) -> "CommandBuilder":
        self._parts.append(name)
        return self.arg(value, field=field or name.lstrip("-"), validator=validator)

    def build(self) -> str:
        return " ".join(self._parts)

    def __str__(self) -> str:
        return self.build()


def chain(*commands: str) -> str:
    """Соединяет команды через && (останов на первой ошибке)."""

    return " && ".join(command for command in commands if command)


def in_directory(path: str, command: str) -> str:
    return chain(f"cd {quote_checked('path', path, REMOTE_PATH)}", command)


def write_file_command(path: str, content: str) -> str:
    """Команда, записывающая content в файл без интерпретации shell."""

    target = quote_checked("path", path, REMOTE_PATH)
    return f"printf '%s' {shlex.quote(content)} > {target}"


def read_file_command(path: str, *, optional: bool = False) -> str:
    target = quote_checked("path", path, REMOTE_PATH)
    if optional:
        return f"if [ -f {target} ]; then cat {target}; fi"
    return f"cat {target}"
