"""Различные вспомогательные функции."""

from __future__ import annotations

import re
from typing import Iterable

_UNSAFE_NAME_CHARS = re.compile(r"[^\w\-]")
_SIZE_WITH_UNIT = re.compile(r"^(?P<value>\d+(?:[.,]\d+)?)(?P<unit>[A-Za-z]*)$")

SECRET_MASK = "***"


def sanitize_repository_name(raw_value: str) -> str:
    """Заменяет всё, кроме букв, цифр, '_' и '-', на '_'."""

    return _UNSAFE_NAME_CHARS.sub("_", raw_value.strip())


def mask_secrets(text: str, secrets: Iterable[str | None]) -> str:
    """Скрывает секреты (токены, пароли) в строке перед выводом в журнал."""

    masked = text
    for secret in secrets:
        if secret:
            masked = masked.replace(secret, SECRET_MASK)
    return masked


def strip_size_unit(raw_value: str) -> float:
    """Преобразует '12G' или '3,5M' в число, отбрасывая суффикс единиц."""

    match = _SIZE_WITH_UNIT.match(raw_value.strip())
    if match is None:
        raise ValueError(f"Not a size value: {raw_value!r}")
    return float(match.group("value").replace(",", "."))
