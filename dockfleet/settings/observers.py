"""Наблюдатели за изменением настроек."""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable


@runtime_checkable
class SettingsObserver(Protocol):
    """Контракт наблюдателя."""

    def on_setting_changed(
        self,
        group: str,
        key: str,
        old_value: object,
        new_value: object,
    ) -> None:
        """Обрабатывает событие изменения конкретного ключа."""


class LoggingSettingsObserver:
    """Пишет изменения в журнал; уровень логирования применяет сразу."""

    def __init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    def on_setting_changed(
        self,
        group: str,
        key: str,
        old_value: object,
        new_value: object,
    ) -> None:
        self._logger.info(
            "Setting changed: %s.%s (%r -> %r)",
            group,
            key,
            old_value,
            new_value,
        )
        if group == "logging" and key == "level" and isinstance(new_value, str):
            logging.getLogger().setLevel(new_value)
