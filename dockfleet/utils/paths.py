"""Централизованное описание путей приложения."""

from __future__ import annotations

import os
from pathlib import Path


def resolve_config_dir() -> Path:
    """Возвращает базовую директорию, учитывая переменную DOCKFLEET_HOME."""

    home_dir = Path(os.environ.get("DOCKFLEET_HOME", Path.home()))
    return home_dir / ".dockfleet"


# CONFIG_DIR: базовая директория, где сохраняются настройки и логи
CONFIG_DIR = resolve_config_dir()
