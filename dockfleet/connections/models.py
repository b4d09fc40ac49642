"""Модели данных для описания SSH-соединений с хостами."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from dockfleet.connections.ssh_client import SSHSession


def make_connection_id(owner_id: str, host: str, username: str) -> str:
    """Детерминированный ключ соединения: владелец, хост и пользователь."""

    return f"{owner_id}_{host}_{username}"


def utc_timestamp() -> str:
    return datetime.now(UTC).isoformat()


@dataclass(slots=True, frozen=True)
class SSHCredentials:
    """Параметры SSH подключения; из них же клонируются временные сессии."""

    host: str
    username: str
    password: Optional[str] = None
    port: int = 22
    key_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Сериализует конфигурацию без секретов."""

        return {
            "host": self.host,
            "port": self.port,
            "username": self.username,
            "key_path": self.key_path,
        }


@dataclass(slots=True)
class Connection:
    """Живое соединение реестра: учётные данные и открытая сессия."""

    identifier: str
    owner_id: str
    credentials: SSHCredentials
    session: Optional["SSHSession"] = None
    created_at: str = field(default_factory=utc_timestamp)
    last_used: Optional[str] = None
    # постоянные команды одного соединения идут строго по очереди
    command_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    @property
    def is_active(self) -> bool:
        return self.session is not None and self.session.is_active()

    def touch(self) -> None:
        self.last_used = utc_timestamp()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.identifier,
            "owner_id": self.owner_id,
            "ssh": self.credentials.to_dict(),
            "is_active": self.is_active,
            "created_at": self.created_at,
            "last_used": self.last_used,
        }
