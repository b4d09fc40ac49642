"""Реестр живых SSH-соединений: подключение, поиск, отключение."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Dict, Optional

from dockfleet.connections.models import Connection, SSHCredentials, make_connection_id
from dockfleet.connections.ssh_client import SSHOptions, SSHSession
from dockfleet.exceptions import NotFoundError

SessionFactory = Callable[[SSHCredentials, SSHOptions], SSHSession]


class ConnectionRegistry:
    """Единственный владелец таблицы соединений процесса.

    Создаётся при старте, закрывается через :meth:`close`, который
    освобождает все сессии.
    """

    def __init__(
        self,
        options: SSHOptions | None = None,
        *,
        session_factory: SessionFactory | None = None,
        default_port: int = 22,
    ) -> None:
        self._logger = logging.getLogger(__name__)
        self._options = options or SSHOptions()
        self._session_factory: SessionFactory = session_factory or SSHSession
        self._default_port = default_port
        self._connections: Dict[str, Connection] = {}
        self._lock = asyncio.Lock()

    # -------------------------------------------------------------- lifecycle --
    async def connect(
        self,
        host: str,
        username: str,
        password: Optional[str],
        owner_id: str,
        *,
        port: Optional[int] = None,
        key_path: Optional[str] = None,
    ) -> str:
        """Открывает сессию и возвращает идентификатор соединения."""

        credentials = SSHCredentials(
            host=host,
            username=username,
            password=password,
            port=port or self._default_port,
            key_path=key_path,
        )
        session = await asyncio.to_thread(self._session_factory, credentials, self._options)
        connection_id = make_connection_id(owner_id, host, username)
        connection = Connection(
            identifier=connection_id,
            owner_id=owner_id,
            credentials=credentials,
            session=session,
        )
        async with self._lock:
            previous = self._connections.pop(connection_id, None)
            self._connections[connection_id] = connection
        if previous is not None and previous.session is not None:
            self._logger.info("Replacing existing session for %s", connection_id)
            await asyncio.to_thread(previous.session.close)
        self._logger.info("Connected: id=%s host=%s:%s", connection_id, host, credentials.port)
        return connection_id

    async def disconnect(self, connection_id: str) -> None:
        """Закрывает сессию; неизвестный идентификатор не является ошибкой."""

        async with self._lock:
            connection = self._connections.pop(connection_id, None)
        if connection is None:
            self._logger.debug("Disconnect requested for unknown id %s", connection_id)
            return
        if connection.session is not None:
            await asyncio.to_thread(connection.session.close)
            connection.session = None
        self._logger.info("Disconnected: id=%s", connection_id)

    async def close(self) -> None:
        """Отключает все соединения (остановка процесса)."""

        async with self._lock:
            identifiers = list(self._connections)
        for connection_id in identifiers:
            await self.disconnect(connection_id)

    # ------------------------------------------------------------------ access --
    def lookup(self, connection_id: str) -> Connection:
        """Возвращает живое соединение или бросает NotFoundError."""

        connection = self._connections.get(connection_id)
        if connection is None or not connection.is_active:
            raise NotFoundError(connection_id)
        return connection

    async def open_ephemeral(self, connection_id: str) -> SSHSession:
        """Клонирует учётные данные соединения в новую независимую сессию."""

        connection = self.lookup(connection_id)
        connection.touch()
        return await asyncio.to_thread(
            self._session_factory, connection.credentials, self._options
        )
