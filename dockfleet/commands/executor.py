"""Выполнение команд на удалённых хостах в постоянном и временном режимах."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Optional

from dockfleet.commands.models import CommandResult, SuccessPolicy
from dockfleet.connections.manager import ConnectionRegistry
from dockfleet.connections.ssh_client import SSHSession
from dockfleet.exceptions import NotFoundError
from dockfleet.utils.helpers import mask_secrets


class CommandExecutor:
    """Запускает команды через сессии реестра и нормализует результат.

    * постоянный режим: общая сессия соединения, команды по очереди;
    * временный режим: отдельная сессия на одну команду, закрывается
      при любом исходе.

    Таймаутов на этом уровне нет: зависшая команда блокирует вызывающего.
    """

    def __init__(self, registry: ConnectionRegistry) -> None:
        self._registry = registry
        self._logger = logging.getLogger(__name__)

    @property
    def registry(self) -> ConnectionRegistry:
        return self._registry

    async def run(
        self,
        connection_id: str,
        command: str,
        *,
        ephemeral: bool = False,
        policy: SuccessPolicy = SuccessPolicy.STRICT,
        check: bool = True,
        secrets: Iterable[Optional[str]] = (),
    ) -> CommandResult:
        """Выполняет команду; при check=True неуспех поднимает CommandExecutionError."""

        secret_values = [secret for secret in secrets if secret]
        display_command = mask_secrets(command, secret_values)
        self._logger.debug(
            "Executing on %s (%s): %s",
            connection_id,
            "ephemeral" if ephemeral else "persistent",
            display_command,
        )
        if ephemeral:
            exit_status, stdout, stderr = await self._run_ephemeral(connection_id, command)
        else:
            exit_status, stdout, stderr = await self._run_persistent(connection_id, command)

        result = CommandResult.evaluate(
            display_command,
            exit_status,
            mask_secrets(stdout, secret_values),
            mask_secrets(stderr, secret_values),
            policy,
        )
        if not result.success:
            self._logger.error(
                "Command failed on %s: exit=%s stderr=%s",
                connection_id,
                result.exit_status,
                result.stderr.strip(),
            )
            if check:
                result.raise_for_status()
        return result

    # ----------------------------------------------------------------- helpers
    async def _run_persistent(self, connection_id: str, command: str) -> tuple[int, str, str]:
        connection = self._registry.lookup(connection_id)
        async with connection.command_lock:
            # соединение могли отключить, пока команда ждала очереди
            session = connection.session
            if session is None or not session.is_active():
                raise NotFoundError(connection_id)
            connection.touch()
            return await asyncio.to_thread(session.exec_command, command)

    async def _run_ephemeral(self, connection_id: str, command: str) -> tuple[int, str, str]:
        session: SSHSession = await self._registry.open_ephemeral(connection_id)
        try:
            return await asyncio.to_thread(session.exec_command, command)
        finally:
            await asyncio.to_thread(session.close)
