"""Менеджер репозиториев: синхронизация, compose-файл, сборка образов."""

from __future__ import annotations

import logging
from pathlib import PurePosixPath
from typing import Iterable, List, Optional

from dockfleet.commands.builder import (
    in_directory,
    read_file_command,
    write_file_command,
)
from dockfleet.commands.executor import CommandExecutor
from dockfleet.commands.models import CommandResult, SuccessPolicy
from dockfleet.compose import serializer
from dockfleet.compose.models import ServiceDefinition
from dockfleet.repositories.models import BuildResult, CloneResult, RepositoryParams
from dockfleet.repositories.sync import RepositorySync


class RepositoryManager:
    """Собирает образы из рабочих копий репозиториев на удалённом хосте."""

    def __init__(
        self,
        executor: CommandExecutor,
        sync: RepositorySync,
        *,
        compose_command: str = "docker compose",
        compose_file: str = "docker-compose.yml",
        env_file: str = ".env",
    ) -> None:
        self._executor = executor
        self._sync = sync
        self._compose_command = compose_command
        self._compose_file = compose_file
        self._env_file = env_file
        self._logger = logging.getLogger(__name__)

    @property
    def sync(self) -> RepositorySync:
        return self._sync

    def compose_path(self, server_path: str) -> str:
        return str(PurePosixPath(server_path) / self._compose_file)

    # ------------------------------------------------------------- repository --
    async def clone_repository(self, connection_id: str, params: RepositoryParams) -> CloneResult:
        return await self._sync.clone_or_update(connection_id, params)

    async def delete_repository(self, connection_id: str, path: str) -> CommandResult:
        return await self._sync.delete_path(connection_id, path)

    async def build_image(
        self,
        connection_id: str,
        params: RepositoryParams,
        service_defs: Optional[Iterable[ServiceDefinition]] = None,
        env_content: Optional[str] = None,
    ) -> BuildResult:
        """Клонирует/обновляет репозиторий, пишет compose и .env, запускает сборку.

        Compose-файл сериализуется до обращения к хосту, чтобы ошибка в
        описании сервисов не оставляла полусинхронизированную копию.
        Возвращает перечитанный с хоста список сервисов.
        """

        definitions = list(service_defs or [])
        compose_text = None
        if definitions:
            compose_text = serializer.serialize(definitions, params.folder_name)

        clone = await self._sync.clone_or_update(connection_id, params)
        server_path = clone.server_path
        if compose_text is not None:
            await self._write(connection_id, self.compose_path(server_path), compose_text)
        env_value = env_content.strip() if env_content else ""
        if env_value:
            env_path = str(PurePosixPath(server_path) / self._env_file)
            await self._write(connection_id, env_path, env_value + "\n")

        self._logger.info(
            "Build started: repository=%s path=%s services=%s connection=%s",
            params.name,
            server_path,
            len(definitions),
            connection_id,
        )
        # сборка пишет ход выполнения в stderr
        build = await self._executor.run(
            connection_id,
            in_directory(server_path, f"{self._compose_command} build"),
            ephemeral=True,
            policy=SuccessPolicy.EXIT_CODE,
        )
        services = await self.read_compose(connection_id, server_path)
        self._logger.info(
            "Build finished: repository=%s services=%s",
            params.name,
            [service.name for service in services],
        )
        return BuildResult(
            output=build.output,
            server_path=server_path,
            pull_status=clone.pull_status,
            services=services,
            env_content=env_value or None,
        )

    # ---------------------------------------------------------------- compose --
    async def read_compose(self, connection_id: str, server_path: str) -> List[ServiceDefinition]:
        """Сервисы из compose-файла рабочей копии, пустой список при отсутствии файла."""

        result = await self._executor.run(
            connection_id,
            read_file_command(self.compose_path(server_path), optional=True),
            ephemeral=True,
        )
        if not result.output:
            return []
        return serializer.deserialize(result.stdout)

    async def update_compose(
        self,
        connection_id: str,
        server_path: str,
        definitions: Iterable[ServiceDefinition],
        base_name: Optional[str] = None,
    ) -> List[ServiceDefinition]:
        base = base_name or PurePosixPath(server_path.rstrip("/")).name
        compose_text = serializer.serialize(definitions, base)
        await self._write(connection_id, self.compose_path(server_path), compose_text)
        self._logger.info("Compose file updated: %s on %s", server_path, connection_id)
        return await self.read_compose(connection_id, server_path)

    async def _write(self, connection_id: str, path: str, content: str) -> CommandResult:
        return await self._executor.run(
            connection_id, write_file_command(path, content), ephemeral=True
        )
