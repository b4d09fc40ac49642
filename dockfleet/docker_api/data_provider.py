"""Сценарии работы с удалённым Docker поверх исполнителя команд.

Класс объединяет функции ``dockfleet.docker_api`` и после каждого
изменяющего действия заново запрашивает состояние хоста: результат
операции всегда отражает то, что видит docker, а не то, что ожидалось.
"""

from __future__ import annotations

import logging
from pathlib import PurePosixPath
from typing import List, Optional, Union

from dockfleet.commands.builder import (
    CONTAINER_REF,
    SERVICE_NAME,
    CommandBuilder,
    check,
    in_directory,
)
from dockfleet.commands.executor import CommandExecutor
from dockfleet.commands.models import CommandResult, SuccessPolicy
from dockfleet.docker_api import containers, images
from dockfleet.docker_api.models import (
    ALLOWED_SOURCES,
    ActionCompleted,
    ContainerAction,
    ContainerRecord,
    ImageRecord,
)
from dockfleet.docker_api.parsers import find_image
from dockfleet.exceptions import ValidationError

LOGGER = logging.getLogger(__name__)

ActionOutcome = Union[ContainerRecord, ActionCompleted]


def default_image_name(server_path: str, service: str) -> str:
    """Имя образа, которое docker compose даёт сервису без явного image."""

    project = PurePosixPath(server_path.rstrip("/")).name.lower()
    return f"{project}-{service}"


class DockerDataProvider:
    """Высокоуровневый API для контейнеров, образов и compose-сервисов."""

    def __init__(self, executor: CommandExecutor, compose_command: str = "docker compose") -> None:
        self._executor = executor
        self._compose_command = compose_command

    # ------------------------------------------------------------------- fetches
    async def list_containers(self, connection_id: str) -> List[ContainerRecord]:
        return await containers.list_containers(self._executor, connection_id)

    async def list_images(self, connection_id: str) -> List[ImageRecord]:
        return await images.list_images(self._executor, connection_id)

    # ---------------------------------------------------------------- containers
    async def container_action(
        self, connection_id: str, reference: str, action: ContainerAction | str
    ) -> ActionOutcome:
        """Проверяет переход по текущему состоянию, выполняет его и перечитывает контейнер."""

        check("container", reference, CONTAINER_REF)
        action = ContainerAction(action)
        current = await containers.get_container(self._executor, connection_id, reference)
        if current.state not in ALLOWED_SOURCES[action]:
            raise ValidationError(
                "action",
                action.value,
                f"cannot {action.value} container '{reference}' in state '{current.state.value}'",
            )
        await containers.apply_action(self._executor, connection_id, current.identifier, action)
        LOGGER.info(
            "Container %s: %s on %s (was %s)",
            reference,
            action.value,
            connection_id,
            current.state.value,
        )
        if action is ContainerAction.REMOVE:
            return ActionCompleted(target=reference, action=action)
        return await containers.get_container(self._executor, connection_id, current.identifier)

    async def run_image(
        self, connection_id: str, image: str, container_name: Optional[str] = None
    ) -> ContainerRecord:
        """docker run -d и свежая запись созданного контейнера."""

        container_id = await containers.run_image(
            self._executor, connection_id, image, container_name
        )
        LOGGER.info("Container %s started from %s on %s", container_id, image, connection_id)
        return await containers.get_container(
            self._executor, connection_id, container_name or container_id
        )

    async def delete_image(self, connection_id: str, image: str) -> CommandResult:
        result = await images.remove_image(self._executor, connection_id, image)
        LOGGER.info("Image %s removed on %s", image, connection_id)
        return result

    # ------------------------------------------------------------------ compose
    async def up_service(
        self, connection_id: str, server_path: str, service: str, image: Optional[str] = None
    ) -> Optional[ImageRecord]:
        return await self._compose(connection_id, server_path, service, image, ("up", "-d"))

    async def down_service(
        self, connection_id: str, server_path: str, service: str, image: Optional[str] = None
    ) -> Optional[ImageRecord]:
        """Останавливает и удаляет контейнер одного сервиса, не трогая остальные."""

        return await self._compose(
            connection_id, server_path, service, image, ("rm", "-s", "-f")
        )

    async def rebuild_service(
        self, connection_id: str, server_path: str, service: str, image: Optional[str] = None
    ) -> Optional[ImageRecord]:
        return await self._compose(
            connection_id, server_path, service, image, ("up", "-d", "--build")
        )

    async def _compose(
        self,
        connection_id: str,
        server_path: str,
        service: str,
        image: Optional[str],
        verb: tuple[str, ...],
    ) -> Optional[ImageRecord]:
        command = (
            CommandBuilder(self._compose_command)
            .flag(*verb)
            .arg(service, field="service", validator=SERVICE_NAME)
            .build()
        )
        # compose пишет ход выполнения в stderr
        await self._executor.run(
            connection_id,
            in_directory(server_path, command),
            ephemeral=True,
            policy=SuccessPolicy.EXIT_CODE,
        )
        LOGGER.info(
            "Compose %s for %s in %s on %s", " ".join(verb), service, server_path, connection_id
        )
        reference = image or default_image_name(server_path, service)
        return find_image(await self.list_images(connection_id), reference)
