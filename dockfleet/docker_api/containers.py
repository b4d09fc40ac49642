"""Контейнеры удалённого Docker: список, поиск, команды жизненного цикла."""

from __future__ import annotations

from typing import List, Optional

from dockfleet.commands.builder import CONTAINER_REF, IMAGE_REF, CommandBuilder
from dockfleet.commands.executor import CommandExecutor
from dockfleet.commands.models import CommandResult, SuccessPolicy
from dockfleet.docker_api.models import ContainerAction, ContainerRecord
from dockfleet.docker_api.parsers import find_container, parse_containers
from dockfleet.exceptions import NotFoundError

JSON_FORMAT = "{{json .}}"


def list_command(*, include_stopped: bool = True) -> str:
    builder = CommandBuilder("docker ps")
    if include_stopped:
        builder.flag("-a")
    return builder.option("--format", JSON_FORMAT).build()


async def list_containers(
    executor: CommandExecutor, connection_id: str, *, include_stopped: bool = True
) -> List[ContainerRecord]:
    """Возвращает контейнеры хоста; пустой вывод даёт пустой список."""

    result = await executor.run(connection_id, list_command(include_stopped=include_stopped))
    return parse_containers(result.output)


async def get_container(
    executor: CommandExecutor, connection_id: str, reference: str
) -> ContainerRecord:
    """Свежая запись контейнера по имени или идентификатору."""

    record = find_container(await list_containers(executor, connection_id), reference)
    if record is None:
        raise NotFoundError(reference, kind="Container")
    return record


async def apply_action(
    executor: CommandExecutor,
    connection_id: str,
    reference: str,
    action: ContainerAction,
) -> CommandResult:
    """docker start/stop/pause/unpause/restart/rm для одного контейнера."""

    command = (
        CommandBuilder("docker", action.docker_verb)
        .arg(reference, field="container", validator=CONTAINER_REF)
        .build()
    )
    return await executor.run(connection_id, command, ephemeral=True)


async def run_image(
    executor: CommandExecutor,
    connection_id: str,
    image: str,
    container_name: Optional[str] = None,
) -> str:
    """Запускает контейнер из образа в фоне и возвращает его идентификатор."""

    builder = CommandBuilder("docker run -d")
    if container_name:
        builder.option("--name", container_name, field="container_name", validator=CONTAINER_REF)
    builder.arg(image, field="image", validator=IMAGE_REF)
    # docker run пишет ход загрузки образа в stderr
    result = await executor.run(
        connection_id, builder.build(), ephemeral=True, policy=SuccessPolicy.EXIT_CODE
    )
    lines = result.output.splitlines()
    return lines[-1].strip() if lines else ""
