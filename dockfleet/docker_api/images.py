"""Образы удалённого Docker и признак их использования контейнерами."""

from __future__ import annotations

from typing import List

from dockfleet.commands.builder import IMAGE_REF, CommandBuilder
from dockfleet.commands.executor import CommandExecutor
from dockfleet.commands.models import CommandResult
from dockfleet.docker_api import containers
from dockfleet.docker_api.models import ImageRecord
from dockfleet.docker_api.parsers import mark_image_usage, parse_images


def list_command() -> str:
    return CommandBuilder("docker images").option("--format", containers.JSON_FORMAT).build()


async def list_images(executor: CommandExecutor, connection_id: str) -> List[ImageRecord]:
    """Образы со статусом In use / Unused по списку запущенных контейнеров."""

    result = await executor.run(connection_id, list_command())
    images = parse_images(result.output)
    if not images:
        return []
    running = await containers.list_containers(
        executor, connection_id, include_stopped=False
    )
    return mark_image_usage(images, running)


async def remove_image(
    executor: CommandExecutor, connection_id: str, image: str, *, force: bool = False
) -> CommandResult:
    builder = CommandBuilder("docker rmi")
    if force:
        builder.flag("-f")
    builder.arg(image, field="image", validator=IMAGE_REF)
    return await executor.run(connection_id, builder.build(), ephemeral=True)
