"""Фасад операций парка хостов и фабрика, собирающая его из настроек."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from dockfleet.commands.executor import CommandExecutor
from dockfleet.commands.models import CommandResult, SuccessPolicy
from dockfleet.compose.models import ServiceDefinition
from dockfleet.connections.manager import ConnectionRegistry, SessionFactory
from dockfleet.connections.ssh_client import SSHOptions
from dockfleet.docker_api.data_provider import ActionOutcome, DockerDataProvider
from dockfleet.docker_api.models import ContainerAction, ContainerRecord, ImageRecord
from dockfleet.repositories.manager import RepositoryManager
from dockfleet.repositories.models import BuildResult, CloneResult, RepositoryParams
from dockfleet.repositories.sync import RepositorySync
from dockfleet.server.metrics import ResourceSnapshot
from dockfleet.server.status import ServerInspector, ServiceStatus
from dockfleet.settings.registry import SettingsRegistry


def _repository_params(params: RepositoryParams | Dict[str, Any]) -> RepositoryParams:
    if isinstance(params, RepositoryParams):
        return params
    return RepositoryParams.from_dict(params)


def _service_definitions(
    definitions: Optional[Iterable[ServiceDefinition | Dict[str, Any]]],
) -> List[ServiceDefinition]:
    return [
        item if isinstance(item, ServiceDefinition) else ServiceDefinition.from_dict(item)
        for item in definitions or []
    ]


@dataclass
class FleetService:
    """Все внешние операции над хостами; маршрутизатор запросов вызывает только его."""

    registry: ConnectionRegistry
    executor: CommandExecutor
    docker: DockerDataProvider
    repositories: RepositoryManager
    inspector: ServerInspector

    async def __aenter__(self) -> "FleetService":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ------------------------------------------------------------ connections --
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
        return await self.registry.connect(
            host, username, password, owner_id, port=port, key_path=key_path
        )

    async def disconnect(self, connection_id: str) -> None:
        await self.registry.disconnect(connection_id)

    async def execute(
        self, connection_id: str, command: str, ephemeral: bool = False
    ) -> CommandResult:
        """Произвольная команда; ненулевой код выхода даёт CommandExecutionError."""

        return await self.executor.run(
            connection_id, command, ephemeral=ephemeral, policy=SuccessPolicy.EXIT_CODE
        )

    async def close(self) -> None:
        await self.registry.close()

    # ----------------------------------------------------------------- docker --
    async def list_containers(self, connection_id: str) -> List[ContainerRecord]:
        return await self.docker.list_containers(connection_id)

    async def list_images(self, connection_id: str) -> List[ImageRecord]:
        return await self.docker.list_images(connection_id)

    async def container_action(
        self, connection_id: str, container_ref: str, action: ContainerAction | str
    ) -> ActionOutcome:
        return await self.docker.container_action(connection_id, container_ref, action)

    async def run_image(
        self, connection_id: str, image: str, container_name: Optional[str] = None
    ) -> ContainerRecord:
        return await self.docker.run_image(connection_id, image, container_name)

    async def delete_image(self, connection_id: str, image: str) -> CommandResult:
        return await self.docker.delete_image(connection_id, image)

    async def up_service(
        self, connection_id: str, server_path: str, service: str, image: Optional[str] = None
    ) -> Optional[ImageRecord]:
        return await self.docker.up_service(connection_id, server_path, service, image)

    async def down_service(
        self, connection_id: str, server_path: str, service: str, image: Optional[str] = None
    ) -> Optional[ImageRecord]:
        return await self.docker.down_service(connection_id, server_path, service, image)

    async def rebuild_service(
        self, connection_id: str, server_path: str, service: str, image: Optional[str] = None
    ) -> Optional[ImageRecord]:
        return await self.docker.rebuild_service(connection_id, server_path, service, image)

    # ----------------------------------------------------------- repositories --
    async def clone_repository(
        self, connection_id: str, repo_params: RepositoryParams | Dict[str, Any]
    ) -> CloneResult:
        return await self.repositories.clone_repository(
            connection_id, _repository_params(repo_params)
        )

    async def build_image(
        self,
        connection_id: str,
        repo_params: RepositoryParams | Dict[str, Any],
        service_defs: Optional[Iterable[ServiceDefinition | Dict[str, Any]]] = None,
        env_content: Optional[str] = None,
    ) -> BuildResult:
        return await self.repositories.build_image(
            connection_id,
            _repository_params(repo_params),
            _service_definitions(service_defs),
            env_content,
        )

    async def delete_repository(self, connection_id: str, path: str) -> CommandResult:
        return await self.repositories.delete_repository(connection_id, path)

    async def read_compose(self, connection_id: str, server_path: str) -> List[ServiceDefinition]:
        return await self.repositories.read_compose(connection_id, server_path)

    async def update_compose(
        self,
        connection_id: str,
        server_path: str,
        definitions: Iterable[ServiceDefinition | Dict[str, Any]],
        base_name: Optional[str] = None,
    ) -> List[ServiceDefinition]:
        return await self.repositories.update_compose(
            connection_id, server_path, _service_definitions(definitions), base_name
        )

    # ----------------------------------------------------------------- server --
    async def server_status(self, connection_id: str) -> ResourceSnapshot:
        return await self.inspector.server_status(connection_id)

    async def get_service(self, connection_id: str, service_name: str) -> ServiceStatus:
        return await self.inspector.get_service(connection_id, service_name)

    async def setup_service(self, connection_id: str, script: str) -> CommandResult:
        return await self.inspector.setup_service(connection_id, script)


def create_service(
    settings: SettingsRegistry, *, session_factory: SessionFactory | None = None
) -> FleetService:
    """Собирает реестр, исполнитель и сценарии с параметрами из настроек."""

    ssh = settings.get_group("ssh")
    repositories = settings.get_group("repositories")
    compose_command = settings.get_value("docker", "compose_command")

    registry = ConnectionRegistry(
        SSHOptions(
            connect_timeout_sec=ssh.get("connect_timeout_sec"),
            auth_timeout_sec=ssh.get("auth_timeout_sec"),
            allow_agent=ssh.get("allow_agent"),
            look_for_keys=ssh.get("look_for_keys"),
        ),
        session_factory=session_factory,
        default_port=ssh.get("port"),
    )
    executor = CommandExecutor(registry)
    sync = RepositorySync(
        executor,
        base_folder=repositories.get("base_folder"),
        clone_timeout=repositories.get("clone_timeout_sec"),
        pull_timeout=repositories.get("pull_timeout_sec"),
    )
    return FleetService(
        registry=registry,
        executor=executor,
        docker=DockerDataProvider(executor, compose_command),
        repositories=RepositoryManager(
            executor,
            sync,
            compose_command=compose_command,
            compose_file=repositories.get("compose_file"),
            env_file=repositories.get("env_file"),
        ),
        inspector=ServerInspector(executor),
    )
