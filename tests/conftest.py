"""Общие фикстуры: поддельный удалённый хост вместо SSH."""

from __future__ import annotations

from typing import Callable, List, Tuple, Union

import pytest

from dockfleet.commands.executor import CommandExecutor
from dockfleet.connections.manager import ConnectionRegistry
from dockfleet.connections.models import SSHCredentials
from dockfleet.connections.ssh_client import SSHOptions
from dockfleet.exceptions import SSHConnectionError

Reply = Tuple[int, str, str]
Handler = Union[Reply, Callable[[str], Reply]]


class FakeHost:
    """Удалённый хост в памяти: команды сопоставляются с ответами по подстроке."""

    def __init__(self) -> None:
        self.commands: List[str] = []
        self.sessions: List["FakeSession"] = []
        self.connect_error: str | None = None
        self._handlers: List[Tuple[str, Handler]] = []

    def on(
        self, fragment: str, stdout: str = "", stderr: str = "", exit_status: int = 0
    ) -> "FakeHost":
        self._handlers.append((fragment, (exit_status, stdout, stderr)))
        return self

    def on_call(self, fragment: str, handler: Callable[[str], Reply]) -> "FakeHost":
        self._handlers.append((fragment, handler))
        return self

    def respond(self, command: str) -> Reply:
        self.commands.append(command)
        # последний зарегистрированный обработчик имеет приоритет
        for fragment, handler in reversed(self._handlers):
            if fragment in command:
                return handler(command) if callable(handler) else handler
        return 0, "", ""

    def executed(self, fragment: str) -> List[str]:
        return [command for command in self.commands if fragment in command]


class FakeSession:
    """Сессия, исполняющая команды на FakeHost."""

    def __init__(self, host: FakeHost, credentials: SSHCredentials, options: SSHOptions) -> None:
        self.host = host
        self.credentials = credentials
        self.options = options
        self.active = True
        self.closed = False

    def is_active(self) -> bool:
        return self.active

    def exec_command(self, command: str) -> Reply:
        return self.host.respond(command)

    def close(self) -> None:
        self.active = False
        self.closed = True


@pytest.fixture
def fake_host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def session_factory(fake_host: FakeHost) -> Callable[[SSHCredentials, SSHOptions], FakeSession]:
    def factory(credentials: SSHCredentials, options: SSHOptions) -> FakeSession:
        if fake_host.connect_error:
            raise SSHConnectionError(
                credentials.host, credentials.username, fake_host.connect_error
            )
        session = FakeSession(fake_host, credentials, options)
        fake_host.sessions.append(session)
        return session

    return factory


@pytest.fixture
def registry(session_factory) -> ConnectionRegistry:
    return ConnectionRegistry(session_factory=session_factory)


@pytest.fixture
def executor(registry: ConnectionRegistry) -> CommandExecutor:
    return CommandExecutor(registry)


@pytest.fixture
async def connection_id(registry: ConnectionRegistry) -> str:
    identifier = await registry.connect("10.0.0.5", "deploy", "secret", "owner1")
    yield identifier
    await registry.close()
