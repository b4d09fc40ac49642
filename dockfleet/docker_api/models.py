"""Структуры данных для контейнеров и образов удалённого Docker."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional

IMAGE_IN_USE = "In use"
IMAGE_UNUSED = "Unused"


class ContainerState(str, Enum):
    """Состояние контейнера в терминах docker ps."""

    CREATED = "created"
    RUNNING = "running"
    PAUSED = "paused"
    RESTARTING = "restarting"
    REMOVING = "removing"
    EXITED = "exited"
    DEAD = "dead"
    REMOVED = "removed"
    UNKNOWN = "unknown"

    @classmethod
    def from_docker(cls, state: str | None, status: str = "") -> "ContainerState":
        """Берёт поле State, а для старых docker выводит состояние из Status."""

        if state:
            try:
                return cls(state.strip().lower())
            except ValueError:
                return cls.UNKNOWN
        lowered = status.strip().lower()
        if lowered.startswith("up"):
            return cls.PAUSED if "(paused)" in lowered else cls.RUNNING
        for prefix, value in (
            ("exited", cls.EXITED),
            ("created", cls.CREATED),
            ("restarting", cls.RESTARTING),
            ("dead", cls.DEAD),
            ("removal", cls.REMOVING),
        ):
            if lowered.startswith(prefix):
                return value
        return cls.UNKNOWN


class ContainerAction(str, Enum):
    """Переходы жизненного цикла контейнера."""

    START = "start"
    STOP = "stop"
    PAUSE = "pause"
    RESUME = "resume"
    RESTART = "restart"
    REMOVE = "remove"

    @property
    def docker_verb(self) -> str:
        if self is ContainerAction.RESUME:
            return "unpause"
        if self is ContainerAction.REMOVE:
            return "rm"
        return self.value


_STOPPED = frozenset({ContainerState.EXITED, ContainerState.DEAD})
_NON_TERMINAL = frozenset(
    {
        ContainerState.CREATED,
        ContainerState.RUNNING,
        ContainerState.PAUSED,
        ContainerState.RESTARTING,
        ContainerState.EXITED,
        ContainerState.DEAD,
    }
)

# из каких наблюдаемых состояний разрешён каждый переход
ALLOWED_SOURCES: Dict[ContainerAction, FrozenSet[ContainerState]] = {
    ContainerAction.START: frozenset({ContainerState.CREATED}) | _STOPPED,
    ContainerAction.PAUSE: frozenset({ContainerState.RUNNING}),
    ContainerAction.RESUME: frozenset({ContainerState.PAUSED}),
    ContainerAction.STOP: frozenset({ContainerState.RUNNING, ContainerState.RESTARTING}),
    ContainerAction.RESTART: _NON_TERMINAL,
    ContainerAction.REMOVE: frozenset({ContainerState.CREATED}) | _STOPPED,
}


@dataclass(slots=True)
class ContainerRecord:
    """Одна строка docker ps."""

    identifier: str
    names: List[str]
    image: str
    state: ContainerState
    status: str = ""
    ports: List[str] = field(default_factory=list)
    running_for: str = ""
    created_at: str = ""

    @property
    def name(self) -> str:
        return self.names[0] if self.names else ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.identifier,
            "name": self.name,
            "names": list(self.names),
            "image": self.image,
            "ports": list(self.ports),
            "state": self.state.value,
            "status": self.status,
            "running_for": self.running_for,
            "created_at": self.created_at,
        }


@dataclass(slots=True)
class ImageRecord:
    """Одна строка docker images с признаком использования."""

    identifier: str
    repository: str
    tag: str
    size: str = ""
    created: str = ""
    created_at: str = ""
    status: str = IMAGE_UNUSED
    container_id: Optional[str] = None
    container_name: Optional[str] = None

    @property
    def reference(self) -> str:
        return f"{self.repository}:{self.tag}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.identifier,
            "name": self.repository,
            "tag": self.tag,
            "size": self.size,
            "created": self.created,
            "created_at": self.created_at,
            "status": self.status,
            "container_id": self.container_id,
            "container_name": self.container_name,
        }


@dataclass(slots=True, frozen=True)
class ActionCompleted:
    """Маркер завершения для операций без последующего состояния (remove)."""

    target: str
    action: ContainerAction

    def to_dict(self) -> Dict[str, Any]:
        return {"target": self.target, "action": self.action.value, "completed": True}
