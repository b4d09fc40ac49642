"""Модели данных для синхронизации и сборки git-репозиториев."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from dockfleet.compose.models import ServiceDefinition
from dockfleet.exceptions import ValidationError
from dockfleet.utils.helpers import sanitize_repository_name


@dataclass(slots=True, frozen=True)
class RepositoryParams:
    """Что клонировать и с какими учётными данными."""

    url: str
    name: str
    username: str
    token: Optional[str] = None
    identifier: Optional[str] = None
    server_id: Optional[str] = None

    @property
    def folder_name(self) -> str:
        return sanitize_repository_name(self.name)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RepositoryParams":
        """Принимает и поля API (github_url, fine_grained_token), и короткие имена."""

        url = data.get("github_url") or data.get("url")
        name = data.get("name") or data.get("repository_name")
        username = data.get("username")
        for field_name, value in (("url", url), ("name", name), ("username", username)):
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(field_name, value, "required field is missing")
        return cls(
            url=url.strip(),
            name=name.strip(),
            username=username.strip(),
            token=data.get("fine_grained_token") or data.get("token"),
            identifier=data.get("id"),
            server_id=data.get("server_id"),
        )


@dataclass(slots=True)
class CloneResult:
    """Итог clone-or-pull: где лежит рабочая копия и что было сделано."""

    server_path: str
    cloned: bool
    output: str = ""
    pull_status: bool = True
    identifier: Optional[str] = None
    server_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.identifier,
            "server_id": self.server_id,
            "server_path": self.server_path,
            "cloned": self.cloned,
            "pull_status": self.pull_status,
            "output": self.output,
        }


@dataclass(slots=True)
class BuildResult:
    output: str
    server_path: str
    pull_status: bool = True
    services: List[ServiceDefinition] = field(default_factory=list)
    env_content: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "output": self.output,
            "server_path": self.server_path,
            "pull_status": self.pull_status,
            "services": [service.to_dict() for service in self.services],
            "env_content": self.env_content,
        }
