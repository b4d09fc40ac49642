"""Модели сервисов docker-compose, редактируемые через API."""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional

from dockfleet.exceptions import ValidationError


@dataclass(slots=True, frozen=True)
class EnvVar:
    """Переменная окружения KEY=VALUE; value=None означает 'взять с хоста'."""

    key: str
    value: Optional[str] = None

    def to_entry(self) -> str:
        return self.key if self.value is None else f"{self.key}={self.value}"

    @classmethod
    def from_entry(cls, entry: str) -> "EnvVar":
        key, separator, value = entry.partition("=")
        return cls(key=key, value=value if separator else None)


@dataclass(slots=True, frozen=True)
class VolumeMount:
    """Монтирование host:container; при пустом host_path том анонимный."""

    host_path: str
    container_path: str

    def to_entry(self) -> str:
        if not self.host_path:
            return self.container_path
        return f"{self.host_path}:{self.container_path}"

    @classmethod
    def from_entry(cls, entry: str) -> "VolumeMount":
        host, separator, container = entry.partition(":")
        if not separator:
            return cls(host_path="", container_path=host)
        return cls(host_path=host, container_path=container)


@dataclass(slots=True)
class ServiceDefinition:
    """Структурное представление одного сервиса compose-файла."""

    name: str
    build_context: Optional[str] = None
    image: Optional[str] = None
    env_file: Optional[str] = None
    ports: List[str] = field(default_factory=list)
    environment: List[EnvVar] = field(default_factory=list)
    volumes: List[VolumeMount] = field(default_factory=list)

    def resolved_image(self, base_name: str) -> str:
        """Явный образ или синтезированный '{base}-{service}:latest' (base в нижнем регистре)."""

        return self.image or f"{base_name.lower()}-{self.name}:latest"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "serviceName": self.name,
            "buildContext": self.build_context,
            "image": self.image,
            "envFile": self.env_file,
            "ports": list(self.ports),
            "environment": [
                {"variable": item.key, "value": item.value} for item in self.environment
            ],
            "volumes": [
                {"hostPath": item.host_path, "containerPath": item.container_path}
                for item in self.volumes
            ],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ServiceDefinition":
        """Принимает и camelCase-ключи API, и snake_case."""

        name = data.get("serviceName") or data.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("serviceName", name, "service name is required")
        raw_ports = data.get("ports") or []
        if isinstance(raw_ports, (str, int)):
            raw_ports = [raw_ports]
        environment = [
            EnvVar(
                key=str(item.get("variable") or item.get("key") or ""),
                value=None if item.get("value") is None else str(item.get("value")),
            )
            for item in data.get("environment") or []
            if isinstance(item, dict)
        ]
        volumes = [
            VolumeMount(
                host_path=str(item.get("hostPath") or item.get("host_path") or ""),
                container_path=str(item.get("containerPath") or item.get("container_path") or ""),
            )
            for item in data.get("volumes") or []
            if isinstance(item, dict)
        ]
        return cls(
            name=name.strip(),
            build_context=data.get("buildContext") or data.get("build_context"),
            image=data.get("image") or None,
            env_file=data.get("envFile") or data.get("env_file"),
            ports=[str(port) for port in raw_ports if str(port).strip()],
            environment=[item for item in environment if item.key],
            volumes=[item for item in volumes if item.container_path],
        )


class ComposeDocument:
    """Упорядоченный набор сервисов с уникальными именами."""

    def __init__(self, services: Iterable[ServiceDefinition] = ()) -> None:
        self._services: "OrderedDict[str, ServiceDefinition]" = OrderedDict()
        for service in services:
            self.add(service)

    def add(self, service: ServiceDefinition) -> None:
        if service.name in self._services:
            raise ValidationError("serviceName", service.name, "duplicate service name")
        self._services[service.name] = service

    def get(self, name: str) -> ServiceDefinition:
        return self._services[name]

    def services(self) -> List[ServiceDefinition]:
        return list(self._services.values())

    def __iter__(self) -> Iterator[ServiceDefinition]:
        return iter(self._services.values())

    def __len__(self) -> int:
        return len(self._services)

    def __contains__(self, name: object) -> bool:
        return name in self._services
